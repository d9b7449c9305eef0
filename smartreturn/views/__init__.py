from .health import health
from .accounts import (
    register,
    login,
    google_login,
    password_reset,
    me,
    me_avatar,
    me_password,
    me_delete,
    me_push_token,
)
from .products import product_list, product_buyers, product_by_code, qr_resolve
from .returns import (
    return_list,
    returns_pending,
    returns_approved,
    returns_map,
    return_detail,
    return_decision,
    geocode_address,
)
from .notifications import (
    notification_list,
    notifications_read_all,
    notification_read,
    notification_delete,
)

__all__ = [
    "health",
    "register",
    "login",
    "google_login",
    "password_reset",
    "me",
    "me_avatar",
    "me_password",
    "me_delete",
    "me_push_token",
    "product_list",
    "product_buyers",
    "product_by_code",
    "qr_resolve",
    "return_list",
    "returns_pending",
    "returns_approved",
    "returns_map",
    "return_detail",
    "return_decision",
    "geocode_address",
    "notification_list",
    "notifications_read_all",
    "notification_read",
    "notification_delete",
]
