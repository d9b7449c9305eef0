from django.urls import path
from . import views

urlpatterns = [
    # Health check
    path("health", views.health, name="health"),

    # Accounts (Firebase Authentication)
    path("auth/register", views.register, name="register"),
    path("auth/login", views.login, name="login"),
    path("auth/google", views.google_login, name="google_login"),
    path("auth/password-reset", views.password_reset, name="password_reset"),
    path("me", views.me, name="me"),
    path("me/avatar", views.me_avatar, name="me_avatar"),
    path("me/password", views.me_password, name="me_password"),
    path("me/delete", views.me_delete, name="me_delete"),
    path("me/push-token", views.me_push_token, name="me_push_token"),

    # Products and QR codes
    path("products", views.product_list, name="product_list"),
    path("products/buyers", views.product_buyers, name="product_buyers"),
    path("products/code/<str:code>", views.product_by_code, name="product_by_code"),
    path("qr/resolve", views.qr_resolve, name="qr_resolve"),

    # Returns
    path("returns", views.return_list, name="return_list"),
    path("returns/pending", views.returns_pending, name="returns_pending"),
    path("returns/approved", views.returns_approved, name="returns_approved"),
    path("returns/map", views.returns_map, name="returns_map"),
    path("returns/<str:return_id>", views.return_detail, name="return_detail"),
    path("returns/<str:return_id>/decision", views.return_decision, name="return_decision"),
    path("geocode", views.geocode_address, name="geocode"),

    # Notifications inbox
    path("notifications", views.notification_list, name="notification_list"),
    path("notifications/read-all", views.notifications_read_all, name="notifications_read_all"),
    path("notifications/<str:notification_id>/read", views.notification_read, name="notification_read"),
    path("notifications/<str:notification_id>", views.notification_delete, name="notification_delete"),
]
