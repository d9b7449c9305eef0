"""
Form validation for account, product and return payloads.

Every validator returns a {field: message} dict; an empty dict means valid.
"""
from .constants import (
    DECISIONS,
    MAX_REASON_LENGTH,
    MAX_RETURN_PHOTOS,
    MAX_UPLOAD_BYTES,
    MIN_PASSWORD_LENGTH,
    MIN_PHONE_LENGTH,
    MIN_RETURN_PHOTOS,
    PRODUCT_FIELDS,
    RETURN_REQUIRED_FIELDS,
    ROLE_SELLER,
    ROLES,
    SELLER_REQUIRED_FIELDS,
    STATUS_APPROVED,
)
from .utils import parse_price


def _blank(value) -> bool:
    return value is None or not str(value).strip()


def _check_password(errors, password, field="password"):
    if _blank(password):
        errors[field] = "Password is required"
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors[field] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"


def validate_login(data: dict) -> dict:
    errors = {}
    email = data.get("email") or ""
    if _blank(email):
        errors["email"] = "Email is required"
    elif "@" not in email:
        errors["email"] = "Please enter a valid email address"
    _check_password(errors, data.get("password"))
    return errors


def validate_password_reset(data: dict) -> dict:
    email = data.get("email") or ""
    if _blank(email) or "@" not in email:
        return {"email": "Please enter a valid email address first"}
    return {}


def validate_registration(data: dict) -> dict:
    errors = {}

    email = data.get("email") or ""
    if _blank(email):
        errors["email"] = "Email is required"
    elif "@" not in email or "." not in email:
        errors["email"] = "Please enter a valid email address"

    phone = data.get("phone") or ""
    if _blank(phone):
        errors["phone"] = "Phone number is required"
    elif len(phone.strip()) < MIN_PHONE_LENGTH:
        errors["phone"] = "Phone number too short"

    password = data.get("password") or ""
    _check_password(errors, password)

    confirm = data.get("confirmPassword") or ""
    if _blank(confirm):
        errors["confirmPassword"] = "Please confirm your password"
    elif password != confirm:
        errors["confirmPassword"] = "Passwords do not match"

    role = data.get("role") or ""
    if role not in ROLES:
        errors["role"] = f"Role must be one of: {', '.join(ROLES)}"
    elif role == ROLE_SELLER:
        for field in SELLER_REQUIRED_FIELDS:
            if _blank(data.get(field)):
                errors[field] = "Please fill in all required seller fields"

    return errors


def validate_password_change(data: dict) -> dict:
    current = data.get("currentPassword") or ""
    new = data.get("newPassword") or ""
    confirm = data.get("confirmNewPassword") or ""

    if not current or not new or not confirm:
        return {"password": "Please fill in all password fields"}
    if new != confirm:
        return {"confirmNewPassword": "Passwords do not match"}
    if len(new) < MIN_PASSWORD_LENGTH:
        return {"newPassword": f"New password must be at least {MIN_PASSWORD_LENGTH} characters long"}
    return {}


def validate_product(data: dict) -> dict:
    errors = {}
    for field in PRODUCT_FIELDS:
        if _blank(data.get(field)):
            errors[field] = "All fields are required"
    return errors


def validate_return(data: dict, photo_count: int) -> dict:
    errors = {}

    if photo_count < MIN_RETURN_PHOTOS:
        errors["photos"] = f"Please upload at least {MIN_RETURN_PHOTOS} photos"
    elif photo_count > MAX_RETURN_PHOTOS:
        errors["photos"] = f"You can upload up to {MAX_RETURN_PHOTOS} photos only"

    reason = data.get("reason") or ""
    if len(reason) > MAX_REASON_LENGTH:
        errors["reason"] = f"Reason cannot exceed {MAX_REASON_LENGTH} characters"

    for field in RETURN_REQUIRED_FIELDS:
        if _blank(data.get(field)):
            errors[field] = "Please fill in all required fields"

    if "productPrice" not in errors and parse_price(data.get("productPrice")) is None:
        errors["productPrice"] = "Price must be a number"

    return errors


def validate_photo_files(photos) -> dict:
    """Content type and size of every uploaded photo, checked before any upload starts."""
    for photo in photos:
        content_type = getattr(photo, "content_type", "") or ""
        if not content_type.startswith("image/"):
            return {"photos": f"{photo.name} is not an image"}
        if photo.size > MAX_UPLOAD_BYTES:
            return {"photos": f"{photo.name} is larger than {MAX_UPLOAD_BYTES // (1024 * 1024)} MB"}
    return {}


def validate_decision(decision, address) -> dict:
    if decision not in DECISIONS:
        return {"decision": f"Decision must be one of: {', '.join(DECISIONS)}"}
    if decision == STATUS_APPROVED and _blank(address):
        return {"returnAddress": "Please enter return address"}
    return {}
