import logging

from django.http import JsonResponse, HttpResponseNotAllowed
from django.views.decorators.csrf import csrf_exempt

from ..auth import firebase_login_required
from ..cloudinary_client import UploadError, upload_image
from ..constants import ROLE_BUYER, ROLE_SELLER
from ..firebase_service import firestore_service
from ..http import json_body, require_env, require_firestore, validation_error
from ..identity import (
    IdentityError,
    create_account,
    delete_account,
    send_password_reset,
    sign_in_with_google,
    sign_in_with_password,
    update_password,
)
from ..utils import normalize_email, serialize_doc
from ..validation import (
    validate_login,
    validate_password_change,
    validate_password_reset,
    validate_registration,
)

logger = logging.getLogger("smartreturn")

BUYER_PROFILE_FIELDS = ("name", "phone", "address", "avatarUrl")
SELLER_PROFILE_FIELDS = ("name", "storeName", "businessPhone", "businessAddress", "company", "avatarUrl")


def _identity_error(e: IdentityError) -> JsonResponse:
    return JsonResponse({"error": e.code}, status=e.status)


@csrf_exempt
def register(request):
    """
    Create a Firebase account and its users/{uid} profile.
    """
    logger.info(f"[AUTH/REGISTER] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])

    data, error = json_body(request)
    if error:
        return error

    errors = validate_registration(data)
    if errors:
        return validation_error(errors)

    unavailable = require_firestore()
    if unavailable:
        return unavailable

    email = normalize_email(data["email"])
    role = data["role"]

    try:
        uid = create_account(email, data["password"])
    except IdentityError as e:
        return _identity_error(e)

    profile = {
        "name": email.split("@")[0],
        "email": email,
        "phone": data["phone"].strip(),
        "role": role,
    }
    if role == ROLE_SELLER:
        profile.update({
            "storeName": data["storeName"].strip(),
            "businessPhone": data["businessPhone"].strip(),
            "businessAddress": data["businessAddress"].strip(),
            "company": (data.get("company") or "").strip(),
        })

    try:
        firestore_service.create_user_profile(uid, profile)
    except Exception as e:
        logger.error(f"[AUTH/REGISTER] Profile write failed for {uid}: {e}")
        # An account without a profile has no role; drop it so the email can register again
        try:
            delete_account(uid)
        except Exception as cleanup_error:
            logger.error(f"[AUTH/REGISTER] Could not delete account {uid} after failed profile write: {cleanup_error}")
        return JsonResponse({"error": "failed_to_create_profile"}, status=500)

    logger.info(f"[AUTH/REGISTER] Registered {uid} as {role}")
    return JsonResponse({"success": True, "uid": uid, "role": role}, status=201)


@csrf_exempt
def login(request):
    logger.info(f"[AUTH/LOGIN] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])

    data, error = json_body(request)
    if error:
        return error

    errors = validate_login(data)
    if errors:
        return validation_error(errors)

    try:
        session = sign_in_with_password(data["email"].strip(), data["password"])
    except IdentityError as e:
        return _identity_error(e)

    session["role"] = firestore_service.get_user_role(session["uid"])
    return JsonResponse(session)


@csrf_exempt
def google_login(request):
    """
    Sign in with a Google OAuth access token. First-time users get a buyer profile.
    """
    logger.info(f"[AUTH/GOOGLE] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])

    data, error = json_body(request)
    if error:
        return error

    access_token = data.get("accessToken")
    if not access_token:
        return JsonResponse({"error": "missing_access_token"}, status=400)

    unavailable = require_firestore()
    if unavailable:
        return unavailable

    try:
        session = sign_in_with_google(access_token, data.get("requestUri") or "http://localhost")
    except IdentityError as e:
        return _identity_error(e)

    email = normalize_email(session.get("email"))
    profile = firestore_service.ensure_user_profile(session["uid"], {
        "name": session.get("displayName") or email.split("@")[0],
        "email": email,
        "role": ROLE_BUYER,
    })

    session["role"] = profile.get("role")
    return JsonResponse(session)


@csrf_exempt
def password_reset(request):
    logger.info(f"[AUTH/RESET] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])

    missing_env = require_env("FIREBASE_WEB_API_KEY")
    if missing_env:
        return missing_env

    data, error = json_body(request)
    if error:
        return error

    errors = validate_password_reset(data)
    if errors:
        return validation_error(errors)

    try:
        send_password_reset(data["email"].strip())
    except IdentityError as e:
        return _identity_error(e)

    return JsonResponse({"success": True})


@csrf_exempt
@firebase_login_required
def me(request):
    """
    GET: current user's profile. PATCH: update editable profile fields.
    """
    logger.info(f"[ME] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method not in ("GET", "PATCH"):
        return HttpResponseNotAllowed(["GET", "PATCH"])

    unavailable = require_firestore()
    if unavailable:
        return unavailable

    user = request.firebase_user
    profile = firestore_service.get_user(user.uid)
    if profile is None:
        return JsonResponse({"error": "profile_not_found"}, status=404)

    if request.method == "GET":
        profile.setdefault("email", user.email)
        return JsonResponse(serialize_doc(profile))

    data, error = json_body(request)
    if error:
        return error

    allowed = SELLER_PROFILE_FIELDS if profile.get("role") == ROLE_SELLER else BUYER_PROFILE_FIELDS
    updates = {key: data[key] for key in allowed if key in data}
    rejected = sorted(set(data) - set(allowed))
    if rejected:
        return JsonResponse({"error": "field_not_editable", "fields": rejected}, status=400)
    if not updates:
        return JsonResponse({"error": "no_fields"}, status=400)

    firestore_service.update_user_profile(user.uid, updates)
    profile.update(updates)
    return JsonResponse(serialize_doc(profile))


@csrf_exempt
@firebase_login_required
def me_avatar(request):
    logger.info(f"[ME/AVATAR] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])

    missing_env = require_env("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_UPLOAD_PRESET")
    if missing_env:
        return missing_env

    unavailable = require_firestore()
    if unavailable:
        return unavailable

    upload = request.FILES.get("avatar")
    if upload is None:
        return JsonResponse({"error": "missing_avatar"}, status=400)

    try:
        avatar_url = upload_image(upload, folder="avatars")
    except UploadError as e:
        return JsonResponse({"error": "upload_failed", "message": str(e)}, status=502)

    firestore_service.update_user_profile(request.firebase_user.uid, {"avatarUrl": avatar_url})
    return JsonResponse({"avatarUrl": avatar_url})


@csrf_exempt
@firebase_login_required
def me_password(request):
    """Re-authenticate with the current password, then set the new one."""
    logger.info(f"[ME/PASSWORD] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])

    data, error = json_body(request)
    if error:
        return error

    errors = validate_password_change(data)
    if errors:
        return validation_error(errors)

    user = request.firebase_user
    try:
        sign_in_with_password(user.email, data["currentPassword"])
        update_password(user.uid, data["newPassword"])
    except IdentityError as e:
        return _identity_error(e)

    return JsonResponse({"success": True})


@csrf_exempt
@firebase_login_required
def me_delete(request):
    """Re-authenticate, delete the profile document, then the Firebase account."""
    logger.info(f"[ME/DELETE] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])

    data, error = json_body(request)
    if error:
        return error

    if not data.get("password"):
        return validation_error({"password": "Please enter your password to confirm"})

    unavailable = require_firestore()
    if unavailable:
        return unavailable

    user = request.firebase_user
    try:
        sign_in_with_password(user.email, data["password"])
    except IdentityError as e:
        return _identity_error(e)

    firestore_service.delete_user_profile(user.uid)
    delete_account(user.uid)

    logger.info(f"[ME/DELETE] Account {user.uid} deleted")
    return JsonResponse({"success": True})


@csrf_exempt
@firebase_login_required
def me_push_token(request):
    logger.info(f"[ME/PUSH-TOKEN] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])

    data, error = json_body(request)
    if error:
        return error

    push_token = data.get("pushToken")
    if not push_token:
        return JsonResponse({"error": "missing_push_token"}, status=400)

    unavailable = require_firestore()
    if unavailable:
        return unavailable

    user = request.firebase_user
    created = firestore_service.save_push_token(user.uid, user.email, push_token)
    logger.info(f"[ME/PUSH-TOKEN] Saved token {push_token[:20]}... for {user.uid}")
    return JsonResponse({"success": True, "created": created})
