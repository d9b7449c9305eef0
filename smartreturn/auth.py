import logging
from functools import wraps

from django.http import JsonResponse

from .firebase_service import firestore_service
from .http import require_firestore
from .identity import IdentityError, verify_id_token
from .utils import normalize_email

logger = logging.getLogger("smartreturn")


class FirebaseUser:
    def __init__(self, uid, email, profile=None):
        self.uid = uid
        self.email = email
        self.profile = profile

    @property
    def role(self):
        return (self.profile or {}).get("role")


def bearer_token(request):
    header = request.META.get("HTTP_AUTHORIZATION", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def firebase_login_required(view):
    """Verify the Firebase ID token and attach request.firebase_user."""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        token = bearer_token(request)
        if not token:
            return JsonResponse({"error": "missing_token"}, status=401)

        try:
            claims = verify_id_token(token)
        except IdentityError as e:
            return JsonResponse({"error": e.code}, status=e.status)

        uid = claims.get("uid") or claims.get("sub")
        request.firebase_user = FirebaseUser(uid, normalize_email(claims.get("email")))
        return view(request, *args, **kwargs)

    return wrapper


def role_required(role):
    """Require users/{uid}.role == role; implies firebase_login_required."""

    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            unavailable = require_firestore()
            if unavailable:
                return unavailable

            user = request.firebase_user
            user.profile = firestore_service.get_user(user.uid)
            if user.role != role:
                logger.warning(f"[AUTH] {user.uid} with role={user.role} denied {role} endpoint")
                return JsonResponse({"error": "forbidden", "required_role": role}, status=403)
            return view(request, *args, **kwargs)

        return firebase_login_required(wrapper)

    return decorator
