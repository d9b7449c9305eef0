"""
Firebase Authentication: ID token verification and account operations.

Password sign-in, Google sign-in and reset emails go through the Identity
Toolkit REST API (the Admin SDK cannot check a password); account creation,
password changes and deletion use the Admin SDK.
"""
import logging
import os
from typing import Dict, Any

import requests
from firebase_admin import auth as firebase_auth

from .constants import FIREBASE_AUTH_BASE
from .firebase_service import get_firebase_app

logger = logging.getLogger("smartreturn")


class IdentityError(Exception):
    """Firebase Auth refused the request; code is Firebase's error code."""

    def __init__(self, code: str, status: int = 400):
        super().__init__(code)
        self.code = code
        self.status = status


def _rest_call(endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    api_key = os.environ.get("FIREBASE_WEB_API_KEY")
    if not api_key:
        raise IdentityError("identity_not_configured", status=500)

    url = f"{FIREBASE_AUTH_BASE.rstrip('/')}/{endpoint}"
    try:
        response = requests.post(url, params={"key": api_key}, json=payload, timeout=30)
    except requests.exceptions.Timeout:
        raise IdentityError("identity_timeout", status=504)
    except requests.exceptions.RequestException as e:
        logger.error(f"[IDENTITY] {endpoint} failed: {e}")
        raise IdentityError("identity_unavailable", status=502)

    try:
        body = response.json()
    except ValueError:
        body = {}

    if response.status_code != 200:
        message = (body.get("error") or {}).get("message", "UNKNOWN")
        # Firebase appends detail after a colon, e.g. "WEAK_PASSWORD : ..."
        code = message.split(":")[0].strip()
        logger.warning(f"[IDENTITY] {endpoint} rejected: {code}")
        raise IdentityError(code, status=401 if response.status_code in (400, 401) else 502)

    return body


def _session(body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "uid": body.get("localId"),
        "email": body.get("email"),
        "idToken": body.get("idToken"),
        "refreshToken": body.get("refreshToken"),
        "expiresIn": body.get("expiresIn"),
    }


def sign_in_with_password(email: str, password: str) -> Dict[str, Any]:
    body = _rest_call("accounts:signInWithPassword", {
        "email": email,
        "password": password,
        "returnSecureToken": True,
    })
    return _session(body)


def sign_in_with_google(access_token: str, request_uri: str = "http://localhost") -> Dict[str, Any]:
    body = _rest_call("accounts:signInWithIdp", {
        "postBody": f"access_token={access_token}&providerId=google.com",
        "requestUri": request_uri,
        "returnSecureToken": True,
        "returnIdpCredential": True,
    })
    session = _session(body)
    session["isNewUser"] = bool(body.get("isNewUser"))
    session["displayName"] = body.get("displayName") or ""
    return session


def send_password_reset(email: str) -> None:
    _rest_call("accounts:sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})
    logger.info(f"[IDENTITY] Password reset email sent to {email}")


def verify_id_token(id_token: str) -> Dict[str, Any]:
    """Decoded claims of a valid Firebase ID token; raises IdentityError otherwise."""
    app = get_firebase_app()
    if app is None:
        raise IdentityError("firebase_unavailable", status=503)
    try:
        return firebase_auth.verify_id_token(id_token, app=app)
    except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError,
            firebase_auth.RevokedIdTokenError, firebase_auth.CertificateFetchError) as e:
        logger.warning(f"[IDENTITY] Token rejected: {e}")
        raise IdentityError("invalid_token", status=401)


def create_account(email: str, password: str) -> str:
    try:
        user = firebase_auth.create_user(email=email, password=password, app=get_firebase_app())
    except firebase_auth.EmailAlreadyExistsError:
        raise IdentityError("EMAIL_EXISTS", status=409)
    except ValueError as e:
        raise IdentityError(f"invalid_account: {e}", status=400)
    logger.info(f"[IDENTITY] Created account {user.uid}")
    return user.uid


def update_password(uid: str, new_password: str) -> None:
    firebase_auth.update_user(uid, password=new_password, app=get_firebase_app())
    logger.info(f"[IDENTITY] Password updated for {uid}")


def delete_account(uid: str) -> None:
    firebase_auth.delete_user(uid, app=get_firebase_app())
    logger.info(f"[IDENTITY] Deleted account {uid}")
