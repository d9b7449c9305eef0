import json
import os
from typing import Tuple

from django.http import JsonResponse

from .firebase_service import firestore_service


def json_body(request) -> Tuple[dict, JsonResponse]:
    try:
        body = request.body.decode("utf-8") if request.body else "{}"
        data = json.loads(body)
        if not isinstance(data, dict):
            raise ValueError("JSON body must be an object")
        return data, None
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError) as exc:
        return None, JsonResponse({"error": f"invalid_json: {exc}"}, status=400)


def require_env(*keys):
    missing = [key for key in keys if not os.environ.get(key)]
    if missing:
        return JsonResponse({"error": "missing_env", "missing": missing}, status=500)
    return None


def require_firestore():
    if not firestore_service.is_available():
        return JsonResponse({
            "error": "firestore_unavailable",
            "message": "Firebase Firestore is not configured",
        }, status=503)
    return None


def validation_error(errors: dict) -> JsonResponse:
    return JsonResponse({"error": "validation_error", "fields": errors}, status=400)
