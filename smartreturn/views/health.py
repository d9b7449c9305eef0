import os

from django.http import JsonResponse, HttpResponseNotAllowed
from django.views.decorators.csrf import csrf_exempt

from ..firebase_service import firestore_service
from ..geocoding import geocoding_enabled


@csrf_exempt
def health(request):
    if request.method != "GET":
        return HttpResponseNotAllowed(["GET"])

    firestore_ok = firestore_service.is_available()
    cloudinary_ok = bool(os.environ.get("CLOUDINARY_CLOUD_NAME") and os.environ.get("CLOUDINARY_UPLOAD_PRESET"))

    return JsonResponse({
        "status": "ok",
        "firestore": "connected" if firestore_ok else "not_configured",
        "cloudinary": "configured" if cloudinary_ok else "not_configured",
        "geocoding": "enabled" if geocoding_enabled() else "disabled",
    })
