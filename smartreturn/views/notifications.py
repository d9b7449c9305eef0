import logging

from django.http import JsonResponse, HttpResponseNotAllowed
from django.views.decorators.csrf import csrf_exempt

from ..auth import firebase_login_required
from ..firebase_service import firestore_service
from ..http import require_firestore
from ..utils import serialize_doc

logger = logging.getLogger("smartreturn")


def _owned_notification(request, notification_id):
    notification = firestore_service.get_notification(notification_id)
    if not notification or notification.get("userId") != request.firebase_user.uid:
        return None
    return notification


@csrf_exempt
@firebase_login_required
def notification_list(request):
    logger.info(f"[NOTIFICATIONS] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "GET":
        return HttpResponseNotAllowed(["GET"])

    unavailable = require_firestore()
    if unavailable:
        return unavailable

    items = firestore_service.get_notifications(request.firebase_user.uid)
    return JsonResponse({
        "notifications": [serialize_doc(n) for n in items],
        "unreadCount": sum(1 for n in items if not n.get("read")),
    })


@csrf_exempt
@firebase_login_required
def notifications_read_all(request):
    logger.info(f"[NOTIFICATIONS/READ-ALL] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])

    unavailable = require_firestore()
    if unavailable:
        return unavailable

    updated = firestore_service.mark_all_notifications_read(request.firebase_user.uid)
    return JsonResponse({"success": True, "updated": updated})


@csrf_exempt
@firebase_login_required
def notification_read(request, notification_id):
    logger.info(f"[NOTIFICATIONS/READ] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])

    unavailable = require_firestore()
    if unavailable:
        return unavailable

    if not _owned_notification(request, notification_id):
        return JsonResponse({"error": "notification_not_found"}, status=404)

    firestore_service.mark_notification_read(notification_id)
    return JsonResponse({"success": True, "id": notification_id, "read": True})


@csrf_exempt
@firebase_login_required
def notification_delete(request, notification_id):
    logger.info(f"[NOTIFICATIONS/DELETE] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "DELETE":
        return HttpResponseNotAllowed(["DELETE"])

    unavailable = require_firestore()
    if unavailable:
        return unavailable

    if not _owned_notification(request, notification_id):
        return JsonResponse({"error": "notification_not_found"}, status=404)

    firestore_service.delete_notification(notification_id)
    return JsonResponse({"success": True, "id": notification_id})
