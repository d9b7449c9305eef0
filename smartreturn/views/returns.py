import logging

from django.http import JsonResponse, HttpResponseNotAllowed
from django.views.decorators.csrf import csrf_exempt
from django.utils import timezone

from ..auth import firebase_login_required, role_required
from ..cloudinary_client import UploadError, upload_image
from ..constants import (
    RETURN_REQUIRED_FIELDS,
    ROLE_BUYER,
    ROLE_SELLER,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
)
from ..firebase_service import DuplicateDocument, ReturnNotFound, firestore_service
from ..geocoding import geocode, haversine_km
from ..http import json_body, require_env, require_firestore, validation_error
from ..push_service import notification_service
from ..qr import parse_qr_payload
from ..utils import (
    contains,
    format_timestamp,
    normalize_email,
    parse_price,
    return_doc_id,
    run_async,
    serialize_doc,
)
from ..validation import validate_decision, validate_photo_files, validate_return

logger = logging.getLogger("smartreturn")

# Product document fields copied onto a return when the code resolves to a product
PRODUCT_RETURN_FIELDS = RETURN_REQUIRED_FIELDS + ("productSize", "productQuantity")


def _newest_first(items, field):
    def sort_key(item):
        value = item.get(field)
        return value.timestamp() if hasattr(value, "timestamp") else 0
    return sorted(items, key=sort_key, reverse=True)


@csrf_exempt
@role_required(ROLE_BUYER)
def return_list(request):
    """
    GET: the buyer's own returns with per-status counts.
    POST: submit a return (multipart: form fields, reason, 2-4 "photos" files).
    """
    logger.info(f"[RETURNS] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method == "GET":
        return _list_buyer_returns(request)
    if request.method == "POST":
        return _submit_return(request)
    return HttpResponseNotAllowed(["GET", "POST"])


def _list_buyer_returns(request):
    items = _newest_first(firestore_service.get_returns_by_buyer(request.firebase_user.uid), "createdAt")
    counts = {STATUS_PENDING: 0, STATUS_APPROVED: 0, STATUS_REJECTED: 0}
    for item in items:
        status = item.get("status")
        if status in counts:
            counts[status] += 1

    return JsonResponse({
        "returns": [serialize_doc(r) for r in items],
        "total": len(items),
        "counts": counts,
    })


def _submit_return(request):
    user = request.firebase_user
    form = request.POST
    photos = request.FILES.getlist("photos")

    code = parse_qr_payload(form.get("code")) if form.get("code") else None
    product = firestore_service.get_product_by_code(code) if code else None
    manual_mode = product is None

    if manual_mode:
        form_product = {field: (form.get(field) or "").strip() for field in RETURN_REQUIRED_FIELDS}
        form_product["sellerEmail"] = normalize_email(form_product["sellerEmail"])
    else:
        form_product = {field: product.get(field, "") for field in PRODUCT_RETURN_FIELDS if field in product}

    reason = form.get("reason") or ""
    errors = validate_return({**form_product, "reason": reason}, len(photos))
    if "photos" not in errors:
        errors.update(validate_photo_files(photos))
    if errors:
        return validation_error(errors)

    missing_env = require_env("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_UPLOAD_PRESET")
    if missing_env:
        return missing_env

    product_code = str(form_product["productCode"])

    # Same buyer cannot return the same product code twice
    if firestore_service.find_return(user.email, product_code):
        return JsonResponse({
            "error": "duplicate_return",
            "message": "You have already submitted a return request for this product code. "
                       "Please contact the seller for further assistance.",
        }, status=409)

    if manual_mode and firestore_service.product_code_exists(product_code):
        return JsonResponse({
            "error": "product_code_registered",
            "message": "This product code is already registered in the system.",
        }, status=409)

    photo_urls = []
    try:
        for photo in photos:
            photo_urls.append(upload_image(photo, folder="returns"))
    except UploadError as e:
        logger.error(f"[RETURNS] Photo upload failed after {len(photo_urls)} uploads: {e}")
        return JsonResponse({"error": "upload_failed", "message": str(e)}, status=502)

    seller = firestore_service.find_user_by_email(form_product["sellerEmail"])

    record = {
        **form_product,
        "productCode": product_code,
        "productPrice": parse_price(form_product["productPrice"]),
        "buyerEmail": user.email,
        "buyerId": user.uid,
        "reason": reason,
        "photos": photo_urls,
        "status": STATUS_PENDING,
        "submittedAt": timezone.now(),
        "productId": product["id"] if product else "",
        "sellerBusinessPhone": (seller or {}).get("businessPhone", ""),
    }

    try:
        return_id = firestore_service.submit_return(record, doc_id=return_doc_id(user.email, product_code))
    except DuplicateDocument:
        return JsonResponse({"error": "duplicate_return"}, status=409)

    logger.info(f"[RETURNS] Submitted {return_id} for {product_code} by {user.uid}")

    run_async(notification_service.send_return_request_notification(
        record["sellerEmail"],
        record["buyerName"],
        record["productName"],
    ))

    return JsonResponse({
        "success": True,
        "id": return_id,
        "status": STATUS_PENDING,
        "photos": photo_urls,
        "manualMode": manual_mode,
    }, status=201)


@csrf_exempt
@role_required(ROLE_SELLER)
def returns_pending(request):
    logger.info(f"[RETURNS/PENDING] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "GET":
        return HttpResponseNotAllowed(["GET"])

    items = firestore_service.get_returns_by_seller(request.firebase_user.email, status=STATUS_PENDING)
    items = _newest_first(items, "createdAt")
    return JsonResponse({"returns": [serialize_doc(r) for r in items], "count": len(items)})


@csrf_exempt
@role_required(ROLE_SELLER)
def returns_approved(request):
    """Approved returns, most recently approved first, filtered by ?q=."""
    logger.info(f"[RETURNS/APPROVED] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "GET":
        return HttpResponseNotAllowed(["GET"])

    items = firestore_service.get_returns_by_seller(request.firebase_user.email, status=STATUS_APPROVED)
    q = request.GET.get("q", "")
    items = [
        r for r in items
        if contains(r.get("productName"), q) or contains(r.get("buyerName"), q) or contains(r.get("productCode"), q)
    ]
    items = _newest_first(items, "approvedAt")
    return JsonResponse({"returns": [serialize_doc(r) for r in items], "count": len(items)})


@csrf_exempt
@role_required(ROLE_BUYER)
def returns_map(request):
    """
    Drop-off locations of the buyer's approved returns.
    With ?lat=&lng= each location carries distanceKm and the list is nearest first.
    """
    logger.info(f"[RETURNS/MAP] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "GET":
        return HttpResponseNotAllowed(["GET"])

    origin = None
    if request.GET.get("lat") and request.GET.get("lng"):
        try:
            origin = (float(request.GET["lat"]), float(request.GET["lng"]))
        except ValueError:
            return JsonResponse({"error": "invalid_coordinates"}, status=400)

    locations = []
    for r in firestore_service.get_returns_by_buyer(request.firebase_user.uid):
        coords = r.get("returnAddressCoords")
        if r.get("status") != STATUS_APPROVED or not coords:
            continue
        location = {
            "id": r["id"],
            "title": r.get("productName") or "Return Location",
            "address": r.get("returnAddress") or "Address not provided",
            "coords": coords,
            "approvedAt": format_timestamp(r.get("approvedAt")),
        }
        if origin:
            location["distanceKm"] = round(
                haversine_km(origin[0], origin[1], coords["latitude"], coords["longitude"]), 2
            )
        locations.append(location)

    if origin:
        locations.sort(key=lambda loc: loc["distanceKm"])

    return JsonResponse({"locations": locations, "count": len(locations)})


@csrf_exempt
@firebase_login_required
def return_detail(request, return_id):
    logger.info(f"[RETURNS/DETAIL] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "GET":
        return HttpResponseNotAllowed(["GET"])

    unavailable = require_firestore()
    if unavailable:
        return unavailable

    user = request.firebase_user
    record = firestore_service.get_return(return_id)
    if not record or (record.get("buyerId") != user.uid and record.get("sellerEmail") != user.email):
        return JsonResponse({"error": "return_not_found"}, status=404)

    return JsonResponse(serialize_doc(record))


@csrf_exempt
@role_required(ROLE_SELLER)
def return_decision(request, return_id):
    """
    Approve (requires returnAddress) or reject a pending return, then notify the buyer.
    """
    logger.info(f"[RETURNS/DECISION] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])

    data, error = json_body(request)
    if error:
        return error

    decision = data.get("decision")
    address = (data.get("returnAddress") or "").strip()

    errors = validate_decision(decision, address)
    if errors:
        return validation_error(errors)

    record = firestore_service.get_return(return_id)
    if not record or record.get("sellerEmail") != request.firebase_user.email:
        return JsonResponse({"error": "return_not_found"}, status=404)

    if record.get("status") != STATUS_PENDING:
        return JsonResponse({
            "error": "return_not_pending",
            "currentStatus": record.get("status"),
        }, status=409)

    try:
        updated = firestore_service.update_return_status(
            return_id, decision, address if decision == STATUS_APPROVED else ""
        )
    except ReturnNotFound:
        return JsonResponse({"error": "return_not_found"}, status=404)

    logger.info(f"[RETURNS/DECISION] Return {return_id} {decision}")

    run_async(notification_service.send_return_decision_notification(
        record.get("buyerEmail"),
        record.get("productName"),
        decision,
    ))

    return JsonResponse({"success": True, "id": return_id, **serialize_doc(updated)})


@csrf_exempt
@firebase_login_required
def geocode_address(request):
    logger.info(f"[GEOCODE] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])

    data, error = json_body(request)
    if error:
        return error

    address = (data.get("address") or "").strip()
    if not address:
        return validation_error({"address": "Please enter an address."})

    coords = geocode(address)
    if not coords:
        return JsonResponse({
            "error": "address_not_found",
            "message": "The entered address was not found. Please try a different address.",
        }, status=404)

    return JsonResponse({"address": address, "coords": coords})
