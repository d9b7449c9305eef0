import logging

from django.http import JsonResponse, HttpResponseNotAllowed
from django.views.decorators.csrf import csrf_exempt

from ..auth import firebase_login_required, role_required
from ..constants import PRODUCT_FIELDS, ROLE_SELLER
from ..firebase_service import firestore_service
from ..http import json_body, require_firestore, validation_error
from ..qr import parse_qr_payload
from ..utils import contains, normalize_email, serialize_doc
from ..validation import validate_product

logger = logging.getLogger("smartreturn")


@csrf_exempt
@role_required(ROLE_SELLER)
def product_list(request):
    """
    GET: the seller's products, filtered by ?buyer= (exact) and ?q= (name contains).
    POST: add a product; productCode and productName must be unused.
    """
    logger.info(f"[PRODUCTS] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method == "GET":
        return _list_products(request)
    if request.method == "POST":
        return _add_product(request)
    return HttpResponseNotAllowed(["GET", "POST"])


def _list_products(request):
    items = firestore_service.get_products_by_seller(request.firebase_user.email)

    buyer = request.GET.get("buyer")
    if buyer:
        items = [p for p in items if p.get("buyerName") == buyer]
    q = request.GET.get("q", "")
    items = [p for p in items if contains(p.get("productName"), q)]

    return JsonResponse({
        "products": [serialize_doc(p) for p in items],
        "count": len(items),
    })


def _add_product(request):
    data, error = json_body(request)
    if error:
        return error

    errors = validate_product(data)
    if errors:
        return validation_error(errors)

    product = {field: str(data[field]).strip() for field in PRODUCT_FIELDS}
    product["buyerEmail"] = normalize_email(product["buyerEmail"])

    if firestore_service.product_code_exists(product["productCode"]):
        return JsonResponse({
            "error": "duplicate_product_code",
            "message": "This product code already exists.",
        }, status=409)
    if firestore_service.product_name_exists(product["productName"]):
        return JsonResponse({
            "error": "duplicate_product_name",
            "message": "This product name already exists.",
        }, status=409)

    product["sellerEmail"] = request.firebase_user.email
    product_id = firestore_service.add_product(product)

    logger.info(f"[PRODUCTS] Added {product['productCode']} as {product_id}")
    return JsonResponse({"success": True, "id": product_id, **product}, status=201)


@csrf_exempt
@role_required(ROLE_SELLER)
def product_buyers(request):
    """Distinct buyer names across the seller's products, filtered by ?q=."""
    logger.info(f"[PRODUCTS/BUYERS] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "GET":
        return HttpResponseNotAllowed(["GET"])

    items = firestore_service.get_products_by_seller(request.firebase_user.email)
    q = request.GET.get("q", "")

    buyers = []
    for p in items:
        name = p.get("buyerName")
        if name and name not in buyers and contains(name, q):
            buyers.append(name)

    return JsonResponse({"buyers": buyers, "count": len(buyers)})


@csrf_exempt
@firebase_login_required
def product_by_code(request, code):
    logger.info(f"[PRODUCTS/CODE] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "GET":
        return HttpResponseNotAllowed(["GET"])

    unavailable = require_firestore()
    if unavailable:
        return unavailable

    product = firestore_service.get_product_by_code(code)
    if not product:
        return JsonResponse({"error": "product_not_found"}, status=404)

    return JsonResponse(serialize_doc(product))


@csrf_exempt
@firebase_login_required
def qr_resolve(request):
    """
    Turn scanned QR text into a product code and, when registered, its product.
    No product means the client falls back to manual entry.
    """
    logger.info(f"[QR/RESOLVE] {request.method} from {request.META.get('REMOTE_ADDR')}")

    if request.method != "POST":
        return HttpResponseNotAllowed(["POST"])

    data, error = json_body(request)
    if error:
        return error

    code = parse_qr_payload(data.get("data"))
    if not code:
        return JsonResponse({"error": "invalid_qr_data", "message": "Invalid QR code data."}, status=400)

    unavailable = require_firestore()
    if unavailable:
        return unavailable

    product = firestore_service.get_product_by_code(code)
    return JsonResponse({
        "productCode": code,
        "product": serialize_doc(product) if product else None,
        "manualMode": product is None,
    })
