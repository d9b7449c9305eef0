"""
Firestore demo seed script
Run with: python3 firebase/seed_demo.py --confirm [--reset]

Seeds one seller, one buyer, their products and a few return requests.
Profiles are written under fixed uids; the matching Firebase Auth accounts
are not created.
"""

import json
import os
import sys
from datetime import datetime, timedelta, timezone

import firebase_admin
from firebase_admin import credentials, firestore

SELLER_UID = "demo_seller"
BUYER_UID = "demo_buyer"
SELLER_EMAIL = "seller@smartreturn.test"
BUYER_EMAIL = "buyer@smartreturn.test"


def _init_firebase():
    project_id = os.environ.get("FIREBASE_PROJECT_ID") or "demo-smartreturn"

    if os.environ.get("FIREBASE_USE_EMULATOR", "").lower() == "true":
        os.environ.setdefault("FIRESTORE_EMULATOR_HOST", "localhost:8080")
        firebase_admin.initialize_app(options={"projectId": project_id})
        return

    service_account_json = os.environ.get("FIREBASE_SERVICE_ACCOUNT")
    service_account_path = os.environ.get("FIREBASE_SERVICE_ACCOUNT_PATH")

    if service_account_json:
        try:
            cred = credentials.Certificate(json.loads(service_account_json))
        except json.JSONDecodeError as exc:
            print(f"Invalid FIREBASE_SERVICE_ACCOUNT JSON: {exc}", file=sys.stderr)
            sys.exit(1)
    elif service_account_path and os.path.exists(service_account_path):
        cred = credentials.Certificate(service_account_path)
    else:
        print(
            "Provide FIREBASE_SERVICE_ACCOUNT or FIREBASE_SERVICE_ACCOUNT_PATH, "
            "or set FIREBASE_USE_EMULATOR=true.",
            file=sys.stderr,
        )
        sys.exit(1)

    firebase_admin.initialize_app(cred, options={"projectId": project_id})


def _clear_where(collection_ref, field, values):
    for value in values:
        for doc in collection_ref.where(field, "==", value).stream():
            doc.reference.delete()


def clear_demo(db):
    print("🧹 Clearing demo data...")
    db.collection("users").document(SELLER_UID).delete()
    db.collection("users").document(BUYER_UID).delete()
    _clear_where(db.collection("products"), "sellerEmail", [SELLER_EMAIL])
    _clear_where(db.collection("returns"), "sellerEmail", [SELLER_EMAIL])
    _clear_where(db.collection("notifications"), "userId", [SELLER_UID, BUYER_UID])
    _clear_where(db.collection("pushTokens"), "userId", [SELLER_UID, BUYER_UID])
    print("✅ Clear completed")


def seed(db):
    print("🌱 Seeding Firestore with demo data...")
    now = datetime.now(timezone.utc)

    db.collection("users").document(SELLER_UID).set({
        "name": "seller",
        "email": SELLER_EMAIL,
        "phone": "+900000000001",
        "role": "seller",
        "storeName": "Demo Store",
        "businessPhone": "+900000000002",
        "businessAddress": "Istiklal Cd. 1, Beyoglu, Istanbul",
        "company": "Demo Retail Ltd.",
        "createdAt": now,
        "isActive": True,
    })
    db.collection("users").document(BUYER_UID).set({
        "name": "buyer",
        "email": BUYER_EMAIL,
        "phone": "+900000000003",
        "role": "buyer",
        "address": "Bagdat Cd. 10, Kadikoy, Istanbul",
        "createdAt": now,
        "isActive": True,
    })

    products = [
        ("SR-1001", "Running Shoes", "42", "1", "89.90"),
        ("SR-1002", "Denim Jacket", "M", "1", "59.50"),
        ("SR-1003", "Wool Scarf", "One size", "2", "24.00"),
    ]
    for code, name, size, quantity, price in products:
        db.collection("products").add({
            "productCode": code,
            "productName": name,
            "productSize": size,
            "productQuantity": quantity,
            "productPrice": price,
            "buyerName": "Demo Buyer",
            "buyerAddress": "Bagdat Cd. 10, Kadikoy, Istanbul",
            "buyerEmail": BUYER_EMAIL,
            "buyerPhone": "+900000000003",
            "sellerEmail": SELLER_EMAIL,
            "createdAt": now,
        })
        print(f"  📦 product {code}")

    returns = [
        ("SR-1001", "Running Shoes", 89.90, "pending", None),
        ("SR-1002", "Denim Jacket", 59.50, "approved", {
            "returnAddress": "Istiklal Cd. 1, Beyoglu, Istanbul",
            "returnAddressCoords": {"latitude": 41.0335, "longitude": 28.9777},
            "approvedAt": now - timedelta(days=1),
        }),
    ]
    for code, name, price, status, extra in returns:
        db.collection("returns").add({
            "productCode": code,
            "productName": name,
            "productPrice": price,
            "buyerName": "Demo Buyer",
            "buyerPhone": "+900000000003",
            "buyerAddress": "Bagdat Cd. 10, Kadikoy, Istanbul",
            "buyerEmail": BUYER_EMAIL,
            "buyerId": BUYER_UID,
            "sellerEmail": SELLER_EMAIL,
            "sellerBusinessPhone": "+900000000002",
            "reason": "Wrong size",
            "photos": [],
            "status": status,
            "submittedAt": now - timedelta(days=2),
            "createdAt": now - timedelta(days=2),
            "productId": "",
            **(extra or {}),
        })
        print(f"  ↩️  return {code} ({status})")

    print("✅ Seed completed successfully")


def main():
    if "--confirm" not in sys.argv:
        print("Refusing to run without --confirm flag.", file=sys.stderr)
        sys.exit(1)

    _init_firebase()
    db = firestore.client()

    if "--reset" in sys.argv:
        clear_demo(db)

    seed(db)


if __name__ == "__main__":
    main()
