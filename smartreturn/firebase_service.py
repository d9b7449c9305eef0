"""
Firebase service for Django - Firestore integration for returns management.

Firestore Collections:
- users/{uid}: Profile, role (buyer/seller), seller business fields
- products/{id}: Seller-entered products identified by productCode
- returns/{id}: Return requests with status pending/approved/rejected
- notifications/{id}: Per-user messages with a read flag
- pushTokens/{id}: Expo push token per user
"""
import json
import logging
import os
from typing import Optional, Dict, Any, List

import firebase_admin
from django.utils import timezone
from firebase_admin import credentials, firestore
from google.api_core.exceptions import AlreadyExists

from .constants import STATUS_APPROVED, STATUS_REJECTED
from .geocoding import geocode
from .utils import normalize_email

logger = logging.getLogger("smartreturn")

# Firebase Admin initialization
_firebase_app = None
_firestore_client = None
_firebase_init_attempted = False


class ReturnNotFound(Exception):
    pass


class DuplicateDocument(Exception):
    pass


def get_firebase_app():
    """Get or initialize Firebase Admin app"""
    global _firebase_app, _firebase_init_attempted

    if _firebase_app is not None:
        return _firebase_app

    if _firebase_init_attempted:
        # Already tried and failed
        return None

    _firebase_init_attempted = True

    use_emulator = os.environ.get("FIREBASE_USE_EMULATOR", "false").lower() == "true"
    project_id = os.environ.get("FIREBASE_PROJECT_ID")

    logger.info(f"Firebase init: use_emulator={use_emulator}, project_id={project_id}")

    if use_emulator:
        # Emulator host must be in the environment before the client is built
        firestore_host = os.environ.get("FIRESTORE_EMULATOR_HOST", "localhost:8080")
        os.environ["FIRESTORE_EMULATOR_HOST"] = firestore_host

        try:
            _firebase_app = firebase_admin.initialize_app(
                credential=None,
                options={"projectId": project_id or "demo-smartreturn"},
            )
            logger.info(f"Firebase Admin initialized with EMULATOR (Firestore: {firestore_host})")
        except ValueError as e:
            # Already initialized
            try:
                _firebase_app = firebase_admin.get_app()
            except ValueError:
                logger.error(f"Firebase init failed: {e}")
                return None
        except Exception as e:
            logger.error(f"Firebase emulator init failed: {e}")
            return None
    else:
        service_account_json = os.environ.get("FIREBASE_SERVICE_ACCOUNT")
        service_account_path = os.environ.get("FIREBASE_SERVICE_ACCOUNT_PATH")

        cred = None
        if service_account_json:
            try:
                cred = credentials.Certificate(json.loads(service_account_json))
                logger.info("Using FIREBASE_SERVICE_ACCOUNT env var")
            except json.JSONDecodeError as e:
                logger.error(f"Invalid FIREBASE_SERVICE_ACCOUNT JSON: {e}")
        elif service_account_path and os.path.exists(service_account_path):
            cred = credentials.Certificate(service_account_path)
            logger.info(f"Using service account from {service_account_path}")

        if cred:
            try:
                options = {"projectId": project_id} if project_id else None
                _firebase_app = firebase_admin.initialize_app(cred, options=options)
                logger.info("Firebase Admin initialized (production)")
            except ValueError:
                try:
                    _firebase_app = firebase_admin.get_app()
                except ValueError:
                    pass
        else:
            logger.warning("Firebase credentials not found - Firestore operations will fail")
            return None

    return _firebase_app


def get_firestore():
    """Get Firestore client"""
    global _firestore_client

    if _firestore_client is not None:
        return _firestore_client

    app = get_firebase_app()
    if app is None:
        return None

    try:
        _firestore_client = firestore.client(app=app)
        return _firestore_client
    except Exception as e:
        logger.error(f"Failed to get Firestore client: {e}")
        return None


def _with_id(doc) -> Dict[str, Any]:
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data


class FirestoreService:
    """Service class for Firestore operations"""

    USERS_COLLECTION = "users"
    PRODUCTS_COLLECTION = "products"
    RETURNS_COLLECTION = "returns"
    NOTIFICATIONS_COLLECTION = "notifications"
    PUSH_TOKENS_COLLECTION = "pushTokens"

    def __init__(self):
        self._db = None

    @property
    def db(self):
        """Lazy initialization of Firestore client"""
        if self._db is None:
            self._db = get_firestore()
        return self._db

    def is_available(self) -> bool:
        """Check if Firestore is available"""
        return self.db is not None

    def _collection(self, name):
        if not self.db:
            raise RuntimeError("Firestore not available")
        return self.db.collection(name)

    # =========================================================================
    # Users
    # =========================================================================

    def get_user(self, uid: str) -> Optional[Dict[str, Any]]:
        try:
            doc = self._collection(self.USERS_COLLECTION).document(uid).get()
            if doc.exists:
                return _with_id(doc)
            logger.info(f"User document not found: {uid}")
            return None
        except Exception as e:
            logger.error(f"Error getting user {uid}: {e}")
            return None

    def get_user_role(self, uid: str) -> Optional[str]:
        user = self.get_user(uid)
        return user.get("role") if user else None

    def create_user_profile(self, uid: str, data: Dict[str, Any]) -> Dict[str, Any]:
        profile = {**data, "createdAt": timezone.now(), "isActive": True}
        try:
            self._collection(self.USERS_COLLECTION).document(uid).set(profile)
            logger.info(f"Created user profile: {uid} role={data.get('role')}")
            return profile
        except Exception as e:
            logger.error(f"Error creating user profile: {e}")
            raise

    def ensure_user_profile(self, uid: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create users/{uid} from data unless it already exists.
        Returns the stored profile; an existing one is never overwritten.
        """
        profile = {**data, "createdAt": timezone.now(), "isActive": True}
        doc_ref = self._collection(self.USERS_COLLECTION).document(uid)
        try:
            doc_ref.create(profile)
        except AlreadyExists:
            return _with_id(doc_ref.get())

        logger.info(f"Created user profile: {uid} role={data.get('role')}")
        return {**profile, "id": uid}

    def update_user_profile(self, uid: str, fields: Dict[str, Any]) -> None:
        try:
            self._collection(self.USERS_COLLECTION).document(uid).update(fields)
        except Exception as e:
            logger.error(f"Error updating user profile {uid}: {e}")
            raise

    def delete_user_profile(self, uid: str) -> None:
        try:
            self._collection(self.USERS_COLLECTION).document(uid).delete()
            logger.info(f"Deleted user profile: {uid}")
        except Exception as e:
            logger.error(f"Error deleting user profile {uid}: {e}")
            raise

    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        try:
            query = self._collection(self.USERS_COLLECTION).where("email", "==", normalize_email(email)).limit(1)
            for doc in query.stream():
                return _with_id(doc)
            return None
        except Exception as e:
            logger.error(f"Error finding user by email {email}: {e}")
            return None

    # =========================================================================
    # Products
    # =========================================================================

    def add_product(self, data: Dict[str, Any]) -> str:
        try:
            _, doc_ref = self._collection(self.PRODUCTS_COLLECTION).add(
                {**data, "createdAt": timezone.now()}
            )
            logger.info(f"Added product {data.get('productCode')}: {doc_ref.id}")
            return doc_ref.id
        except Exception as e:
            logger.error(f"Error adding product: {e}")
            raise

    def get_products_by_seller(self, email: str) -> List[Dict[str, Any]]:
        try:
            query = self._collection(self.PRODUCTS_COLLECTION).where("sellerEmail", "==", email)
            return [_with_id(doc) for doc in query.stream()]
        except Exception as e:
            logger.error(f"Error getting products by seller: {e}")
            return []

    def get_product_by_code(self, code: str) -> Optional[Dict[str, Any]]:
        try:
            query = self._collection(self.PRODUCTS_COLLECTION).where("productCode", "==", code).limit(1)
            for doc in query.stream():
                return _with_id(doc)
            return None
        except Exception as e:
            logger.error(f"Error getting product by code: {e}")
            return None

    def _field_taken(self, collection: str, field: str, value: str) -> bool:
        # Uniqueness checks fail closed: store errors propagate instead of reading as "free"
        query = self._collection(collection).where(field, "==", value).limit(1)
        return any(True for _ in query.stream())

    def product_code_exists(self, code: str) -> bool:
        return self._field_taken(self.PRODUCTS_COLLECTION, "productCode", code)

    def product_name_exists(self, name: str) -> bool:
        return self._field_taken(self.PRODUCTS_COLLECTION, "productName", name)

    # =========================================================================
    # Returns
    # =========================================================================

    def submit_return(self, data: Dict[str, Any], doc_id: Optional[str] = None) -> str:
        """
        Write a return request. With doc_id the write uses create(), so a second
        submission under the same id fails with DuplicateDocument.
        """
        record = {
            **data,
            "buyerPhone": data.get("buyerPhone") or "",
            "buyerAddress": data.get("buyerAddress") or "",
            "createdAt": timezone.now(),
        }
        collection = self._collection(self.RETURNS_COLLECTION)
        try:
            if doc_id:
                collection.document(doc_id).create(record)
                return doc_id
            _, doc_ref = collection.add(record)
            return doc_ref.id
        except AlreadyExists:
            raise DuplicateDocument(doc_id)
        except Exception as e:
            logger.error(f"Error submitting return form: {e}")
            raise

    def get_return(self, return_id: str) -> Optional[Dict[str, Any]]:
        try:
            doc = self._collection(self.RETURNS_COLLECTION).document(return_id).get()
            return _with_id(doc) if doc.exists else None
        except Exception as e:
            logger.error(f"Error getting return {return_id}: {e}")
            return None

    def get_returns_by_buyer(self, uid: str) -> List[Dict[str, Any]]:
        try:
            query = self._collection(self.RETURNS_COLLECTION).where("buyerId", "==", uid)
            return [_with_id(doc) for doc in query.stream()]
        except Exception as e:
            logger.error(f"Error getting returns by buyer: {e}")
            return []

    def get_returns_by_seller(self, email: str, status: Optional[str] = None) -> List[Dict[str, Any]]:
        try:
            query = self._collection(self.RETURNS_COLLECTION).where("sellerEmail", "==", email)
            if status:
                query = query.where("status", "==", status)
            return [_with_id(doc) for doc in query.stream()]
        except Exception as e:
            logger.error(f"Error getting returns by seller: {e}")
            return []

    def find_return(self, buyer_email: str, product_code: str) -> Optional[Dict[str, Any]]:
        query = (
            self._collection(self.RETURNS_COLLECTION)
            .where("buyerEmail", "==", buyer_email)
            .where("productCode", "==", product_code)
            .limit(1)
        )
        for doc in query.stream():
            return _with_id(doc)
        return None

    def update_return_status(self, return_id: str, status: str, address: str = "") -> Dict[str, Any]:
        """
        Set a return's status. Approving with an address also stores the
        address, approval time and, when the geocoder finds it, coordinates.
        Returns the fields written.
        """
        try:
            doc_ref = self._collection(self.RETURNS_COLLECTION).document(return_id)
            if not doc_ref.get().exists:
                raise ReturnNotFound(return_id)

            update_data = {"status": status}
            if status == STATUS_APPROVED and address:
                update_data["returnAddress"] = address
                update_data["approvedAt"] = timezone.now()
                coords = geocode(address)
                if coords:
                    update_data["returnAddressCoords"] = coords
            elif status == STATUS_REJECTED:
                update_data["rejectedAt"] = timezone.now()

            doc_ref.update(update_data)
            logger.info(f"Return {return_id} -> {status}")
            return update_data
        except ReturnNotFound:
            logger.warning(f"Return request not found: {return_id}")
            raise
        except Exception as e:
            logger.error(f"Error updating return status: {e}")
            raise

    # =========================================================================
    # Notifications
    # =========================================================================

    def add_notification(self, user_id: str, title: str, body: str, data: Dict[str, Any]) -> str:
        _, doc_ref = self._collection(self.NOTIFICATIONS_COLLECTION).add({
            "userId": user_id,
            "title": title,
            "body": body,
            "data": data or {},
            "createdAt": timezone.now(),
            "read": False,
        })
        return doc_ref.id

    def get_notification(self, notification_id: str) -> Optional[Dict[str, Any]]:
        try:
            doc = self._collection(self.NOTIFICATIONS_COLLECTION).document(notification_id).get()
            return _with_id(doc) if doc.exists else None
        except Exception as e:
            logger.error(f"Error getting notification {notification_id}: {e}")
            return None

    def get_notifications(self, user_id: str) -> List[Dict[str, Any]]:
        """Notifications for a user, newest first. Sorted here to avoid a composite index."""
        try:
            query = self._collection(self.NOTIFICATIONS_COLLECTION).where("userId", "==", user_id)
            notifications = [_with_id(doc) for doc in query.stream()]
        except Exception as e:
            logger.error(f"Error getting notifications for {user_id}: {e}")
            return []

        def sort_key(item):
            created = item.get("createdAt")
            return created.timestamp() if hasattr(created, "timestamp") else 0

        return sorted(notifications, key=sort_key, reverse=True)

    def mark_notification_read(self, notification_id: str) -> None:
        self._collection(self.NOTIFICATIONS_COLLECTION).document(notification_id).update({"read": True})

    def mark_all_notifications_read(self, user_id: str) -> int:
        query = (
            self._collection(self.NOTIFICATIONS_COLLECTION)
            .where("userId", "==", user_id)
            .where("read", "==", False)
        )
        docs = list(query.stream())
        if not docs:
            return 0

        batch = self.db.batch()
        for doc in docs:
            batch.update(doc.reference, {"read": True})
        batch.commit()
        return len(docs)

    def delete_notification(self, notification_id: str) -> None:
        self._collection(self.NOTIFICATIONS_COLLECTION).document(notification_id).delete()

    # =========================================================================
    # Push tokens
    # =========================================================================

    def save_push_token(self, user_id: str, email: str, push_token: str) -> bool:
        """Upsert the user's Expo push token. Returns True when a new record was created."""
        collection = self._collection(self.PUSH_TOKENS_COLLECTION)
        now = timezone.now()
        existing = list(collection.where("userId", "==", user_id).limit(1).stream())

        if existing:
            existing[0].reference.update({"pushToken": push_token, "updatedAt": now})
            logger.info(f"Existing push token updated for {user_id}")
            return False

        collection.add({
            "userId": user_id,
            "email": email,
            "pushToken": push_token,
            "createdAt": now,
            "updatedAt": now,
        })
        logger.info(f"New push token added for {user_id}")
        return True

    def get_push_token(self, user_id: str) -> Optional[str]:
        try:
            query = self._collection(self.PUSH_TOKENS_COLLECTION).where("userId", "==", user_id).limit(1)
            for doc in query.stream():
                return (doc.to_dict() or {}).get("pushToken")
            return None
        except Exception as e:
            logger.error(f"Error getting push token for {user_id}: {e}")
            return None


# Singleton instance
firestore_service = FirestoreService()
