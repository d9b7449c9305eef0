import os

ROLE_BUYER = "buyer"
ROLE_SELLER = "seller"
ROLES = (ROLE_BUYER, ROLE_SELLER)

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
DECISIONS = (STATUS_APPROVED, STATUS_REJECTED)

MIN_PASSWORD_LENGTH = 6
MIN_PHONE_LENGTH = 8
MIN_RETURN_PHOTOS = 2
MAX_RETURN_PHOTOS = 4
MAX_REASON_LENGTH = 500
MAX_UPLOAD_BYTES = int(os.environ.get("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

EXPO_PUSH_URL = os.environ.get("EXPO_PUSH_URL", "https://exp.host/--/api/v2/push/send")
CLOUDINARY_API_BASE = os.environ.get("CLOUDINARY_API_BASE", "https://api.cloudinary.com/v1_1")
FIREBASE_AUTH_BASE = os.environ.get(
    "FIREBASE_AUTH_BASE", "https://identitytoolkit.googleapis.com/v1"
)
GEOCODER_URL = os.environ.get("GEOCODER_URL", "https://nominatim.openstreetmap.org/search")
GEOCODER_USER_AGENT = os.environ.get("GEOCODER_USER_AGENT", "smartreturn-server")

NOTIFICATION_RETURN_REQUEST = "return_request"
NOTIFICATION_RETURN_DECISION = "return_decision"

PRODUCT_FIELDS = (
    "productCode",
    "productName",
    "productSize",
    "productQuantity",
    "productPrice",
    "buyerName",
    "buyerAddress",
    "buyerEmail",
    "buyerPhone",
)

RETURN_REQUIRED_FIELDS = (
    "productName",
    "productCode",
    "productPrice",
    "buyerName",
    "buyerPhone",
    "buyerAddress",
    "sellerEmail",
)

SELLER_REQUIRED_FIELDS = ("storeName", "businessPhone", "businessAddress")
