import asyncio
import hashlib
from datetime import datetime


def run_async(coro):
    """Helper to run async code in sync Django views."""
    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    if loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


def normalize_email(email) -> str:
    return (email or "").strip().lower()


def return_doc_id(buyer_email: str, product_code: str) -> str:
    """Stable returns/{id} for one buyer and product code."""
    key = f"{normalize_email(buyer_email)}\n{product_code.strip()}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]


def format_timestamp(ts):
    if ts is None:
        return None
    if isinstance(ts, datetime):
        return ts.isoformat()
    if hasattr(ts, "timestamp"):
        return datetime.fromtimestamp(ts.timestamp()).isoformat()
    return str(ts)


def serialize_doc(doc: dict) -> dict:
    """Firestore dict -> JSON-safe dict (timestamps become ISO strings)."""
    out = {}
    for key, value in doc.items():
        if isinstance(value, dict):
            out[key] = serialize_doc(value)
        elif isinstance(value, list):
            out[key] = [serialize_doc(v) if isinstance(v, dict) else v for v in value]
        elif isinstance(value, (str, int, float, bool)) or value is None:
            out[key] = value
        else:
            out[key] = format_timestamp(value)
    return out


def contains(haystack, needle) -> bool:
    """Case-insensitive substring match; an empty needle matches everything."""
    if not needle:
        return True
    return needle.lower() in str(haystack or "").lower()


def parse_price(value):
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
