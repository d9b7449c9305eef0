import json
from typing import Optional


def parse_qr_payload(data) -> Optional[str]:
    """
    Extract the product code from scanned QR text.

    Labels encode either a JSON object ({"productCode": ...} or {"code": ...}),
    the same object serialized twice, or the bare code.
    """
    if data is None:
        return None
    if not isinstance(data, str):
        data = str(data)
    if not data.strip():
        return None

    try:
        parsed = json.loads(data)
    except json.JSONDecodeError:
        return data.strip()

    if isinstance(parsed, str):
        quoted = parsed.strip()
        try:
            parsed = json.loads(quoted)
        except json.JSONDecodeError:
            return quoted or None
        if isinstance(parsed, (int, float)) and not isinstance(parsed, bool):
            # Quoted numeric code keeps its text form
            return quoted

    if isinstance(parsed, dict):
        code = parsed.get("productCode") or parsed.get("code")
        return str(code) if code else None
    if isinstance(parsed, (int, float)) and not isinstance(parsed, bool):
        return data.strip()
    return None
