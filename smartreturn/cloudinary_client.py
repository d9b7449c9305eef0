import logging
import os

import requests

from .constants import CLOUDINARY_API_BASE, MAX_UPLOAD_BYTES

logger = logging.getLogger("smartreturn")


class UploadError(Exception):
    pass


def upload_url(cloud_name: str) -> str:
    return f"{CLOUDINARY_API_BASE.rstrip('/')}/{cloud_name}/image/upload"


def upload_image(upload, folder: str = "") -> str:
    """
    Unsigned upload of a Django UploadedFile to Cloudinary.
    Returns the secure_url of the stored image.
    """
    cloud_name = os.environ.get("CLOUDINARY_CLOUD_NAME")
    upload_preset = os.environ.get("CLOUDINARY_UPLOAD_PRESET")
    if not cloud_name or not upload_preset:
        raise UploadError("cloudinary_not_configured")

    content_type = getattr(upload, "content_type", "") or ""
    if not content_type.startswith("image/"):
        raise UploadError(f"unsupported_content_type: {content_type or 'unknown'}")
    if upload.size > MAX_UPLOAD_BYTES:
        raise UploadError("file_too_large")

    data = {"upload_preset": upload_preset}
    if folder:
        data["folder"] = folder

    try:
        response = requests.post(
            upload_url(cloud_name),
            data=data,
            files={"file": (upload.name or "upload.jpg", upload.read(), content_type)},
            timeout=60,
        )
    except requests.exceptions.Timeout:
        logger.error("[CLOUDINARY] Upload timeout")
        raise UploadError("upload_timeout")
    except requests.exceptions.RequestException as e:
        logger.error(f"[CLOUDINARY] Upload failed: {e}")
        raise UploadError("upload_unavailable")

    if response.status_code >= 300:
        logger.error(f"[CLOUDINARY] Upload rejected: {response.status_code} - {response.text}")
        raise UploadError(f"upload_rejected: {response.status_code}")

    try:
        secure_url = response.json().get("secure_url")
    except ValueError:
        secure_url = None
    if not secure_url:
        raise UploadError("upload_missing_url")

    logger.info(f"[CLOUDINARY] Uploaded {upload.name} -> {secure_url}")
    return secure_url
