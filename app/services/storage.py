# =========================================
# Local object store: upload-by-key, public URL, delete.
# Keys look like equipment/<asset-id>/<epoch-millis>.<ext>
# =========================================
import logging
import os
import time
from typing import Tuple

from fastapi import UploadFile

from app.core.config import settings
from app.core.errors import StorageFailure, ValidationGap

logger = logging.getLogger(__name__)

CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/heic": ".heic",
}
ALLOWED_CONTENT_TYPES = set(CONTENT_TYPE_EXTENSIONS)


def _guess_ext(filename: str | None) -> str:
    if not filename or "." not in filename:
        return ""
    return "." + filename.rsplit(".", 1)[-1].lower()


def equipment_photo_key(asset_id: str, filename: str | None, content_type: str | None = None) -> str:
    timestamp = int(time.time() * 1000)
    # camera uploads often arrive as "IMG_0042"; fall back to the declared type
    ext = _guess_ext(filename) or CONTENT_TYPE_EXTENSIONS.get(content_type or "", "")
    return f"equipment/{asset_id}/{timestamp}{ext}"


def resolve_key(key: str) -> str:
    """Absolute path for `key`, refusing anything outside UPLOAD_DIR."""
    root = os.path.abspath(settings.UPLOAD_DIR)
    abs_path = os.path.abspath(os.path.join(root, key))
    if not abs_path.startswith(root + os.sep):
        raise ValidationGap("Invalid object key")
    return abs_path


def public_url(key: str) -> str:
    return f"{settings.PUBLIC_BASE_URL}/media/{key}"


def upload_object(key: str, file: UploadFile) -> Tuple[str, int]:
    """
    Stream file to the object store and enforce a max size.
    Returns (key, bytes_written).
    """
    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationGap("Only jpeg/png/webp/heic images are allowed")

    path = resolve_key(key)
    if os.path.exists(path):
        raise StorageFailure(f"Photo upload failed: object {key} already exists")
    os.makedirs(os.path.dirname(path), exist_ok=True)

    max_bytes = settings.MAX_UPLOAD_MB * 1024 * 1024
    bytes_written = 0

    try:
        with open(path, "wb") as out:
            while True:
                chunk = file.file.read(1024 * 1024)  # 1MB chunks
                if not chunk:
                    break
                bytes_written += len(chunk)
                if bytes_written > max_bytes:
                    raise ValidationGap(
                        f"File too large. Max is {settings.MAX_UPLOAD_MB}MB.",
                        status_code=413,
                    )
                out.write(chunk)
    except ValidationGap:
        delete_object(key)
        raise
    except OSError as e:
        delete_object(key)
        raise StorageFailure(f"Photo upload failed: {e}")

    logger.info("Stored object %s (%d bytes)", key, bytes_written)
    return key, bytes_written


def delete_object(key: str) -> None:
    path = resolve_key(key)
    if not os.path.exists(path):
        return
    try:
        os.remove(path)
    except OSError:
        logger.exception("Could not remove object %s", key)
