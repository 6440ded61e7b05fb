"""Image ingestion: validate an upload and persist it under the uploads dir."""
import logging
import os
import time
from typing import Optional

import config
from errors import ValidationError
from schemas import StoredImage

logger = logging.getLogger(__name__)


def validate_image(content_type: Optional[str], size: int, max_bytes: Optional[int] = None) -> None:
    limit = config.MAX_UPLOAD_BYTES if max_bytes is None else max_bytes
    if not content_type or not content_type.startswith("image/"):
        raise ValidationError("Only image files are allowed!")
    if size > limit:
        raise ValidationError("File upload error", details=f"File too large (limit {limit} bytes)")


def stored_name(original_filename: str, now_ms: Optional[int] = None) -> str:
    """``<epoch millis>-<basename>``; directory parts of the client name are dropped."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    base = os.path.basename((original_filename or "").replace("\\", "/")) or "image"
    return f"{now_ms}-{base}"


def save_image(
    data: bytes,
    original_filename: str,
    content_type: Optional[str],
    uploads_dir: Optional[str] = None,
    max_bytes: Optional[int] = None,
) -> StoredImage:
    validate_image(content_type, len(data), max_bytes)

    directory = uploads_dir or config.UPLOADS_DIR
    os.makedirs(directory, exist_ok=True)

    name = stored_name(original_filename)
    stem, ext = os.path.splitext(name)
    path = os.path.join(directory, name)
    attempt = 0
    while True:
        try:
            # exclusive create: a same-millisecond upload of the same name gets a suffix
            with open(path, "xb") as fh:
                fh.write(data)
            break
        except FileExistsError:
            attempt += 1
            path = os.path.join(directory, f"{stem}-{attempt}{ext}")

    logger.info("Stored upload %s (%d bytes) at %s", original_filename, len(data), path)
    return StoredImage(name=original_filename, path=path, size=len(data))
