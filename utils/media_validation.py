"""Validation helpers for uploaded artwork images."""

import base64
import binascii
import os
import re
from typing import Optional, Tuple

from fastapi import UploadFile

from models.errors import InvalidInputError, PayloadTooLargeError

MAX_UPLOAD_BYTES = int(float(os.getenv("UPLOAD_MAX_MB", "10")) * 1024 * 1024)

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[\w=.+-]+)*;base64,(?P<data>.*)$", re.DOTALL)


def normalize_mime_type(mime_type: Optional[str]) -> str:
    """Lower-case a MIME type and drop any parameters."""
    return (mime_type or "").lower().split(";", 1)[0].strip()


def validate_image_upload(mime_type: Optional[str], size: int, max_bytes: int = MAX_UPLOAD_BYTES) -> None:
    """Reject non-image MIME types, empty payloads and oversized payloads.

    Raises:
        InvalidInputError: If the MIME type is not an image type or the payload is empty.
        PayloadTooLargeError: If `size` exceeds `max_bytes`.
    """
    content_type = normalize_mime_type(mime_type)
    if not content_type.startswith("image/"):
        raise InvalidInputError(f"Only image files are allowed (got {mime_type or 'no content type'}).")
    if size <= 0:
        raise InvalidInputError("Uploaded image is empty.")
    if size > max_bytes:
        raise PayloadTooLargeError(size, max_bytes)


def decode_base64_image(data: str) -> Tuple[bytes, Optional[str]]:
    """Decode a bare base64 string or a `data:` URL.

    Returns:
        A tuple of `(raw_bytes, mime_type)`; `mime_type` is None for bare base64.

    Raises:
        InvalidInputError: If the payload is not valid base64.
    """
    text = (data or "").strip()
    if not text:
        raise InvalidInputError("Image data is required.")

    mime_type: Optional[str] = None
    match = _DATA_URL.match(text)
    if match:
        mime_type = match.group("mime")
        text = match.group("data")

    try:
        raw = base64.b64decode("".join(text.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidInputError("Image data is not valid base64.") from exc
    return raw, mime_type


async def read_image_upload(upload: UploadFile, max_bytes: int = MAX_UPLOAD_BYTES) -> Tuple[bytes, str]:
    """Read a multipart image upload after validating its declared type and size.

    Returns:
        A tuple of `(raw_bytes, mime_type)`.
    """
    mime_type = normalize_mime_type(upload.content_type)
    if not mime_type.startswith("image/"):
        raise InvalidInputError(f"Only image files are allowed (got {upload.content_type or 'no content type'}).")
    # Read one byte past the ceiling so oversized bodies are detected without buffering them whole.
    raw = await upload.read(max_bytes + 1)
    validate_image_upload(mime_type, len(raw), max_bytes)
    return raw, mime_type
