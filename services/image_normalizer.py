"""Image normalizer service.

Turns an uploaded artwork image into the two encodings the catalog keeps:
a size-capped JPEG of the original (sent to the analysis model and served
for full display) and a small JPEG thumbnail. Validation of the declared
MIME type and payload size happens before any decoding.

Public class: `ImageNormalizer`

Example:
    normalizer = ImageNormalizer()
    image = normalizer.normalize(raw_bytes, "image/png")
    image.primary_b64  # base64 JPEG for the model
"""
from __future__ import annotations

import base64
import io
import warnings
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from models.errors import InvalidImageError
from utils.media_validation import MAX_UPLOAD_BYTES, decode_base64_image, validate_image_upload


@dataclass(frozen=True)
class NormalizedImage:
    """Result of normalizing one upload."""

    primary: bytes
    thumbnail: bytes
    width: int
    height: int

    @property
    def primary_b64(self) -> str:
        return base64.b64encode(self.primary).decode("utf-8")


class ImageNormalizer:
    """Validate, re-encode and thumbnail uploaded images.

    Args:
        max_dimension: Longest side allowed for the primary image.
        thumbnail_size: Bounding box for the thumbnail; aspect ratio is preserved.
        primary_quality: JPEG quality used for the primary image.
        thumbnail_quality: JPEG quality used for the thumbnail.
        max_bytes: Upload size ceiling in bytes.
        background: Color used when flattening images with alpha.
    """

    def __init__(
        self,
        max_dimension: int = 2048,
        thumbnail_size: Tuple[int, int] = (400, 400),
        primary_quality: int = 85,
        thumbnail_quality: int = 80,
        max_bytes: int = MAX_UPLOAD_BYTES,
        background: Tuple[int, int, int] | None = None,
    ):
        self.max_dimension = max_dimension
        self.thumbnail_size = thumbnail_size
        self.primary_quality = primary_quality
        self.thumbnail_quality = thumbnail_quality
        self.max_bytes = max_bytes
        self.background = background or (255, 255, 255)

    def normalize(self, raw: bytes, mime_type: Optional[str]) -> NormalizedImage:
        """Validate and re-encode raw image bytes.

        Args:
            raw: Uploaded image bytes.
            mime_type: Declared MIME type of the upload.

        Returns:
            A `NormalizedImage` holding the primary JPEG and its thumbnail.

        Raises:
            InvalidInputError: If the MIME type is not an image type.
            PayloadTooLargeError: If the payload exceeds `max_bytes`.
            InvalidImageError: If the bytes cannot be decoded as an image.
        """
        validate_image_upload(mime_type, len(raw), self.max_bytes)
        src = self._open(raw)

        primary_img = src.copy()
        primary_img.thumbnail((self.max_dimension, self.max_dimension), Image.LANCZOS)
        primary = self._encode_jpeg(primary_img, self.primary_quality)

        thumb_img = src.copy()
        thumb_img.thumbnail(self.thumbnail_size, Image.LANCZOS)
        thumbnail = self._encode_jpeg(thumb_img, self.thumbnail_quality)

        return NormalizedImage(
            primary=primary,
            thumbnail=thumbnail,
            width=primary_img.width,
            height=primary_img.height,
        )

    def normalize_base64(self, data: str, mime_type: Optional[str] = None) -> NormalizedImage:
        """Normalize a bare base64 string or a `data:` URL.

        The declared `mime_type` wins over the one embedded in a data URL;
        bare base64 without a declared type is treated as JPEG.
        """
        raw, embedded_mime = decode_base64_image(data)
        return self.normalize(raw, mime_type or embedded_mime or "image/jpeg")

    def _open(self, raw: bytes) -> Image.Image:
        try:
            # Oversized pixel counts are refused before decoding, not just warned about.
            with warnings.catch_warnings():
                warnings.simplefilter("error", Image.DecompressionBombWarning)
                src = Image.open(io.BytesIO(raw))
                src.load()
        except (Image.DecompressionBombError, Image.DecompressionBombWarning) as exc:
            raise InvalidImageError("Image dimensions are too large to process") from exc
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise InvalidImageError("Uploaded bytes are not a supported image format") from exc

        src = ImageOps.exif_transpose(src)

        # Convert to RGBA to preserve alpha if present, then flatten to RGB
        src = src.convert("RGBA")
        background = Image.new("RGB", src.size, self.background)
        background.paste(src, mask=src.split()[3])
        return background

    @staticmethod
    def _encode_jpeg(img: Image.Image, quality: int) -> bytes:
        out_io = io.BytesIO()
        img.save(out_io, format="JPEG", quality=quality, optimize=True)
        return out_io.getvalue()
