"""
Upload ingestion

Turns raw uploaded bytes into UploadItems the analysis calls can send.
Pillow decides what the file actually is; the browser's declared
content type is never trusted.
"""

import io
import base64
import logging
from dataclasses import dataclass

from PIL import Image

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 5 * 1024 * 1024
MAX_IMAGE_DIMENSION = 2000

# Pillow format -> media type accepted by the vision API as-is
PASSTHROUGH_FORMATS = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
}


class UploadError(ValueError):
    """An uploaded file cannot be used for analysis."""


@dataclass(frozen=True)
class UploadItem:
    """One uploaded screenshot, ready to send."""
    data: bytes
    media_type: str
    filename: str = ""

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("utf-8")

    def content_block(self) -> dict:
        """Anthropic image content block for this item."""
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": self.media_type,
                "data": self.to_base64(),
            },
        }


def _encode_image(img: Image.Image) -> tuple[bytes, str]:
    """Re-encode an image, PNG when it carries alpha, JPEG otherwise."""
    has_alpha = img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info)

    buffer = io.BytesIO()
    if has_alpha:
        img.convert("RGBA").save(buffer, format="PNG")
        return buffer.getvalue(), "image/png"

    if img.mode != "RGB":
        img = img.convert("RGB")
    img.save(buffer, format="JPEG", quality=92)
    return buffer.getvalue(), "image/jpeg"


def load_upload(
    data: bytes,
    filename: str = "",
    max_bytes: int = MAX_UPLOAD_BYTES,
    max_dimension: int = MAX_IMAGE_DIMENSION,
) -> UploadItem:
    """
    Validate an uploaded file and build an UploadItem from it.

    Images in a format the vision API accepts are passed through untouched
    unless their longest side exceeds max_dimension, in which case they are
    downscaled. Anything else Pillow can read is re-encoded.

    Args:
        data: Raw file bytes
        filename: Original filename, used for messages only
        max_bytes: Size limit for the raw upload
        max_dimension: Longest allowed side in pixels

    Returns:
        UploadItem with the media type of the bytes it holds

    Raises:
        UploadError: if the file is empty, too large, or not an image
    """
    label = filename or "upload"

    if not data:
        raise UploadError(f"{label} is empty")

    if len(data) > max_bytes:
        raise UploadError(
            f"{label} is {len(data) / (1024 * 1024):.1f} MB; the limit is {max_bytes // (1024 * 1024)} MB"
        )

    try:
        # verify() leaves the image unusable, so reopen afterwards
        with Image.open(io.BytesIO(data)) as probe:
            probe.verify()
        img = Image.open(io.BytesIO(data))
        img.load()
    except Exception as e:
        raise UploadError(f"{label} is not a readable image") from e

    image_format = img.format
    oversized = max(img.size) > max_dimension

    if image_format in PASSTHROUGH_FORMATS and not oversized:
        return UploadItem(data=data, media_type=PASSTHROUGH_FORMATS[image_format], filename=filename)

    if oversized:
        ratio = max_dimension / max(img.size)
        new_size = (max(1, int(img.width * ratio)), max(1, int(img.height * ratio)))
        logger.debug(f"Downscaling {label} from {img.width}x{img.height} to {new_size[0]}x{new_size[1]}")
        img = img.resize(new_size, Image.Resampling.LANCZOS)
    else:
        logger.debug(f"Re-encoding {label} from {image_format}")

    encoded, media_type = _encode_image(img)
    return UploadItem(data=encoded, media_type=media_type, filename=filename)
