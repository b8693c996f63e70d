"""
Decoding of model image payloads into storable JPEG bytes.
"""
import base64
import binascii
import logging
from dataclasses import dataclass
from io import BytesIO
from PIL import Image, UnidentifiedImageError

from .errors import ProviderError

LOG = logging.getLogger(__name__)

JPEG_CONTENT_TYPE = "image/jpeg"


@dataclass
class GeneratedArtifact:
    data: bytes
    content_type: str = JPEG_CONTENT_TYPE


def decode_image_payload(payload: str) -> bytes:
    """Strict base64 decode; malformed payloads come from the model response."""
    if not payload:
        raise ProviderError("Empty image payload received from Gemini")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ProviderError(f"Malformed image payload received from Gemini: {e}") from e


def to_jpeg(data: bytes, quality: int = 92) -> bytes:
    """Re-encode any Pillow-readable image as RGB JPEG."""
    try:
        with Image.open(BytesIO(data)) as img:
            if img.format == "JPEG":
                return data
            rgb = img.convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise ProviderError("Image payload from Gemini is not a readable image") from e

    output = BytesIO()
    rgb.save(output, format="JPEG", quality=quality, optimize=True)
    return output.getvalue()


def build_artifact(payload: str) -> GeneratedArtifact:
    raw = decode_image_payload(payload)
    jpeg = to_jpeg(raw)
    LOG.info("Decoded image payload: %d bytes -> %d bytes JPEG", len(raw), len(jpeg))
    return GeneratedArtifact(data=jpeg)
