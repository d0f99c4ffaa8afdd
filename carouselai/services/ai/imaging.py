"""
Image helpers: aspect ratio mapping, source ratio detection, data URIs.
"""
import base64
import binascii
import io
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from carouselai.core.exceptions import ValidationError
from carouselai.domain.schemas.slide import AspectRatio

API_ASPECT_RATIOS = {
    AspectRatio.SQUARE: "1:1",
    AspectRatio.PORTRAIT: "4:5",
    AspectRatio.STORY: "9:16",
    AspectRatio.LANDSCAPE: "16:9",
}

# Ratios the image API accepts for image-to-image calls, width / height
SUPPORTED_API_RATIOS = [
    ("1:1", 1.0),
    ("4:5", 0.8),
    ("9:16", 0.5625),
    ("16:9", 1.778),
    ("3:4", 0.75),
    ("4:3", 1.333),
    ("2:3", 0.667),
    ("3:2", 1.5),
]


def api_aspect_ratio(ratio: AspectRatio) -> str:
    """Convert a slide aspect ratio ("4/5") to API notation ("4:5")."""
    return API_ASPECT_RATIOS.get(AspectRatio(ratio), "1:1")


def closest_api_ratio(ratio: float) -> str:
    """Supported API ratio nearest to ``ratio``; ties keep the earlier entry."""
    closest_name, closest_value = SUPPORTED_API_RATIOS[0]
    min_diff = abs(ratio - closest_value)
    for name, value in SUPPORTED_API_RATIOS:
        diff = abs(ratio - value)
        if diff < min_diff:
            min_diff = diff
            closest_name = name
    return closest_name


def detect_api_ratio(data: bytes) -> str:
    """Closest API ratio for an encoded image."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            width, height = image.size
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError("Uploaded file is not a readable image", field="image") from e

    if not height:
        return "1:1"
    return closest_api_ratio(width / height)


def parse_data_uri(uri: str) -> Tuple[str, bytes]:
    """Split a ``data:<mime>;base64,<payload>`` URI into mime type and bytes."""
    if not uri or not uri.startswith("data:") or "," not in uri:
        raise ValidationError("Expected a base64 data URI", field="image_url")

    header, payload = uri.split(",", 1)
    mime_type = header[len("data:"):].split(";", 1)[0] or "image/png"
    try:
        return mime_type, base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("Malformed base64 payload", field="image_url") from e


def to_data_uri(data: bytes, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
