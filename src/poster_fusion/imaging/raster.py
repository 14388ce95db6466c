from __future__ import annotations

import hashlib
import io
import time
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from poster_fusion.config import settings
from poster_fusion.errors import DecodeError
from poster_fusion.imaging.geometry import dimensions_for

PNG_MIME = "image/png"

# Neutral gray; it is less likely to steer the model's palette than white or black.
BLANK_FILL = (128, 128, 128)


@dataclass(frozen=True)
class ImageObject:
    data: bytes
    mime_type: str

    @property
    def sha256(self) -> str:
        return hashlib.sha256(self.data).hexdigest()


def _pil_to_png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def decode(image: ImageObject) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(image.data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise DecodeError(f"could not decode {image.mime_type or 'image'} data") from exc
    return img


def blank_canvas(tag: str) -> ImageObject:
    """
    Solid mid-gray PNG at the aspect ratio's base size. It is sent first to the
    image model so the output inherits its dimensions; it is never shown.
    """
    size = dimensions_for(tag, settings.blank_canvas_edge)
    canvas = Image.new("RGB", size, BLANK_FILL)
    return ImageObject(data=_pil_to_png_bytes(canvas), mime_type=PNG_MIME)


def resize(image: ImageObject, width: int, height: int) -> bytes:
    """
    Stretch the image to exactly width x height (no letterboxing, no crop) and
    encode it as PNG. Raises DecodeError if the source bytes are not an image.
    """
    img = decode(image)
    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA" if "A" in img.getbands() or "transparency" in img.info else "RGB")
    resized = img.resize((width, height), Image.Resampling.LANCZOS)
    return _pil_to_png_bytes(resized)


def export_filename(tier: str, when: float | None = None) -> str:
    millis = int((time.time() if when is None else when) * 1000)
    slug = tier.lower().replace(" ", "-", 1)
    return f"poster-{slug}-{millis}.png"


def export_poster(image: ImageObject, tag: str, tier: str, when: float | None = None) -> tuple[str, bytes]:
    width, height = dimensions_for(tag, settings.quality_tiers[tier])
    return export_filename(tier, when), resize(image, width, height)
