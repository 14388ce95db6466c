from __future__ import annotations

import mimetypes
import os

from poster_fusion.errors import InvalidUpload
from poster_fusion.imaging.raster import ImageObject


def _safe_filename(name: str) -> str:
    # Only used for labelling and MIME guessing; never touches the filesystem.
    return os.path.basename(name).replace("..", "_")


def image_from_upload(filename: str | None, content_type: str | None, data: bytes) -> ImageObject:
    """
    Wrap an uploaded file as an ImageObject. The declared content type wins; the
    filename extension is the fallback.
    """
    name = _safe_filename(filename or "upload.bin")
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    if not mime or mime == "application/octet-stream":
        mime = mimetypes.guess_type(name)[0] or ""
    if not mime.startswith("image/"):
        raise InvalidUpload(f"{name} is not an image (content type {mime or 'unknown'})")
    if not data:
        raise InvalidUpload(f"{name} is empty")
    return ImageObject(data=data, mime_type=mime)
