# -*- coding: utf-8 -*-
"""Meals — image checks and on-disk photo storage."""

from __future__ import annotations

import hashlib
import io
import logging
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from ..errors import EmptyImage, InvalidImage

logger = logging.getLogger(__name__)

_FORMAT_MIME = {
    "JPEG": ("image/jpeg", ".jpg"),
    "PNG": ("image/png", ".png"),
    "WEBP": ("image/webp", ".webp"),
    "GIF": ("image/gif", ".gif"),
}


@dataclass(frozen=True)
class ImageInfo:
    mime: str
    extension: str
    sha256: str


def inspect_image(image_bytes: bytes) -> ImageInfo:
    """Check that the payload is a decodable image and describe it."""
    if not image_bytes:
        raise EmptyImage()
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            fmt = (img.format or "").upper()
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise InvalidImage(details={"reason": str(exc)}) from exc
    if fmt not in _FORMAT_MIME:
        raise InvalidImage(f"Unsupported image format: {fmt or 'unknown'}")
    mime, ext = _FORMAT_MIME[fmt]
    return ImageInfo(mime=mime, extension=ext, sha256=hashlib.sha256(image_bytes).hexdigest())


class ImageStore:
    """Stores meal photos under ``<root>/<user_id>/meal-images``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _user_dir(self, user_id: str) -> Path:
        return self.root / user_id / "meal-images"

    def save(self, user_id: str, image_bytes: bytes, info: ImageInfo) -> str:
        directory = self._user_dir(user_id)
        directory.mkdir(parents=True, exist_ok=True)
        filename = f"{info.sha256}{info.extension}"
        (directory / filename).write_bytes(image_bytes)
        return f"meal-images/{filename}"

    def path_for(self, user_id: str, image_reference: str) -> Path:
        name = Path(image_reference).name
        return self._user_dir(user_id) / name

    def discard(self, user_id: str, image_reference: str) -> None:
        fp = self.path_for(user_id, image_reference)
        try:
            fp.unlink()
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("failed to remove meal image %s", fp, exc_info=True)
