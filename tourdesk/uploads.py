from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from pathlib import Path, PurePath

from .errors import ValidationError

logger = logging.getLogger(__name__)

MAX_IMAGE_SIZE = 10 * 1024 * 1024


@dataclass
class ImageUpload:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def check_image(upload: ImageUpload, max_size: int = MAX_IMAGE_SIZE) -> None:
    if not (upload.content_type or "").startswith("image/"):
        raise ValidationError.single("image", "Only image files are allowed!", upload.filename)
    if upload.size > max_size:
        raise ValidationError.single("image", f"Image must not exceed {max_size // (1024 * 1024)}MB", upload.filename)


def generate_filename(original_name: str, prefix: str = "tour") -> str:
    unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{prefix}-{unique_suffix}{PurePath(original_name).suffix}"


class LocalImageStorage:
    """Writes uploaded images below ``root/subdir`` and returns their public path."""

    def __init__(self, root: str | Path, subdir: str = "tours", url_prefix: str = "/images") -> None:
        self._directory = Path(root) / subdir
        self._subdir = subdir
        self._url_prefix = url_prefix.rstrip("/")

    @property
    def directory(self) -> Path:
        return self._directory

    def store(self, data: bytes, original_name: str) -> str:
        self._directory.mkdir(parents=True, exist_ok=True)
        filename = generate_filename(original_name)
        (self._directory / filename).write_bytes(data)
        logger.info("Image stored", extra={"image_file": filename, "size": len(data)})
        return f"{self._url_prefix}/{self._subdir}/{filename}"
