"""Supported media extensions and classification helpers."""
from __future__ import annotations

from typing import Optional

from .models import MediaKind


IMAGE_EXTENSIONS = frozenset({
    "jpg", "jpeg", "png", "heic", "gif", "bmp", "tiff", "tif",
    "crw", "cr2", "cr3", "raw", "rw2", "raf",
})

VIDEO_EXTENSIONS = frozenset({
    "mp4", "mov", "avi", "mkv", "m4v",
})

SUPPORTED_EXTENSIONS = IMAGE_EXTENSIONS | VIDEO_EXTENSIONS


def normalize_extension(extension: str) -> str:
    """Lowercase an extension and drop any leading dot."""
    return extension.lower().lstrip(".")


def media_kind(extension: str) -> Optional[MediaKind]:
    """Classify an extension (``"JPG"``, ``".mov"``...) as image or video."""
    ext = normalize_extension(extension)
    if ext in IMAGE_EXTENSIONS:
        return MediaKind.IMAGE
    if ext in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    return None


def is_supported(extension: str) -> bool:
    return normalize_extension(extension) in SUPPORTED_EXTENSIONS
