"""Test helpers: generated media files and fake metadata sources."""
from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from PIL import Image

from shoebox.core.protocols import ContainerMetadata, ImageMetadata

TAG_DATETIME = 0x0132
EXIF_IFD_POINTER = 0x8769
TAG_DATETIME_ORIGINAL = 0x9003


def make_jpeg(path: Path, exif_datetime: Optional[str] = None, mtime: Optional[datetime] = None) -> Path:
    """Write a small JPEG, optionally with an IFD0 DateTime tag."""
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGB", (16, 16), color="red")
    if exif_datetime is not None:
        exif = Image.Exif()
        exif[TAG_DATETIME] = exif_datetime
        img.save(path, exif=exif)
    else:
        img.save(path)
    if mtime is not None:
        stamp = mtime.timestamp()
        os.utime(path, (stamp, stamp))
    return path


def make_heic(path: Path, capture_time: str) -> Path:
    """Write a small HEIC whose Exif IFD carries DateTimeOriginal.

    Needs the HEIF opener, which importing shoebox.engines.metadata registers.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    exif = Image.Exif()
    exif[EXIF_IFD_POINTER] = {TAG_DATETIME_ORIGINAL: capture_time}
    Image.new("RGB", (64, 64), color="blue").save(path, format="HEIF", exif=exif.tobytes())
    return path


def touch(path: Path, content: bytes = b"data") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


class FakeImageReader:
    """Returns canned image metadata, keyed by filename."""

    def __init__(self, by_name: Optional[dict[str, ImageMetadata]] = None, raises: bool = False):
        self.by_name = by_name or {}
        self.raises = raises
        self.calls: list[Path] = []

    def read_image_metadata(self, path: Path) -> ImageMetadata:
        self.calls.append(path)
        if self.raises:
            raise RuntimeError("corrupt container")
        return self.by_name.get(path.name, ImageMetadata())


class FakeContainerReader:
    def __init__(self, by_name: Optional[dict[str, ContainerMetadata]] = None):
        self.by_name = by_name or {}
        self.calls: list[Path] = []

    def read_container_metadata(self, path: Path) -> ContainerMetadata:
        self.calls.append(path)
        return self.by_name.get(path.name, ContainerMetadata())


class FakeContentIndex:
    def __init__(self, by_name: Optional[dict[str, list[str]]] = None):
        self.by_name = by_name or {}
        self.calls: list[Path] = []

    def query_indexed_dates(self, path: Path) -> list[str]:
        self.calls.append(path)
        return list(self.by_name.get(path.name, []))


