"""Metadata readers: Pillow (with the HEIF plugin) for image EXIF, hachoir for video containers."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from PIL import Image
from hachoir.core import config as hachoir_config
from hachoir.metadata import extractMetadata
from hachoir.parser import createParser
from pillow_heif import register_heif_opener

from ..core.protocols import ContainerMetadata, ImageMetadata


logger = logging.getLogger(__name__)

# hachoir prints parser warnings to stderr by default
hachoir_config.quiet = True

# Lets Image.open read HEIC/HEIF, which plain Pillow cannot
register_heif_opener()

EXIF_IFD_POINTER = 0x8769
GPS_IFD_POINTER = 0x8825

TAG_DATETIME = 0x0132            # IFD0 DateTime
TAG_DATETIME_ORIGINAL = 0x9003   # Exif DateTimeOriginal
TAG_DATETIME_DIGITIZED = 0x9004  # Exif DateTimeDigitized
TAG_GPS_DATESTAMP = 0x001D       # GPS GPSDateStamp

# QuickTime stores an unset creation date as zero seconds since 1904-01-01
QUICKTIME_EPOCH = datetime(1904, 1, 1)


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    text = str(value).replace("\x00", "").strip()
    return text or None


class PillowImageMetadataReader:
    """Reads EXIF date fields with Pillow without decoding pixel data."""

    def read_image_metadata(self, path: Path) -> ImageMetadata:
        try:
            with Image.open(path) as img:
                exif = img.getexif()
                exif_ifd = exif.get_ifd(EXIF_IFD_POINTER)
                gps_ifd = exif.get_ifd(GPS_IFD_POINTER)
                # Some writers put the Exif tags straight into IFD0
                return ImageMetadata(
                    capture_time=_as_text(
                        exif_ifd.get(TAG_DATETIME_ORIGINAL, exif.get(TAG_DATETIME_ORIGINAL))
                    ),
                    digitized_time=_as_text(
                        exif_ifd.get(TAG_DATETIME_DIGITIZED, exif.get(TAG_DATETIME_DIGITIZED))
                    ),
                    generic_date=_as_text(exif.get(TAG_DATETIME)),
                    gps_date_stamp=_as_text(gps_ifd.get(TAG_GPS_DATESTAMP)),
                )
        except Exception as exc:
            logger.debug("No image metadata for %s: %s", path, exc)
            return ImageMetadata()


def _first_date(values: list[Any]) -> Optional[datetime]:
    for value in values:
        if isinstance(value, datetime) and value.replace(tzinfo=None) > QUICKTIME_EPOCH:
            return value
    return None


class HachoirContainerMetadataReader:
    """Reads creation dates from video containers (MP4, MOV, AVI, MKV)."""

    def read_container_metadata(self, path: Path) -> ContainerMetadata:
        try:
            parser = createParser(str(path))
        except Exception as exc:
            logger.debug("Cannot open container %s: %s", path, exc)
            return ContainerMetadata()
        if not parser:
            return ContainerMetadata()

        try:
            with parser:
                metadata = extractMetadata(parser)
                if metadata is None:
                    return ContainerMetadata()
                creation = _first_date(metadata.getValues("creation_date"))
                common = None
                if hasattr(metadata, "iterGroups"):
                    for group in metadata.iterGroups():
                        common = _first_date(group.getValues("creation_date"))
                        if common is not None:
                            break
                return ContainerMetadata(creation_time=creation, common_creation_time=common)
        except Exception as exc:
            logger.debug("Container metadata extraction failed for %s: %s", path, exc)
            return ContainerMetadata()
