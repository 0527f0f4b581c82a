"""Resolution of a file's acquisition date from its metadata sources."""
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional

from ..core.config import DEFAULT_FRAGILE_RAW_EXTENSIONS, ShoeboxSettings
from ..core.models import DateSource, ExtractedDate, MediaKind
from ..core.protocols import (
    ContainerMetadataReader,
    ContentIndex,
    ImageMetadataReader,
)
from ..engines.content_index import MdlsContentIndex
from ..engines.metadata import HachoirContainerMetadataReader, PillowImageMetadataReader
from ..engines.timestamps import (
    coerce_timestamp,
    parse_gps_date_stamp,
    parse_index_timestamp,
    parse_metadata_timestamp,
)


logger = logging.getLogger(__name__)

NULL_PLACEHOLDER = "(null)"


class MetadataDateResolver:
    """Finds the most trustworthy date for a media file.

    Priority for images:
    1. Content index (fragile RAW extensions only)
    2. EXIF DateTimeOriginal
    3. EXIF DateTimeDigitized
    4. IFD0 DateTime
    5. GPS date stamp (midnight)

    Priority for videos:
    1. Container creation date
    2. Creation date among the shared metadata items
    3. Content index

    Both fall back to the file modification time (low confidence).
    """

    def __init__(
        self,
        image_reader: Optional[ImageMetadataReader] = None,
        container_reader: Optional[ContainerMetadataReader] = None,
        content_index: Optional[ContentIndex] = None,
        fragile_raw_extensions: Iterable[str] = DEFAULT_FRAGILE_RAW_EXTENSIONS,
    ):
        self._image_reader = image_reader or PillowImageMetadataReader()
        self._container_reader = container_reader or HachoirContainerMetadataReader()
        self._content_index = content_index or MdlsContentIndex()
        self._fragile = frozenset(ext.lower().lstrip(".") for ext in fragile_raw_extensions)

    @classmethod
    def from_settings(cls, settings: ShoeboxSettings) -> "MetadataDateResolver":
        return cls(
            content_index=MdlsContentIndex(timeout=settings.index_timeout),
            fragile_raw_extensions=settings.fragile_raw_extensions,
        )

    def is_fragile(self, path: Path) -> bool:
        return path.suffix.lower().lstrip(".") in self._fragile

    def resolve(self, path: Path, kind: MediaKind) -> Optional[ExtractedDate]:
        """Return the first usable date, or None if the file does not exist."""
        if not path.exists():
            return None

        if kind is MediaKind.IMAGE:
            extracted = self.resolve_image(path)
        else:
            extracted = self.resolve_video(path)

        if extracted is not None:
            return extracted
        return self.file_modification_date(path)

    def resolve_image(self, path: Path) -> Optional[ExtractedDate]:
        if self.is_fragile(path):
            extracted = self._from_content_index(path, DateSource.PRIMARY_CAPTURE_TIME)
            if extracted is not None:
                return extracted
        return self._from_image_metadata(path)

    def resolve_video(self, path: Path) -> Optional[ExtractedDate]:
        try:
            metadata = self._container_reader.read_container_metadata(path)
        except Exception as exc:
            logger.debug("Container reader failed for %s: %s", path, exc)
            metadata = None

        if metadata is not None:
            for value in (metadata.creation_time, metadata.common_creation_time):
                timestamp = coerce_timestamp(value)
                if timestamp is not None:
                    return ExtractedDate(timestamp, DateSource.VIDEO_CREATION_TIME)

        return self._from_content_index(path, DateSource.VIDEO_CREATION_TIME)

    def _from_image_metadata(self, path: Path) -> Optional[ExtractedDate]:
        try:
            metadata = self._image_reader.read_image_metadata(path)
        except Exception as exc:
            logger.debug("Image reader failed for %s: %s", path, exc)
            return None

        fields: tuple[tuple[Optional[str], DateSource, Callable[[Optional[str]], Optional[datetime]]], ...] = (
            (metadata.capture_time, DateSource.PRIMARY_CAPTURE_TIME, parse_metadata_timestamp),
            (metadata.digitized_time, DateSource.DIGITIZED_TIME, parse_metadata_timestamp),
            (metadata.generic_date, DateSource.CONTAINER_CREATE_TIME, parse_metadata_timestamp),
            (metadata.gps_date_stamp, DateSource.CONTAINER_CREATE_TIME, parse_gps_date_stamp),
        )
        for raw, source, parse in fields:
            timestamp = parse(raw)
            if timestamp is not None:
                return ExtractedDate(timestamp, source)
        return None

    def _from_content_index(self, path: Path, source: DateSource) -> Optional[ExtractedDate]:
        try:
            values = self._content_index.query_indexed_dates(path)
        except Exception as exc:
            logger.debug("Content index query failed for %s: %s", path, exc)
            return None

        for raw in values:
            if raw.strip() == NULL_PLACEHOLDER:
                continue
            timestamp = parse_index_timestamp(raw)
            if timestamp is not None:
                return ExtractedDate(timestamp, source)
        return None

    @staticmethod
    def file_modification_date(path: Path) -> Optional[ExtractedDate]:
        try:
            mtime = path.stat().st_mtime
        except OSError:
            return None
        return ExtractedDate(datetime.fromtimestamp(mtime), DateSource.FILE_MODIFIED_TIME)
