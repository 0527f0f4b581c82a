"""Protocol definitions (interfaces) for dependency injection."""
from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol, Union

from .config import ShoeboxSettings


@dataclass(frozen=True, slots=True)
class ImageMetadata:
    """Raw date fields read from an image's metadata container."""
    capture_time: Optional[str] = None
    digitized_time: Optional[str] = None
    generic_date: Optional[str] = None
    gps_date_stamp: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ContainerMetadata:
    """Date fields read from a video container.

    ``creation_time`` is the structured creation date; ``common_creation_time``
    is a creation-date value found among the shared metadata items.
    """
    creation_time: Union[datetime, str, None] = None
    common_creation_time: Union[datetime, str, None] = None


class ImageMetadataReader(Protocol):
    """Reads date fields from an image file.

    Implementations:
    - PillowImageMetadataReader: EXIF via Pillow
    """

    @abstractmethod
    def read_image_metadata(self, path: Path) -> ImageMetadata:
        """Return whatever fields are present. Never raises for absent fields."""
        ...


class ContainerMetadataReader(Protocol):
    """Reads creation dates from a video container.

    Implementations:
    - HachoirContainerMetadataReader
    """

    @abstractmethod
    def read_container_metadata(self, path: Path) -> ContainerMetadata:
        ...


class ContentIndex(Protocol):
    """OS content-index lookup (pre-computed, cheap, best-effort).

    Implementations:
    - MdlsContentIndex: macOS Spotlight via ``mdls``
    """

    @abstractmethod
    def query_indexed_dates(self, path: Path) -> list[str]:
        """Raw date strings; may include ``"(null)"`` placeholders."""
        ...


class ProgressReporter(Protocol):
    """Interface for progress reporting."""

    @abstractmethod
    def start_phase(self, name: str, total: Optional[int]) -> None:
        """Start a new processing phase."""
        ...

    @abstractmethod
    def update_phase(
        self,
        completed: int,
        description: Optional[str] = None,
        total: Optional[int] = None,
    ) -> None:
        """Update progress."""
        ...

    @abstractmethod
    def end_phase(self) -> None:
        """Complete current phase."""
        ...

    @abstractmethod
    def info(self, message: str) -> None:
        ...

    @abstractmethod
    def warning(self, message: str) -> None:
        ...

    @abstractmethod
    def error(self, message: str) -> None:
        ...


class SettingsBackend(Protocol):
    """Load/save hooks for persisted settings."""

    def load(self) -> ShoeboxSettings:
        ...

    def save(self, settings: ShoeboxSettings) -> None:
        ...
