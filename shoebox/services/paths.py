"""Destination layout: ``<root>/<YYYY>/<MM-DD>[ <event>]/<filename>``."""
from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Optional


UNSAFE_PATH_CHARS = re.compile(r'[/\\:*?"<>|]')
REPEATED_UNDERSCORES = re.compile(r"_+")


def sanitize_for_path(text: str) -> str:
    """Replace filesystem-unsafe characters with a single underscore."""
    sanitized = UNSAFE_PATH_CHARS.sub("_", text).strip()
    return REPEATED_UNDERSCORES.sub("_", sanitized)


def relative_path(base: Path, full: Path) -> Path:
    """``full`` relative to ``base``, or ``full`` unchanged if outside it."""
    try:
        return full.relative_to(base)
    except ValueError:
        return full


def _clean_event(event_label: Optional[str]) -> Optional[str]:
    if event_label is None:
        return None
    event = event_label.strip()
    return event or None


class DestinationPathBuilder:
    """Maps a date and optional event label to a destination path.

    Pure and deterministic; collision handling lives in the DuplicateResolver.
    """

    def __init__(self, destination_root: Path):
        self._root = destination_root

    @property
    def destination_root(self) -> Path:
        return self._root

    @staticmethod
    def folder_name(date: datetime, event_label: Optional[str] = None) -> str:
        name = f"{date.month:02d}-{date.day:02d}"
        event = _clean_event(event_label)
        if event:
            name = f"{name} {sanitize_for_path(event)}"
        return name

    def build_directory(self, date: datetime, event_label: Optional[str] = None) -> Path:
        return self._root / f"{date.year:04d}" / self.folder_name(date, event_label)

    def build(self, filename: str, date: datetime, event_label: Optional[str] = None) -> Path:
        return self.build_directory(date, event_label) / filename

    @staticmethod
    def describe(date: datetime, event_label: Optional[str] = None) -> str:
        """Human-readable ``YYYY/MM-DD Event`` (event left unsanitized)."""
        name = f"{date.month:02d}-{date.day:02d}"
        event = _clean_event(event_label)
        if event:
            name = f"{name} {event}"
        return f"{date.year:04d}/{name}"


def build_destination_path(
    destination_root: Path,
    filename: str,
    date: datetime,
    event_label: Optional[str] = None,
) -> Path:
    return DestinationPathBuilder(destination_root).build(filename, date, event_label)
