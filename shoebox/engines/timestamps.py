"""Parsing of the timestamp formats produced by metadata sources.

All parsers return naive local datetimes, or None when the input is absent
or malformed. None of them raise.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional


METADATA_FORMATS = (
    "%Y:%m:%d %H:%M:%S",
    "%Y:%m:%d",
)

INDEX_FORMAT = "%Y-%m-%d %H:%M:%S %z"


def _clean(value: Optional[str]) -> str:
    if not value:
        return ""
    return value.replace("\x00", "").strip()


def to_local_naive(value: datetime) -> datetime:
    """Drop timezone info, converting aware values to local time first."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def parse_metadata_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse ``YYYY:MM:DD HH:MM:SS`` or ``YYYY:MM:DD``."""
    text = _clean(value)
    if not text:
        return None
    for fmt in METADATA_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_gps_date_stamp(value: Optional[str]) -> Optional[datetime]:
    """GPS date stamps carry no time of day; they resolve to midnight."""
    text = _clean(value)
    if not text:
        return None
    return parse_metadata_timestamp(f"{text} 00:00:00")


def parse_index_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a content-index value.

    Accepts ``YYYY-MM-DD HH:MM:SS +ZZZZ`` and ISO 8601 (with or without
    fractional seconds). The literal ``(null)`` placeholder yields None.
    """
    text = _clean(value)
    if not text or text == "(null)":
        return None
    try:
        return to_local_naive(datetime.strptime(text, INDEX_FORMAT))
    except ValueError:
        pass
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return to_local_naive(datetime.fromisoformat(text))
    except ValueError:
        return None


def coerce_timestamp(value: object) -> Optional[datetime]:
    """Accept a datetime or any of the supported textual formats."""
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, str):
        return parse_metadata_timestamp(value) or parse_index_timestamp(value)
    return None
