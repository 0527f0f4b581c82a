"""Dates and event labels parsed out of directory names.

``"2024-06-15 Beach Vacation"`` yields the date 2024-06-15 and the event
label ``"Beach Vacation"``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional


class FolderDateFormat(Enum):
    ISO_DATE = "iso-date"            # YYYY-MM-DD
    COMPACT_DATE = "compact-date"    # YYYYMMDD
    YEAR_MONTH = "year-month"        # YYYY-MM
    US_DATE = "us-date"              # MM-DD-YYYY
    US_DATE_SLASH = "us-date-slash"  # MM/DD/YYYY
    US_DATE_DOT = "us-date-dot"      # MM.DD.YYYY


@dataclass(frozen=True, slots=True)
class FolderDate:
    """A date found in a directory name."""
    date: datetime
    format: FolderDateFormat
    has_day: bool
    matched: str


@dataclass(frozen=True, slots=True)
class _DatePattern:
    regex: re.Pattern
    format: FolderDateFormat
    order: str  # group order: "ymd" or "mdy"
    has_day: bool


# First match wins; longer forms come before the ones they contain.
DATE_PATTERNS = (
    _DatePattern(re.compile(r"(\d{4})-(\d{2})-(\d{2})", re.ASCII), FolderDateFormat.ISO_DATE, "ymd", True),
    _DatePattern(re.compile(r"(\d{4})(\d{2})(\d{2})(?!\d)", re.ASCII), FolderDateFormat.COMPACT_DATE, "ymd", True),
    _DatePattern(re.compile(r"(\d{4})-(\d{2})(?!-\d)", re.ASCII), FolderDateFormat.YEAR_MONTH, "ym", False),
    _DatePattern(re.compile(r"(\d{2})-(\d{2})-(\d{4})", re.ASCII), FolderDateFormat.US_DATE, "mdy", True),
    _DatePattern(re.compile(r"(\d{2})/(\d{2})/(\d{4})", re.ASCII), FolderDateFormat.US_DATE_SLASH, "mdy", True),
    _DatePattern(re.compile(r"(\d{2})\.(\d{2})\.(\d{4})", re.ASCII), FolderDateFormat.US_DATE_DOT, "mdy", True),
)

# Removed from a name before what is left is taken as the event label.
STRIP_PATTERNS = tuple(
    re.compile(p, re.ASCII)
    for p in (
        r"\d{4}-\d{2}-\d{2}",
        r"\d{4}-\d{2}",
        r"\d{8}",
        r"\d{2}-\d{2}-\d{4}",
        r"\d{2}/\d{2}/\d{4}",
        r"\d{2}\.\d{2}\.\d{4}",
    )
)

MIN_YEAR = 1900
MAX_YEAR = 2100

# Midday keeps the calendar day stable under any timezone shift.
FOLDER_DATE_HOUR = 12

_SEPARATORS = " -_."


def _build_date(year: int, month: int, day: int) -> Optional[datetime]:
    if not (MIN_YEAR <= year <= MAX_YEAR and 1 <= month <= 12 and 1 <= day <= 31):
        return None
    try:
        return datetime(year, month, day, FOLDER_DATE_HOUR)
    except ValueError:
        # In range but not a real day, e.g. 2023-02-30
        return None


def parse_folder_date(name: str) -> Optional[FolderDate]:
    """Find the first valid date in a directory name.

    Patterns are tried in priority order; a pattern whose first match fails
    range validation is abandoned and the next pattern is tried.
    """
    for pattern in DATE_PATTERNS:
        match = pattern.regex.search(name)
        if not match:
            continue

        groups = [int(g) for g in match.groups()]
        if pattern.order == "ymd":
            year, month, day = groups
        elif pattern.order == "ym":
            (year, month), day = groups, 1
        else:
            month, day, year = groups

        date = _build_date(year, month, day)
        if date is not None:
            return FolderDate(
                date=date,
                format=pattern.format,
                has_day=pattern.has_day,
                matched=match.group(0),
            )
    return None


def _clean_label(text: str) -> str:
    text = text.replace("_", " ").strip(_SEPARATORS)
    text = re.sub(r" {2,}", " ", text)
    if text.startswith("- "):
        text = text[2:]
    elif text.startswith("-"):
        text = text[1:]
    return text.strip()


def extract_event_label(name: str) -> Optional[str]:
    """Whatever remains of a directory name once date fragments are removed."""
    remaining = name
    for pattern in STRIP_PATTERNS:
        remaining = pattern.sub("", remaining)
    label = _clean_label(remaining)
    return label or None


def suggest_event_labels(names: Iterable[str]) -> dict[str, str]:
    """Map each directory name to its label, omitting names without one."""
    suggestions: dict[str, str] = {}
    for name in names:
        label = extract_event_label(name)
        if label is not None:
            suggestions[name] = label
    return suggestions


def group_by_event_label(names: Iterable[str]) -> dict[Optional[str], list[str]]:
    """Partition directory names by label; unlabelled ones go under ``None``.

    Input order is kept within each group.
    """
    groups: dict[Optional[str], list[str]] = {}
    for name in names:
        groups.setdefault(extract_event_label(name), []).append(name)
    return groups
