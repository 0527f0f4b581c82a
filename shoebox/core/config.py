"""Settings model and its JSON-backed store."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import FrozenSet, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator


logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SHOEBOX_CONFIG"

DEFAULT_FRAGILE_RAW_EXTENSIONS = frozenset({
    "cr2", "cr3", "crw", "raw", "rw2", "raf", "nef", "arw", "dng", "orf", "pef", "srw",
})


class ShoeboxSettings(BaseModel):
    """User-level settings.

    ``last_destination`` is the remembered destination directory; it is loaded
    when a workflow is constructed and survives workflow resets.
    """
    last_destination: Optional[Path] = Field(
        default=None,
        description="Destination directory used by the previous session",
    )
    progress_interval: float = Field(
        default=0.1,
        ge=0.0,
        description="Minimum seconds between scan progress callbacks",
    )
    skip_hidden: bool = Field(
        default=True,
        description="Ignore dot-files and dot-directories while scanning",
    )
    skip_packages: bool = Field(
        default=True,
        description="Do not descend into package-like directories (e.g. Photos.photoslibrary)",
    )
    fragile_raw_extensions: FrozenSet[str] = Field(
        default=DEFAULT_FRAGILE_RAW_EXTENSIONS,
        description="RAW extensions for which the content index is queried first",
    )
    index_timeout: float = Field(
        default=10.0,
        gt=0.0,
        description="Seconds to wait for the content-index query process",
    )

    @field_validator("last_destination")
    @classmethod
    def expand_destination(cls, value: Optional[Path]) -> Optional[Path]:
        if value is None:
            return None
        return value.expanduser().resolve()

    @field_validator("fragile_raw_extensions")
    @classmethod
    def normalize_extensions(cls, value: FrozenSet[str]) -> FrozenSet[str]:
        return frozenset(ext.lower().lstrip(".") for ext in value)


def default_settings_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "shoebox" / "settings.json"


class SettingsStore:
    """Loads and saves ShoeboxSettings as JSON.

    A missing or unreadable file yields defaults; it is never an error.
    """

    def __init__(self, path: Optional[Path] = None):
        self._path = path or default_settings_path()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ShoeboxSettings:
        if not self._path.exists():
            return ShoeboxSettings()
        try:
            return ShoeboxSettings.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", self._path, exc)
            return ShoeboxSettings()

    def save(self, settings: ShoeboxSettings) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(settings.model_dump_json(indent=2), encoding="utf-8")


class MemorySettingsStore:
    """In-process store, used when nothing should touch the user's config."""

    def __init__(self, settings: Optional[ShoeboxSettings] = None):
        self._settings = settings or ShoeboxSettings()

    def load(self) -> ShoeboxSettings:
        return self._settings.model_copy()

    def save(self, settings: ShoeboxSettings) -> None:
        self._settings = settings.model_copy()
