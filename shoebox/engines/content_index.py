"""OS content-index queries (macOS Spotlight via ``mdls``)."""
from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional


logger = logging.getLogger(__name__)

INDEXED_DATE_ATTRIBUTES = (
    "kMDItemContentCreationDate",
    "kMDItemDateTimeOriginal",
)


def split_raw_output(output: str) -> list[str]:
    """Split ``mdls -raw`` output into individual values.

    Multiple attributes come back NUL-separated; unset ones as ``(null)``.
    """
    text = output.replace("(null)", "\x00(null)\x00")
    parts = text.replace("\n", "\x00").split("\x00")
    return [part.strip() for part in parts if part.strip()]


class MdlsContentIndex:
    """Queries the Spotlight index for capture/creation dates.

    The index is pre-computed, so this is cheap and avoids parsing RAW
    containers directly. Where ``mdls`` is unavailable every query returns
    an empty list.
    """

    def __init__(self, timeout: float = 10.0, executable: Optional[str] = None):
        self._timeout = timeout
        self._executable = executable or shutil.which("mdls")

    def query_indexed_dates(self, path: Path) -> list[str]:
        if self._executable is None:
            return []

        args = [self._executable]
        for attribute in INDEXED_DATE_ATTRIBUTES:
            args.extend(["-name", attribute])
        args.extend(["-raw", str(path)])

        try:
            result = subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug("mdls failed for %s: %s", path, exc)
            return []

        if result.returncode != 0:
            return []
        return split_raw_output(result.stdout)


class NullContentIndex:
    """Content index that never knows anything."""

    def query_indexed_dates(self, path: Path) -> list[str]:
        return []
