"""Destination collision resolution.

Duplicates are detected purely by destination path: a planned path collides
if a file already exists there or another operation in the same plan already
claimed it (compared case-insensitively).
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


logger = logging.getLogger(__name__)

DUPLICATE_MARKER = "_duplicate_"


@dataclass(frozen=True, slots=True)
class CollisionResult:
    """Outcome of checking one candidate destination."""
    path: Path
    is_duplicate: bool = False
    original_path: Optional[Path] = None
    suffix: Optional[str] = None


def path_key(path: Path) -> str:
    return str(path).casefold()


def exists_case_insensitive(path: Path) -> bool:
    """True if ``path`` or a case variant of its name exists in its directory."""
    if path.exists():
        return True
    parent = path.parent
    if not parent.is_dir():
        return False
    wanted = path.name.casefold()
    try:
        return any(child.name.casefold() == wanted for child in parent.iterdir())
    except OSError:
        return False


def duplicate_candidate(path: Path, counter: int) -> Path:
    """``name.ext`` -> ``name_duplicate_<counter>.ext``."""
    if path.suffix:
        return path.with_name(f"{path.stem}{DUPLICATE_MARKER}{counter}{path.suffix}")
    return path.with_name(f"{path.name}{DUPLICATE_MARKER}{counter}")


class DuplicateResolver:
    """Registry of destination paths claimed during one plan-generation pass.

    All checks and claims are serialized by a lock so two files can never be
    handed the same synthesized name.
    """

    def __init__(self) -> None:
        self._claimed: set[str] = set()
        self._lock = threading.Lock()

    def reset(self) -> None:
        """Forget all claims; called at the start of every plan pass."""
        with self._lock:
            self._claimed.clear()

    def _taken(self, path: Path) -> bool:
        return path_key(path) in self._claimed or exists_case_insensitive(path)

    def check(self, destination: Path) -> CollisionResult:
        """Claim ``destination`` or the first free ``_duplicate_N`` variant."""
        with self._lock:
            if not self._taken(destination):
                self._claimed.add(path_key(destination))
                return CollisionResult(path=destination)

            counter = 1
            candidate = duplicate_candidate(destination, counter)
            while self._taken(candidate):
                counter += 1
                candidate = duplicate_candidate(destination, counter)

            self._claimed.add(path_key(candidate))
            logger.debug("Destination %s taken, using %s", destination, candidate.name)
            return CollisionResult(
                path=candidate,
                is_duplicate=True,
                original_path=destination,
                suffix=f"{DUPLICATE_MARKER}{counter}",
            )

    def claim(self, path: Path) -> None:
        """Register a path without checking it (e.g. a user-edited destination)."""
        with self._lock:
            self._claimed.add(path_key(path))

    def unclaim(self, path: Path) -> None:
        with self._lock:
            self._claimed.discard(path_key(path))

    def is_claimed(self, path: Path) -> bool:
        with self._lock:
            return path_key(path) in self._claimed

    @property
    def claimed_count(self) -> int:
        with self._lock:
            return len(self._claimed)
