"""Directory scanning service."""
from __future__ import annotations

import logging
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, Optional

from ..core.exceptions import EnumerationError, ScanCancelled
from ..core.media_types import media_kind
from ..core.models import DiscoveredFile, ScanProgress


logger = logging.getLogger(__name__)

ScanProgressCallback = Callable[[ScanProgress], None]

# Directories that behave like opaque files on macOS
PACKAGE_SUFFIXES = frozenset({
    ".app", ".bundle", ".framework", ".plugin", ".kext", ".pkg",
    ".photoslibrary", ".aplibrary", ".migratedphotolibrary",
    ".imovielibrary", ".fcpbundle", ".lrdata", ".lrlibrary",
    ".musiclibrary", ".tvlibrary", ".xcodeproj",
})


def is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


def is_package(path: Path) -> bool:
    return path.suffix.lower() in PACKAGE_SUFFIXES


class DirectoryScanner:
    """Walks a directory tree and collects supported media files.

    Cancellation is cooperative: ``cancel()`` may be called from any thread
    and takes effect before the next entry is examined. It stays in force,
    failing later scans too, until ``reset()`` is called.
    """

    def __init__(
        self,
        progress_interval: float = 0.1,
        skip_hidden: bool = True,
        skip_packages: bool = True,
        follow_symlinks: bool = False,
    ):
        """Initialize the scanner.

        Args:
            progress_interval: Minimum seconds between progress callbacks.
            skip_hidden: Ignore entries whose name starts with a dot.
            skip_packages: Do not descend into package-like directories.
            follow_symlinks: Whether to follow symbolic links.
        """
        self._interval = progress_interval
        self._skip_hidden = skip_hidden
        self._skip_packages = skip_packages
        self._follow_symlinks = follow_symlinks
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    def reset(self) -> None:
        self._cancelled.clear()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def scan(
        self,
        root: Path,
        progress_callback: Optional[ScanProgressCallback] = None,
        include_dirs: Optional[set[Path]] = None,
    ) -> list[DiscoveredFile]:
        """Scan ``root`` and return every supported media file beneath it.

        Args:
            root: Directory to scan.
            progress_callback: Receives ScanProgress copies, throttled to the
                progress interval, plus once at completion.
            include_dirs: If given, only files directly inside one of these
                directories are returned.

        Raises:
            EnumerationError: ``root`` cannot be opened.
            ScanCancelled: ``cancel()`` was called during the scan.
        """
        progress = ScanProgress()
        last_report = time.monotonic()

        def report(force: bool = False) -> None:
            nonlocal last_report
            if progress_callback is None:
                return
            now = time.monotonic()
            if force or now - last_report >= self._interval:
                progress.last_update = datetime.now()
                progress_callback(progress.snapshot())
                last_report = now

        discovered: list[DiscoveredFile] = []
        for item in self.iter_files(root, progress, report):
            if include_dirs is not None and item.parent_path not in include_dirs:
                continue
            discovered.append(item)
        if self._cancelled.is_set():
            raise ScanCancelled()

        report(force=True)
        logger.info(
            "Scanned %s: %d media files in %d directories",
            root, progress.files_found, progress.directories_scanned,
        )
        return discovered

    def iter_files(
        self,
        root: Path,
        progress: Optional[ScanProgress] = None,
        report: Optional[Callable[[], None]] = None,
    ) -> Iterator[DiscoveredFile]:
        """Yield DiscoveredFile records in depth-first, name-sorted order."""
        progress = progress if progress is not None else ScanProgress()
        entries = self._open_root(root)
        yield from self._walk(root, entries, progress, report)

    def _open_root(self, root: Path) -> list[Path]:
        if not root.exists():
            raise EnumerationError(root, "no such directory")
        if not root.is_dir():
            raise EnumerationError(root, "not a directory")
        try:
            return sorted(root.iterdir())
        except OSError as exc:
            raise EnumerationError(root, exc.strerror or str(exc)) from exc

    def _walk(
        self,
        directory: Path,
        entries: list[Path],
        progress: ScanProgress,
        report: Optional[Callable[[], None]],
    ) -> Iterator[DiscoveredFile]:
        for entry in entries:
            if self._cancelled.is_set():
                raise ScanCancelled()

            if self._skip_hidden and is_hidden(entry):
                continue
            if entry.is_symlink() and not self._follow_symlinks:
                continue

            if entry.is_dir():
                if self._skip_packages and is_package(entry):
                    continue
                progress.directories_scanned += 1
                progress.current_directory = entry.name
                if report:
                    report()
                try:
                    children = sorted(entry.iterdir())
                except OSError as exc:
                    logger.debug("Skipping unreadable directory %s: %s", entry, exc)
                    progress.skipped += 1
                    continue
                yield from self._walk(entry, children, progress, report)
                continue

            kind = media_kind(entry.suffix)
            if kind is None or not entry.is_file():
                continue

            try:
                size = entry.stat().st_size
            except OSError as exc:
                logger.debug("Skipping unreadable file %s: %s", entry, exc)
                progress.skipped += 1
                continue

            progress.files_found += 1
            progress.current_file = entry.name
            yield DiscoveredFile(
                path=entry,
                kind=kind,
                parent_name=directory.name,
                parent_path=directory,
                size_bytes=size,
            )
            if report:
                report()
