"""Workflow orchestrator: drives one organize session from scan to execution."""
from __future__ import annotations

import logging
import os
import threading
from collections import OrderedDict
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional
from uuid import UUID, uuid4

from ..core.config import SettingsStore, ShoeboxSettings
from ..core.exceptions import EnumerationError, OperationCancelled, ScanCancelled, WorkflowError
from ..core.models import (
    CompletedOperation,
    DateConfidence,
    DateSource,
    DirectoryDateGroup,
    DirectoryEventGroup,
    DiscoveredFile,
    MediaFile,
    OperationProgress,
    OperationResult,
    OperationStatus,
    PlannedOperation,
    ProcessingStatus,
    ScanPhase,
    ScanProgress,
    SessionSnapshot,
    WorkflowState,
)
from ..core.protocols import SettingsBackend
from .date_resolver import MetadataDateResolver
from .deduplicator import DuplicateResolver, path_key
from .executor import BatchExecutor
from .folder_names import extract_event_label, parse_folder_date
from .paths import DestinationPathBuilder
from .scanner import DirectoryScanner


logger = logging.getLogger(__name__)

ScanProgressCallback = Callable[[ScanProgress], None]
OperationProgressCallback = Callable[[OperationProgress], None]

CANCELLED_BY_USER = "Operation cancelled by user"


class Workflow:
    """State machine for an organize session.

    ``setup -> scanning -> date-confirmation -> event-confirmation -> preview
    -> executing <-> paused -> completed``, with ``error`` reachable from any
    stage and ``reset`` returning to ``setup``.

    The workflow owns every MediaFile and PlannedOperation of the session.
    Progress callbacks receive copies and must not mutate workflow state.
    """

    def __init__(
        self,
        settings_store: Optional[SettingsBackend] = None,
        scanner: Optional[DirectoryScanner] = None,
        resolver: Optional[MetadataDateResolver] = None,
        duplicates: Optional[DuplicateResolver] = None,
        executor: Optional[BatchExecutor] = None,
    ):
        self._store = settings_store if settings_store is not None else SettingsStore()
        self._settings = self._store.load()

        self.scanner = scanner or DirectoryScanner(
            progress_interval=self._settings.progress_interval,
            skip_hidden=self._settings.skip_hidden,
            skip_packages=self._settings.skip_packages,
        )
        self.resolver = resolver or MetadataDateResolver.from_settings(self._settings)
        self.duplicates = duplicates or DuplicateResolver()
        self.executor = executor or BatchExecutor()

        self.source: Optional[Path] = None
        self.destination: Optional[Path] = self._settings.last_destination
        self.selected_directories: Optional[set[Path]] = None

        self.state = WorkflowState.SETUP
        # guards state changes that race with a running batch
        self._state_lock = threading.Lock()
        self.error_message: Optional[str] = None
        self.session_id: UUID = uuid4()

        self.media_files: list[MediaFile] = []
        self.operations: list[PlannedOperation] = []
        self.date_groups: list[DirectoryDateGroup] = []
        self.date_group_index = 0
        self.event_groups: list[DirectoryEventGroup] = []
        self.event_group_index = 0
        self.scan_progress = ScanProgress()
        self.operation_progress = OperationProgress()
        self.operation_errors: list[tuple[str, str]] = []

    # --- Locations ---

    @property
    def settings(self) -> ShoeboxSettings:
        return self._settings

    def set_source(self, path: Path, include_dirs: Optional[Iterable[Path]] = None) -> None:
        """Select the source root, optionally restricted to some directories."""
        self.source = path.expanduser().resolve()
        self.selected_directories = set(include_dirs) if include_dirs is not None else None

    def set_destination(self, path: Path) -> None:
        """Select the destination root and remember it for later sessions."""
        self.destination = path.expanduser().resolve()
        self._settings = self._settings.model_copy(update={"last_destination": self.destination})
        try:
            self._store.save(self._settings)
        except OSError as exc:
            logger.warning("Could not save settings: %s", exc)

    @property
    def can_start_scan(self) -> bool:
        return (
            self.state is WorkflowState.SETUP
            and self.source is not None
            and self.destination is not None
        )

    # --- Scanning ---

    def start_scan(self, progress_callback: Optional[ScanProgressCallback] = None) -> None:
        """Discover files, resolve their dates and move to the first checkpoint.

        Failures move the workflow to ``error``; check ``state`` afterwards.

        Raises:
            WorkflowError: not in ``setup`` or a location is missing.
            ScanCancelled: ``cancel()`` was called; the workflow is back in
                ``setup``.
        """
        if self.state is not WorkflowState.SETUP:
            raise WorkflowError(f"Cannot scan in state {self.state.value}")
        if self.source is None or self.destination is None:
            raise WorkflowError("Source and destination must both be selected")

        self._clear_session()
        # cancel() reaches the scanner only once the state is scanning
        self.scanner.reset()
        self.state = WorkflowState.SCANNING
        logger.info("Scanning %s", self.source)

        def on_scan_progress(progress: ScanProgress) -> None:
            self.scan_progress = progress
            if progress_callback is not None:
                progress_callback(progress.snapshot())

        try:
            discovered = self.scanner.scan(
                self.source,
                on_scan_progress,
                include_dirs=self.selected_directories,
            )
            self._extract_metadata(discovered, progress_callback)
        except ScanCancelled:
            logger.info("Scan cancelled")
            self._clear_session()
            self.state = WorkflowState.SETUP
            raise
        except EnumerationError as exc:
            self._fail(str(exc))
            return
        except OSError as exc:
            self._fail(f"Scan failed: {exc}")
            return

        logger.info(
            "Found %d files (%d with a date)",
            self.total_files, self.files_with_date,
        )
        self.date_groups = self._build_date_groups()
        self.date_group_index = 0
        if self.date_groups:
            self.state = WorkflowState.DATE_CONFIRMATION
        else:
            self.prepare_event_confirmation()

    def cancel_scan(self) -> None:
        self.scanner.cancel()

    def _extract_metadata(
        self,
        discovered: list[DiscoveredFile],
        progress_callback: Optional[ScanProgressCallback],
    ) -> None:
        progress = self.scan_progress
        progress.phase = ScanPhase.EXTRACTING_METADATA
        progress.total_files_to_process = len(discovered)

        for item in discovered:
            if self.scanner.cancelled:
                raise ScanCancelled()

            progress.current_file = item.name
            self.media_files.append(self._process_file(item))
            progress.files_processed += 1
            if progress_callback is not None:
                progress.last_update = datetime.now()
                progress_callback(progress.snapshot())

    def _process_file(self, item: DiscoveredFile) -> MediaFile:
        media = MediaFile.from_discovered(item)

        extracted = self.resolver.resolve(item.path, item.kind)
        if extracted is not None:
            media.offer_date(extracted.timestamp, extracted.source)

        if extracted is None or extracted.confidence.rank <= DateConfidence.LOW.rank:
            folder_date = parse_folder_date(item.parent_name)
            if folder_date is not None:
                media.offer_date(folder_date.date, DateSource.DIRECTORY_NAME)

        media.event_label = extract_event_label(item.parent_name)
        return media

    # --- Date confirmation ---

    def _build_date_groups(self) -> list[DirectoryDateGroup]:
        grouped: dict[Path, list[MediaFile]] = OrderedDict()
        for media in self.media_files:
            if media.is_skipped or not media.needs_date_confirmation:
                continue
            grouped.setdefault(media.source_directory_path, []).append(media)

        groups = []
        for directory, files in grouped.items():
            folder_date = parse_folder_date(directory.name)
            groups.append(DirectoryDateGroup(
                directory_path=directory,
                directory_name=directory.name,
                files=files,
                suggested_date=folder_date.date if folder_date else None,
            ))
        groups.sort(key=lambda g: g.directory_name)
        return groups

    @property
    def current_date_group(self) -> Optional[DirectoryDateGroup]:
        if self.state is not WorkflowState.DATE_CONFIRMATION:
            return None
        if self.date_group_index < len(self.date_groups):
            return self.date_groups[self.date_group_index]
        return None

    def confirm_date(self, date: datetime) -> None:
        """Apply a user-confirmed date to every file of the current group."""
        group = self._require_date_group()
        for media in group.files:
            media.confirm_date(date)
        logger.debug("Confirmed %s for %s", date.date(), group.directory_name)
        self._advance_date_group()

    def skip_date(self) -> None:
        """Exclude every file of the current group from the plan."""
        group = self._require_date_group()
        for media in group.files:
            media.skip()
        logger.debug("Skipped directory %s", group.directory_name)
        self._advance_date_group()

    def _require_date_group(self) -> DirectoryDateGroup:
        group = self.current_date_group
        if group is None:
            raise WorkflowError("No directory is awaiting date confirmation")
        return group

    def _advance_date_group(self) -> None:
        self.date_group_index += 1
        if self.date_group_index >= len(self.date_groups):
            self.prepare_event_confirmation()

    # --- Event confirmation ---

    def prepare_event_confirmation(self) -> None:
        """Group dated files by directory; go straight to preview if none."""
        grouped: dict[Path, list[MediaFile]] = OrderedDict()
        for media in self.media_files:
            if media.is_skipped or not media.has_date:
                continue
            grouped.setdefault(media.source_directory_path, []).append(media)

        self.event_groups = [
            DirectoryEventGroup(
                directory_path=directory,
                directory_name=directory.name,
                files=files,
                suggested_event=files[0].event_label,
            )
            for directory, files in grouped.items()
        ]
        self.event_groups.sort(key=lambda g: g.directory_name)
        self.event_group_index = 0

        if self.event_groups:
            self.state = WorkflowState.EVENT_CONFIRMATION
        else:
            self.generate_preview()

    @property
    def current_event_group(self) -> Optional[DirectoryEventGroup]:
        if self.state is not WorkflowState.EVENT_CONFIRMATION:
            return None
        if self.event_group_index < len(self.event_groups):
            return self.event_groups[self.event_group_index]
        return None

    def confirm_event(self, label: Optional[str] = None) -> None:
        """Accept the suggested label, or an edited one, for the current group."""
        group = self._require_event_group()
        if label is None:
            label = group.suggested_event
        label = label.strip() if label else None
        for media in group.files:
            media.event_label = label or None
            media.event_confirmed = True
        self._advance_event_group()

    def skip_event(self) -> None:
        """Reject the label: the group's files go into date-only folders."""
        group = self._require_event_group()
        for media in group.files:
            media.event_label = None
            media.event_confirmed = True
        self._advance_event_group()

    def _require_event_group(self) -> DirectoryEventGroup:
        group = self.current_event_group
        if group is None:
            raise WorkflowError("No directory is awaiting event confirmation")
        return group

    def _advance_event_group(self) -> None:
        self.event_group_index += 1
        if self.event_group_index >= len(self.event_groups):
            self.generate_preview()

    # --- Planning ---

    def generate_preview(self) -> None:
        """Build one PlannedOperation per dated, non-skipped file."""
        if self.destination is None:
            raise WorkflowError("No destination selected")

        problem = self._inaccessible_root()
        if problem is not None:
            self._fail(problem)
            return

        try:
            self._plan_operations()
        except OSError as exc:
            self._fail(f"Planning failed: {exc}")
            return

        logger.info(
            "Planned %d moves (%d renamed as duplicates)",
            len(self.operations), self.duplicate_count,
        )
        self.state = WorkflowState.PREVIEW

    def _plan_operations(self) -> None:
        self.duplicates.reset()
        builder = DestinationPathBuilder(self.destination)
        self.operations = []

        for media in self.media_files:
            if media.is_skipped:
                continue
            if media.detected_date is None:
                media.skip()
                continue

            target = builder.build(media.filename, media.detected_date, media.event_label)
            collision = self.duplicates.check(target)
            operation = PlannedOperation(
                source_path=media.original_path,
                destination_path=collision.path,
                media_file=media,
                is_duplicate=collision.is_duplicate,
                duplicate_suffix=collision.suffix,
                original_destination_path=collision.original_path,
            )
            media.planned_operation = operation
            media.status = ProcessingStatus.PLANNED
            self.operations.append(operation)

    def _inaccessible_root(self) -> Optional[str]:
        """Describe the first of source or destination that cannot be used, if any."""
        roots = (
            ("source", self.source, os.R_OK | os.X_OK),
            ("destination", self.destination, os.W_OK | os.X_OK),
        )
        for name, root, mode in roots:
            try:
                usable = root is not None and root.is_dir() and os.access(root, mode)
            except OSError:
                usable = False
            if not usable:
                return f"Cannot access {name} directory: {root}"
        return None

    def edit_destination(self, operation: PlannedOperation, new_path: Path) -> None:
        """Point one planned move somewhere else, keeping claims consistent.

        Raises:
            WorkflowError: not in ``preview`` or another move already targets
                ``new_path``.
        """
        if self.state is not WorkflowState.PREVIEW:
            raise WorkflowError("Destinations can only be edited in preview")
        if path_key(new_path) != path_key(operation.destination_path) and self.duplicates.is_claimed(new_path):
            raise WorkflowError(f"Another file is already planned for {new_path}")

        self.duplicates.unclaim(operation.destination_path)
        self.duplicates.claim(new_path)
        operation.destination_path = new_path
        operation.destination_edited = True

    # --- Execution ---

    def execute(self, progress_callback: Optional[OperationProgressCallback] = None) -> None:
        """Run the plan. Ends in ``completed`` or ``error``; check ``state``.

        Raises:
            WorkflowError: not in ``preview``.
        """
        if self.state is not WorkflowState.PREVIEW:
            raise WorkflowError(f"Cannot execute in state {self.state.value}")

        problem = self._inaccessible_root()
        if problem is not None:
            self._fail(problem)
            return

        pending = [op for op in self.operations if op.status is OperationStatus.PENDING]
        self.operation_errors = []
        with self._state_lock:
            self.state = WorkflowState.EXECUTING

        def on_progress(progress: OperationProgress) -> None:
            self.operation_progress = progress
            if progress_callback is not None:
                progress_callback(progress)

        try:
            results = self.executor.execute(pending, on_progress)
        except OperationCancelled as exc:
            self._apply_results(pending, exc.results)
            for operation in pending:
                if operation.status is OperationStatus.PENDING:
                    operation.status = OperationStatus.CANCELLED
            logger.info("Execution cancelled after %d operations", len(exc.results))
            with self._state_lock:
                self.error_message = CANCELLED_BY_USER
                self.state = WorkflowState.ERROR
            return
        except OSError as exc:
            self._fail(f"Execution failed: {exc}")
            return

        self._apply_results(pending, results)
        logger.info("Completed %d moves, %d failed", self.completed_count, self.failed_count)
        with self._state_lock:
            self.state = WorkflowState.COMPLETED

    def _apply_results(self, operations: list[PlannedOperation], results: list[OperationResult]) -> None:
        by_id = {op.id: op for op in operations}
        for result in results:
            operation = by_id.get(result.operation_id)
            if operation is None:
                continue
            media = operation.media_file
            if result.success:
                if media is not None:
                    media.status = ProcessingStatus.COMPLETED
            else:
                if media is not None:
                    media.status = ProcessingStatus.FAILED
                    media.error_message = result.error
                self.operation_errors.append((operation.source_filename, result.error or "Unknown error"))

    def pause(self) -> None:
        with self._state_lock:
            if self.state is WorkflowState.EXECUTING:
                self.executor.pause()
                self.state = WorkflowState.PAUSED

    def resume(self) -> None:
        with self._state_lock:
            if self.state is WorkflowState.PAUSED:
                self.executor.resume()
                self.state = WorkflowState.EXECUTING

    def cancel(self) -> None:
        """Cancel whatever long-running stage is active."""
        if self.state is WorkflowState.SCANNING:
            self.scanner.cancel()
        elif self.state in (WorkflowState.EXECUTING, WorkflowState.PAUSED):
            self.executor.cancel()

    # --- Lifecycle ---

    def _fail(self, message: str) -> None:
        logger.error(message)
        with self._state_lock:
            self.error_message = message
            self.state = WorkflowState.ERROR

    def _clear_session(self) -> None:
        self.media_files = []
        self.operations = []
        self.date_groups = []
        self.date_group_index = 0
        self.event_groups = []
        self.event_group_index = 0
        self.scan_progress = ScanProgress()
        self.operation_progress = OperationProgress()
        self.operation_errors = []
        self.duplicates.reset()

    def reset(self) -> None:
        """Back to ``setup``. The remembered destination is kept.

        Raises:
            WorkflowError: a scan, review or batch is still in progress.
        """
        if self.state not in (WorkflowState.SETUP, WorkflowState.ERROR, WorkflowState.COMPLETED):
            raise WorkflowError(f"Cannot reset in state {self.state.value}")
        self._clear_session()
        self.executor.reset()
        self.source = None
        self.selected_directories = None
        self.error_message = None
        self.session_id = uuid4()
        self.state = WorkflowState.SETUP

    # --- Reporting ---

    @property
    def total_files(self) -> int:
        return len(self.media_files)

    @property
    def files_with_date(self) -> int:
        return sum(1 for m in self.media_files if m.has_date)

    @property
    def files_without_date(self) -> int:
        return sum(1 for m in self.media_files if not m.has_date)

    @property
    def skipped_files(self) -> list[MediaFile]:
        return [m for m in self.media_files if m.is_skipped]

    @property
    def duplicate_count(self) -> int:
        return sum(1 for op in self.operations if op.is_duplicate)

    @property
    def completed_count(self) -> int:
        return sum(1 for op in self.operations if op.status is OperationStatus.COMPLETED)

    @property
    def failed_count(self) -> int:
        return sum(1 for op in self.operations if op.status is OperationStatus.FAILED)

    def completed_operations(self) -> list[CompletedOperation]:
        return [
            CompletedOperation.from_operation(op)
            for op in self.operations
            if op.status is OperationStatus.COMPLETED
        ]

    def snapshot(self) -> SessionSnapshot:
        """Immutable record of the session for logs and persistence."""
        return SessionSnapshot(
            session_id=self.session_id,
            source_root=self.source,
            destination_root=self.destination,
            operations=tuple(self.completed_operations()),
            failures=tuple(self.operation_errors),
            skipped_files=tuple(m.original_path for m in self.skipped_files),
            created_at=datetime.now(),
        )
