"""Batch execution of planned moves with pause, resume and cancel."""
from __future__ import annotations

import errno
import logging
import shutil
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Sequence

from ..core.exceptions import OperationCancelled
from ..core.models import (
    ExecutorState,
    FailureKind,
    OperationProgress,
    OperationResult,
    OperationStatus,
    PlannedOperation,
)


logger = logging.getLogger(__name__)

OperationProgressCallback = Callable[[OperationProgress], None]

FAILURE_MESSAGES = {
    FailureKind.PERMISSION_DENIED: "Permission denied",
    FailureKind.OUT_OF_SPACE: "Not enough disk space",
    FailureKind.DESTINATION_EXISTS: "File already exists at destination",
    FailureKind.SOURCE_NOT_FOUND: "Source file not found",
}

_ERRNO_KINDS = {
    errno.EACCES: FailureKind.PERMISSION_DENIED,
    errno.EPERM: FailureKind.PERMISSION_DENIED,
    errno.EROFS: FailureKind.PERMISSION_DENIED,
    errno.ENOSPC: FailureKind.OUT_OF_SPACE,
    errno.EDQUOT: FailureKind.OUT_OF_SPACE,
    errno.EEXIST: FailureKind.DESTINATION_EXISTS,
    errno.ENOENT: FailureKind.SOURCE_NOT_FOUND,
}


def classify_os_error(exc: OSError) -> tuple[FailureKind, str]:
    """Map an OSError to a failure kind and a human-readable reason."""
    if isinstance(exc, PermissionError):
        kind = FailureKind.PERMISSION_DENIED
    elif isinstance(exc, FileExistsError):
        kind = FailureKind.DESTINATION_EXISTS
    elif isinstance(exc, FileNotFoundError):
        kind = FailureKind.SOURCE_NOT_FOUND
    else:
        kind = _ERRNO_KINDS.get(exc.errno, FailureKind.OTHER)

    message = FAILURE_MESSAGES.get(kind)
    if message is None:
        message = exc.strerror or str(exc) or exc.__class__.__name__
    return kind, message


def _size_of(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0


def move_file(source: Path, destination: Path) -> None:
    """Move without ever overwriting; copies and deletes across devices.

    Raises:
        OSError: the move failed.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    if destination.exists():
        raise FileExistsError(errno.EEXIST, "File exists", str(destination))
    if not source.exists():
        raise FileNotFoundError(errno.ENOENT, "No such file", str(source))
    shutil.move(str(source), str(destination))


class BatchExecutor:
    """Moves files according to a finalized plan, strictly in order.

    ``pause``, ``resume`` and ``cancel`` may be called from any thread.
    Cancellation is checked between operations; a move in flight always
    finishes.
    """

    def __init__(self, mover: Callable[[Path, Path], None] = move_file):
        self._mover = mover
        self._lock = threading.Lock()
        self._resume = threading.Event()
        self._resume.set()
        self._cancel_requested = False
        self._state = ExecutorState.IDLE

    # --- Controls ---

    @property
    def state(self) -> ExecutorState:
        with self._lock:
            return self._state

    @property
    def paused(self) -> bool:
        return not self._resume.is_set()

    @property
    def cancelled(self) -> bool:
        with self._lock:
            return self._cancel_requested

    def pause(self) -> None:
        with self._lock:
            if self._cancel_requested:
                return
            self._resume.clear()
            if self._state is ExecutorState.RUNNING:
                self._state = ExecutorState.PAUSED
        logger.info("Execution paused")

    def resume(self) -> None:
        with self._lock:
            if self._state is ExecutorState.PAUSED:
                self._state = ExecutorState.RUNNING
            self._resume.set()
        logger.info("Execution resumed")

    def cancel(self) -> None:
        with self._lock:
            self._cancel_requested = True
            self._state = ExecutorState.CANCELLED
            # wake a paused batch so it can observe the cancel
            self._resume.set()
        logger.info("Execution cancel requested")

    def reset(self) -> None:
        with self._lock:
            self._cancel_requested = False
            self._state = ExecutorState.IDLE
            self._resume.set()

    # --- Execution ---

    def execute(
        self,
        operations: Sequence[PlannedOperation],
        progress_callback: Optional[OperationProgressCallback] = None,
    ) -> list[OperationResult]:
        """Run every operation in order.

        Per-item failures are recorded and the batch continues.

        Returns:
            One result per operation.

        Raises:
            OperationCancelled: ``cancel()`` was called; carries the results
                of the operations attempted before the cancel.
        """
        with self._lock:
            self._cancel_requested = False
            self._state = ExecutorState.RUNNING if self._resume.is_set() else ExecutorState.PAUSED

        sizes = [_size_of(op.source_path) for op in operations]
        total_bytes = sum(sizes)
        bytes_processed = 0
        results: list[OperationResult] = []

        for index, operation in enumerate(operations):
            self._wait_if_paused(results)

            if progress_callback is not None:
                progress_callback(OperationProgress(
                    current=index + 1,
                    total=len(operations),
                    current_file=operation.source_filename,
                    bytes_processed=bytes_processed,
                    total_bytes=total_bytes,
                ))

            results.append(self._execute_one(operation))
            bytes_processed += sizes[index]

        with self._lock:
            if self._state is not ExecutorState.CANCELLED:
                self._state = ExecutorState.IDLE

        failed = sum(1 for r in results if not r.success)
        logger.info("Batch finished: %d moved, %d failed", len(results) - failed, failed)
        return results

    def _wait_if_paused(self, results: list[OperationResult]) -> None:
        if self.cancelled:
            raise OperationCancelled(results)
        if not self._resume.is_set():
            with self._lock:
                if self._state is ExecutorState.RUNNING:
                    self._state = ExecutorState.PAUSED
            self._resume.wait()
        if self.cancelled:
            raise OperationCancelled(results)
        with self._lock:
            self._state = ExecutorState.RUNNING

    def _execute_one(self, operation: PlannedOperation) -> OperationResult:
        operation.status = OperationStatus.IN_PROGRESS
        try:
            self._mover(operation.source_path, operation.destination_path)
        except OSError as exc:
            kind, message = classify_os_error(exc)
            logger.warning("Failed to move %s: %s", operation.source_path, message)
            operation.status = OperationStatus.FAILED
            operation.error_message = message
            return OperationResult(operation.id, success=False, error=message, failure=kind)

        if not operation.destination_path.exists():
            message = "File was not found at destination after move"
            logger.warning("%s: %s", message, operation.destination_path)
            operation.status = OperationStatus.FAILED
            operation.error_message = message
            return OperationResult(operation.id, success=False, error=message, failure=FailureKind.OTHER)

        operation.status = OperationStatus.COMPLETED
        operation.executed_at = datetime.now()
        logger.debug("Moved %s -> %s", operation.source_path, operation.destination_path)
        return OperationResult(operation.id, success=True)
