"""Exception hierarchy."""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class ShoeboxError(Exception):
    """Base class for all errors raised by shoebox."""


class EnumerationError(ShoeboxError):
    """The scan root cannot be opened (missing, not a directory, no permission)."""

    def __init__(self, path: Union[Path, str], reason: str = ""):
        self.path = Path(path)
        self.reason = reason
        message = f"Failed to scan directory: {self.path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class Cancelled(ShoeboxError):
    """Cooperative cancellation. A control outcome, not a failure."""


class ScanCancelled(Cancelled):
    def __init__(self) -> None:
        super().__init__("Scan was cancelled")


class OperationCancelled(Cancelled):
    """Raised by the executor; ``results`` covers only attempted operations."""

    def __init__(self, results: Optional[list] = None):
        self.results = list(results or [])
        super().__init__("Operation was cancelled")


class WorkflowError(ShoeboxError):
    """An action was requested in a workflow state that does not allow it."""
