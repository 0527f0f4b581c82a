"""Session logs: the operation log, the duplicate log and the JSON journal."""
from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Sequence

from ..core.models import CompletedOperation, SessionSnapshot


logger = logging.getLogger(__name__)

LOGS_DIRNAME = ".shoebox-logs"
JOURNAL_FILENAME = "session.json"
OPERATION_LOG_FILENAME = "operations.txt"
DUPLICATE_LOG_FILENAME = "duplicates.txt"

_RULE = "=" * 41


def logs_directory(destination_root: Path, snapshot: SessionSnapshot) -> Path:
    """``<dest>/.shoebox-logs/<YYYYmmdd_HHMMSS>-<session id>``."""
    stamp = snapshot.created_at.strftime("%Y%m%d_%H%M%S")
    return destination_root / LOGS_DIRNAME / f"{stamp}-{snapshot.session_id}"


def render_operation_log(snapshot: SessionSnapshot) -> str:
    """Plain-text record of every completed move, in execution order."""
    operations = snapshot.operations
    total = len(operations)
    lines = [
        "Shoebox - Operation Log",
        f"Session: {snapshot.session_id}",
        f"Generated: {snapshot.created_at.isoformat(timespec='seconds')}",
        f"Source: {snapshot.source_root or 'N/A'}",
        f"Destination: {snapshot.destination_root or 'N/A'}",
        "",
    ]
    for index, operation in enumerate(operations, start=1):
        lines.append(f"[{index}/{total}] {operation.source_path} -> {operation.destination_path}")

    if snapshot.failures:
        lines.append("")
        lines.append("Failed:")
        lines.extend(f"  {filename}: {reason}" for filename, reason in snapshot.failures)

    if snapshot.skipped_files:
        lines.append("")
        lines.append("Skipped:")
        lines.extend(f"  {path}" for path in snapshot.skipped_files)

    lines.extend([
        "",
        _RULE,
        f"Files moved successfully: {total}",
        f"Files failed: {len(snapshot.failures)}",
        f"Files skipped: {len(snapshot.skipped_files)}",
        _RULE,
    ])
    return "\n".join(lines) + "\n"


def render_duplicate_log(duplicates: Sequence[CompletedOperation], generated: datetime) -> str:
    """Text listing each renamed duplicate; empty string when there are none."""
    if not duplicates:
        return ""

    lines = [
        "Shoebox - Duplicate Files Log",
        f"Generated: {generated.isoformat(timespec='seconds')}",
        f"Total duplicates renamed: {len(duplicates)}",
        "",
        "The following files were renamed to avoid conflicts:",
    ]
    for dup in duplicates:
        lines.extend([
            "",
            f"Original filename: {dup.source_path.name}",
            f"Renamed to: {dup.destination_path.name}",
            f"Original destination: {dup.original_destination_path or 'N/A'}",
            f"Final destination: {dup.destination_path}",
        ])
    return "\n".join(lines) + "\n"


def _operation_record(operation: CompletedOperation) -> dict[str, Any]:
    return {
        "source": str(operation.source_path),
        "destination": str(operation.destination_path),
        "is_duplicate": operation.is_duplicate,
        "duplicate_suffix": operation.duplicate_suffix,
        "original_destination": (
            str(operation.original_destination_path)
            if operation.original_destination_path else None
        ),
        "executed_at": operation.executed_at.isoformat() if operation.executed_at else None,
    }


def session_record(snapshot: SessionSnapshot) -> dict[str, Any]:
    """JSON-ready journal of a finished session."""
    return {
        "session_id": str(snapshot.session_id),
        "created_at": snapshot.created_at.isoformat(),
        "source": str(snapshot.source_root) if snapshot.source_root else None,
        "destination": str(snapshot.destination_root) if snapshot.destination_root else None,
        "operations": [_operation_record(op) for op in snapshot.operations],
        "failures": [{"filename": name, "reason": reason} for name, reason in snapshot.failures],
        "skipped": [str(path) for path in snapshot.skipped_files],
    }


def write_session_log(snapshot: SessionSnapshot, logs_dir: Path) -> list[Path]:
    """Write the journal and text logs into ``logs_dir``.

    The duplicate log is only written when something was renamed.

    Returns:
        Paths of the files written.

    Raises:
        OSError: the directory or a file could not be written.
    """
    logs_dir.mkdir(parents=True, exist_ok=True)
    written = []

    journal = logs_dir / JOURNAL_FILENAME
    journal.write_text(json.dumps(session_record(snapshot), indent=2), encoding="utf-8")
    written.append(journal)

    operation_log = logs_dir / OPERATION_LOG_FILENAME
    operation_log.write_text(render_operation_log(snapshot), encoding="utf-8")
    written.append(operation_log)

    duplicate_text = render_duplicate_log(snapshot.duplicates, snapshot.created_at)
    if duplicate_text:
        duplicate_log = logs_dir / DUPLICATE_LOG_FILENAME
        duplicate_log.write_text(duplicate_text, encoding="utf-8")
        written.append(duplicate_log)

    logger.info("Session log written to %s", logs_dir)
    return written
