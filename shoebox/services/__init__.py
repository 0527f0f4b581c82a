"""Service layer - the organize pipeline."""
from .scanner import DirectoryScanner
from .date_resolver import MetadataDateResolver
from .folder_names import (
    FolderDate,
    parse_folder_date,
    extract_event_label,
    suggest_event_labels,
    group_by_event_label,
)
from .paths import DestinationPathBuilder, build_destination_path, sanitize_for_path
from .deduplicator import DuplicateResolver, CollisionResult
from .executor import BatchExecutor, classify_os_error
from .workflow import Workflow
from .folder_tree import FolderTree, FolderNode
from .report import write_session_log, render_operation_log, render_duplicate_log

__all__ = [
    # Discovery
    "DirectoryScanner",
    "MetadataDateResolver",
    # Directory names
    "FolderDate",
    "parse_folder_date",
    "extract_event_label",
    "suggest_event_labels",
    "group_by_event_label",
    # Planning
    "DestinationPathBuilder",
    "build_destination_path",
    "sanitize_for_path",
    "DuplicateResolver",
    "CollisionResult",
    # Execution
    "BatchExecutor",
    "classify_os_error",
    # Orchestration
    "Workflow",
    "FolderTree",
    "FolderNode",
    # Reports
    "write_session_log",
    "render_operation_log",
    "render_duplicate_log",
]
