"""Core domain models, configuration and protocols."""
from .config import ShoeboxSettings, SettingsStore, MemorySettingsStore
from .exceptions import (
    ShoeboxError,
    EnumerationError,
    Cancelled,
    ScanCancelled,
    OperationCancelled,
    WorkflowError,
)
from .media_types import media_kind, is_supported
from .models import (
    MediaKind,
    DateSource,
    DateConfidence,
    ProcessingStatus,
    OperationStatus,
    WorkflowState,
    ExecutorState,
    FailureKind,
    DiscoveredFile,
    ExtractedDate,
    MediaFile,
    PlannedOperation,
    ScanProgress,
    OperationProgress,
    OperationResult,
    DirectoryDateGroup,
    DirectoryEventGroup,
    CompletedOperation,
    SessionSnapshot,
)
from .protocols import (
    ImageMetadata,
    ContainerMetadata,
    ImageMetadataReader,
    ContainerMetadataReader,
    ContentIndex,
    ProgressReporter,
)

__all__ = [
    # Config
    "ShoeboxSettings",
    "SettingsStore",
    "MemorySettingsStore",
    # Errors
    "ShoeboxError",
    "EnumerationError",
    "Cancelled",
    "ScanCancelled",
    "OperationCancelled",
    "WorkflowError",
    # Media types
    "media_kind",
    "is_supported",
    # Models
    "MediaKind",
    "DateSource",
    "DateConfidence",
    "ProcessingStatus",
    "OperationStatus",
    "WorkflowState",
    "ExecutorState",
    "FailureKind",
    "DiscoveredFile",
    "ExtractedDate",
    "MediaFile",
    "PlannedOperation",
    "ScanProgress",
    "OperationProgress",
    "OperationResult",
    "DirectoryDateGroup",
    "DirectoryEventGroup",
    "CompletedOperation",
    "SessionSnapshot",
    # Protocols
    "ImageMetadata",
    "ContainerMetadata",
    "ImageMetadataReader",
    "ContainerMetadataReader",
    "ContentIndex",
    "ProgressReporter",
]
