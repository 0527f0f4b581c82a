"""Domain models - enums and the records that flow through the pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional
from uuid import UUID, uuid4


class MediaKind(Enum):
    """Kind of media file, decided by extension."""
    IMAGE = "image"
    VIDEO = "video"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class DateConfidence(Enum):
    """How far a resolved date can be trusted."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]


_CONFIDENCE_RANK = {
    DateConfidence.NONE: 0,
    DateConfidence.LOW: 1,
    DateConfidence.MEDIUM: 2,
    DateConfidence.HIGH: 3,
}


class DateSource(Enum):
    """Provenance tag: which source produced a resolved date."""
    PRIMARY_CAPTURE_TIME = "primary-capture-time"
    DIGITIZED_TIME = "digitized-time"
    CONTAINER_CREATE_TIME = "container-create-time"
    VIDEO_CREATION_TIME = "video-creation-time"
    DIRECTORY_NAME = "directory-name"
    USER_INPUT = "user-input"
    FILE_MODIFIED_TIME = "file-modified-time"
    NONE = "none"

    @property
    def confidence(self) -> DateConfidence:
        if self in (
            DateSource.PRIMARY_CAPTURE_TIME,
            DateSource.DIGITIZED_TIME,
            DateSource.CONTAINER_CREATE_TIME,
            DateSource.VIDEO_CREATION_TIME,
        ):
            return DateConfidence.HIGH
        if self in (DateSource.DIRECTORY_NAME, DateSource.USER_INPUT):
            return DateConfidence.MEDIUM
        if self is DateSource.FILE_MODIFIED_TIME:
            return DateConfidence.LOW
        return DateConfidence.NONE

    @property
    def display_name(self) -> str:
        return _SOURCE_NAMES[self]


_SOURCE_NAMES = {
    DateSource.PRIMARY_CAPTURE_TIME: "EXIF (DateTimeOriginal)",
    DateSource.DIGITIZED_TIME: "EXIF (DateTimeDigitized)",
    DateSource.CONTAINER_CREATE_TIME: "EXIF (CreateDate)",
    DateSource.VIDEO_CREATION_TIME: "Video Metadata",
    DateSource.DIRECTORY_NAME: "Directory Name",
    DateSource.USER_INPUT: "User Input",
    DateSource.FILE_MODIFIED_TIME: "File Modified Date",
    DateSource.NONE: "Unknown",
}


class ProcessingStatus(Enum):
    """Where a media file is in the workflow."""
    PENDING = "pending"
    PLANNED = "planned"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class OperationStatus(Enum):
    """Lifecycle of a planned move."""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    UNDONE = "undone"

    @property
    def is_terminal(self) -> bool:
        return self in (
            OperationStatus.COMPLETED,
            OperationStatus.FAILED,
            OperationStatus.CANCELLED,
            OperationStatus.UNDONE,
        )


class WorkflowState(Enum):
    """Stages of an organize session."""
    SETUP = "setup"
    SCANNING = "scanning"
    DATE_CONFIRMATION = "date-confirmation"
    EVENT_CONFIRMATION = "event-confirmation"
    PREVIEW = "preview"
    EXECUTING = "executing"
    PAUSED = "paused"
    COMPLETED = "completed"
    ERROR = "error"


class ExecutorState(Enum):
    """Control state of the batch executor."""
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class ScanPhase(Enum):
    DISCOVERING = "discovering"
    EXTRACTING_METADATA = "extracting-metadata"


class FailureKind(Enum):
    """Classification of a failed move."""
    PERMISSION_DENIED = "permission-denied"
    OUT_OF_SPACE = "out-of-space"
    DESTINATION_EXISTS = "destination-exists"
    SOURCE_NOT_FOUND = "source-not-found"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class DiscoveredFile:
    """A supported media file found by the scanner."""
    path: Path
    kind: MediaKind
    parent_name: str
    parent_path: Path
    size_bytes: int = 0

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def extension(self) -> str:
        return self.path.suffix.lower().lstrip(".")


@dataclass(frozen=True, slots=True)
class ExtractedDate:
    """A resolved date together with the source that produced it."""
    timestamp: datetime
    source: DateSource

    @property
    def confidence(self) -> DateConfidence:
        return self.source.confidence


@dataclass(eq=False, slots=True)
class MediaFile:
    """Session record for one media file.

    Created from a DiscoveredFile during scan processing and mutated through
    the confirmation checkpoints and execution.
    """
    original_path: Path
    filename: str
    extension: str
    kind: MediaKind
    source_directory_name: str
    source_directory_path: Path
    size_bytes: int = 0
    detected_date: Optional[datetime] = None
    date_source: DateSource = DateSource.NONE
    date_confirmed: bool = False
    event_label: Optional[str] = None
    event_confirmed: bool = False
    status: ProcessingStatus = ProcessingStatus.PENDING
    error_message: Optional[str] = None
    planned_operation: Optional["PlannedOperation"] = field(default=None, repr=False)
    id: UUID = field(default_factory=uuid4)

    @classmethod
    def from_discovered(cls, discovered: DiscoveredFile) -> "MediaFile":
        return cls(
            original_path=discovered.path,
            filename=discovered.name,
            extension=discovered.extension,
            kind=discovered.kind,
            source_directory_name=discovered.parent_name,
            source_directory_path=discovered.parent_path,
            size_bytes=discovered.size_bytes,
        )

    @property
    def has_date(self) -> bool:
        return self.detected_date is not None

    @property
    def confidence(self) -> DateConfidence:
        return self.date_source.confidence

    @property
    def needs_date_confirmation(self) -> bool:
        """No date yet, or only the file modification time."""
        return self.detected_date is None or self.date_source in (
            DateSource.FILE_MODIFIED_TIME,
            DateSource.NONE,
        )

    @property
    def is_skipped(self) -> bool:
        return self.status is ProcessingStatus.SKIPPED

    def offer_date(self, timestamp: datetime, source: DateSource) -> bool:
        """Adopt a date only if it is more trustworthy than the current one.

        Returns:
            True if the date was applied.
        """
        if self.detected_date is not None and source.confidence.rank <= self.confidence.rank:
            return False
        self.detected_date = timestamp
        self.date_source = source
        return True

    def confirm_date(self, timestamp: datetime) -> None:
        self.detected_date = timestamp
        self.date_source = DateSource.USER_INPUT
        self.date_confirmed = True

    def skip(self) -> None:
        self.status = ProcessingStatus.SKIPPED


@dataclass(eq=False, slots=True)
class PlannedOperation:
    """A move from a source path to its planned destination."""
    source_path: Path
    destination_path: Path
    media_file: Optional[MediaFile] = field(default=None, repr=False)
    is_duplicate: bool = False
    duplicate_suffix: Optional[str] = None
    original_destination_path: Optional[Path] = None
    destination_edited: bool = False
    status: OperationStatus = OperationStatus.PENDING
    executed_at: Optional[datetime] = None
    error_message: Optional[str] = None
    id: UUID = field(default_factory=uuid4)

    @property
    def source_filename(self) -> str:
        return self.source_path.name

    @property
    def destination_filename(self) -> str:
        return self.destination_path.name

    @property
    def destination_directory(self) -> Path:
        return self.destination_path.parent

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


@dataclass(slots=True)
class ScanProgress:
    """Mutable scan progress; observers receive copies via snapshot()."""
    phase: ScanPhase = ScanPhase.DISCOVERING
    directories_scanned: int = 0
    files_found: int = 0
    current_directory: str = ""
    current_file: str = ""
    files_processed: int = 0
    total_files_to_process: int = 0
    skipped: int = 0
    last_update: Optional[datetime] = None

    def snapshot(self) -> "ScanProgress":
        return replace(self)


@dataclass(frozen=True, slots=True)
class OperationProgress:
    """Progress of a running batch."""
    current: int = 0
    total: int = 0
    current_file: str = ""
    bytes_processed: int = 0
    total_bytes: int = 0

    @property
    def fraction(self) -> float:
        if self.total_bytes > 0:
            return self.bytes_processed / self.total_bytes
        if self.total > 0:
            return self.current / self.total
        return 0.0


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Outcome of one attempted move."""
    operation_id: UUID
    success: bool
    error: Optional[str] = None
    failure: Optional[FailureKind] = None


@dataclass(slots=True)
class DirectoryDateGroup:
    """Files from one source directory that still need a date."""
    directory_path: Path
    directory_name: str
    files: list[MediaFile]
    suggested_date: Optional[datetime] = None

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def sample_filenames(self) -> list[str]:
        return [f.filename for f in self.files[:5]]


@dataclass(slots=True)
class DirectoryEventGroup:
    """Dated files from one source directory, with a suggested event label."""
    directory_path: Path
    directory_name: str
    files: list[MediaFile]
    suggested_event: Optional[str] = None

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def date_range(self) -> str:
        dates = sorted(f.detected_date for f in self.files if f.detected_date is not None)
        if not dates:
            return "No date"
        first, last = dates[0], dates[-1]
        if first.date() != last.date():
            return f"{_display_date(first)} - {_display_date(last)}"
        return _display_date(first)


def _display_date(value: datetime) -> str:
    return f"{value:%b} {value.day}, {value.year}"


@dataclass(frozen=True, slots=True)
class CompletedOperation:
    """Immutable record of a finished move, handed to log/script generators."""
    source_path: Path
    destination_path: Path
    is_duplicate: bool
    duplicate_suffix: Optional[str]
    original_destination_path: Optional[Path]
    executed_at: Optional[datetime]

    @classmethod
    def from_operation(cls, operation: PlannedOperation) -> "CompletedOperation":
        return cls(
            source_path=operation.source_path,
            destination_path=operation.destination_path,
            is_duplicate=operation.is_duplicate,
            duplicate_suffix=operation.duplicate_suffix,
            original_destination_path=operation.original_destination_path,
            executed_at=operation.executed_at,
        )


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Ordered, immutable view of a finished session."""
    session_id: UUID
    source_root: Optional[Path]
    destination_root: Optional[Path]
    operations: tuple[CompletedOperation, ...]
    failures: tuple[tuple[str, str], ...]
    skipped_files: tuple[Path, ...]
    created_at: datetime

    @property
    def duplicates(self) -> tuple[CompletedOperation, ...]:
        return tuple(op for op in self.operations if op.is_duplicate)
