"""Photo and video organizer.

Moves media from a messy source tree into ``<dest>/<YYYY>/<MM-DD> <Event>/``
folders, dating each file from its metadata or its directory name.
"""

__version__ = "0.1.0"

# Core exports
from .core.config import ShoeboxSettings, SettingsStore
from .core.exceptions import ShoeboxError, EnumerationError, ScanCancelled, OperationCancelled
from .core.models import MediaKind, DateSource, MediaFile, PlannedOperation, WorkflowState
from .core.protocols import ImageMetadataReader, ContainerMetadataReader, ContentIndex, ProgressReporter

# Engine exports
from .engines.metadata import PillowImageMetadataReader, HachoirContainerMetadataReader
from .engines.content_index import MdlsContentIndex

# Service exports
from .services.scanner import DirectoryScanner
from .services.date_resolver import MetadataDateResolver
from .services.deduplicator import DuplicateResolver
from .services.executor import BatchExecutor
from .services.workflow import Workflow

# Logging exports
from .logging.rich_logger import RichProgressReporter

__all__ = [
    # Core
    "ShoeboxSettings",
    "SettingsStore",
    "ShoeboxError",
    "EnumerationError",
    "ScanCancelled",
    "OperationCancelled",
    "MediaKind",
    "DateSource",
    "MediaFile",
    "PlannedOperation",
    "WorkflowState",
    "ImageMetadataReader",
    "ContainerMetadataReader",
    "ContentIndex",
    "ProgressReporter",
    # Engines
    "PillowImageMetadataReader",
    "HachoirContainerMetadataReader",
    "MdlsContentIndex",
    # Services
    "DirectoryScanner",
    "MetadataDateResolver",
    "DuplicateResolver",
    "BatchExecutor",
    "Workflow",
    # Logging
    "RichProgressReporter",
]
