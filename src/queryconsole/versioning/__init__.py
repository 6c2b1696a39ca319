"""Console version history and AI modification workflow."""

from .diff_session import BEFORE_AI_DESCRIPTION, CommitResult, DiffPreview, DiffSession
from .models import (
    AppendModification,
    DiffPreviewView,
    DiffStatus,
    EditingView,
    InsertModification,
    InvalidModificationError,
    Modification,
    Position,
    ReplaceModification,
    VersionEntry,
    WriteMode,
    hash_content,
    modification_from_payload,
)
from .orchestrator import ConsoleOrchestrator
from .patches import compute_modified_content
from .registry import ConsoleRegistry
from .scheduling import AsyncioScheduler, Debouncer
from .version_manager import VersionManager

__all__ = [
    "AppendModification",
    "AsyncioScheduler",
    "BEFORE_AI_DESCRIPTION",
    "CommitResult",
    "ConsoleOrchestrator",
    "ConsoleRegistry",
    "Debouncer",
    "DiffPreview",
    "DiffPreviewView",
    "DiffSession",
    "DiffStatus",
    "EditingView",
    "InsertModification",
    "InvalidModificationError",
    "Modification",
    "Position",
    "ReplaceModification",
    "VersionEntry",
    "VersionManager",
    "WriteMode",
    "compute_modified_content",
    "hash_content",
    "modification_from_payload",
]
