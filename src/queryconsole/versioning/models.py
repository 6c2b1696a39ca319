"""Dataclasses describing console versions, modifications, and preview state."""

from __future__ import annotations

import enum
import hashlib
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Literal, Mapping, Optional, Union

__all__ = [
    "VersionOrigin",
    "VersionEntry",
    "HistoryItem",
    "Position",
    "ReplaceModification",
    "AppendModification",
    "InsertModification",
    "Modification",
    "InvalidModificationError",
    "modification_from_payload",
    "DiffStatus",
    "EditingView",
    "DiffPreviewView",
    "ConsoleView",
    "WriteMode",
    "hash_content",
]

VersionOrigin = Literal["user", "ai"]
_ORIGINS: tuple[str, ...] = ("user", "ai")


def _utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""

    return datetime.now(timezone.utc)


def _generate_version_id() -> str:
    return f"v_{uuid.uuid4().hex}"


def hash_content(text: str) -> str:
    """Return the digest used for dirty-state comparisons."""

    return hashlib.sha1(text.encode("utf-8")).hexdigest()


@dataclass(frozen=True, slots=True)
class VersionEntry:
    """Immutable snapshot of a console buffer."""

    content: str
    origin: VersionOrigin
    sequence_index: int
    description: str = ""
    ai_prompt: str | None = None
    id: str = field(default_factory=_generate_version_id)
    timestamp: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if self.origin not in _ORIGINS:
            raise ValueError(f"Unsupported version origin: {self.origin!r}")


@dataclass(frozen=True, slots=True)
class HistoryItem:
    """Row rendered by the version-history panel."""

    entry: VersionEntry
    is_current: bool

    @property
    def id(self) -> str:
        return self.entry.id


@dataclass(frozen=True, slots=True)
class Position:
    """1-indexed line/column location inside a buffer."""

    line: int
    column: int


@dataclass(frozen=True, slots=True)
class ReplaceModification:
    """Replace the whole buffer with ``content``."""

    content: str
    action: ClassVar[str] = "replace"


@dataclass(frozen=True, slots=True)
class AppendModification:
    """Append ``content`` after the buffer on a fresh line."""

    content: str
    action: ClassVar[str] = "append"


@dataclass(frozen=True, slots=True)
class InsertModification:
    """Insert ``content`` at ``position`` or at the start of the buffer."""

    content: str
    position: Optional[Position] = None
    action: ClassVar[str] = "insert"


Modification = Union[ReplaceModification, AppendModification, InsertModification]


class InvalidModificationError(ValueError):
    """Raised when a producer payload cannot be decoded into a modification."""


def modification_from_payload(payload: Mapping[str, Any]) -> Modification:
    """Decode an AI producer payload such as ``{"action": "append", "content": "..."}``.

    ``create`` payloads open a console with fresh content, so they decode to a
    replacement of the whole buffer.
    """

    if not isinstance(payload, Mapping):
        raise InvalidModificationError("Modification payload must be a mapping")
    action = str(payload.get("action") or "").strip().lower()
    content = payload.get("content")
    if not isinstance(content, str):
        raise InvalidModificationError("Modification content must be a string")

    if action in {"replace", "create"}:
        return ReplaceModification(content=content)
    if action == "append":
        return AppendModification(content=content)
    if action == "insert":
        return InsertModification(content=content, position=_coerce_position(payload.get("position")))
    raise InvalidModificationError(f"Unsupported modification action: {action or '<missing>'}")


def _coerce_position(value: Any) -> Position | None:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise InvalidModificationError("Insert position must be a mapping with line and column")
    try:
        line = int(value["line"])
        column = int(value["column"])
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidModificationError(f"Invalid insert position: {value!r}") from exc
    return Position(line=line, column=column)


class DiffStatus(enum.Enum):
    IDLE = "idle"
    PREVIEWING = "previewing"


class WriteMode(enum.Enum):
    """Marks whether a buffer write came from the user or from the console itself."""

    NORMAL = "normal"
    APPLYING_PROGRAMMATIC_WRITE = "applying_programmatic_write"


@dataclass(frozen=True, slots=True)
class EditingView:
    """The live buffer is editable."""

    kind: ClassVar[str] = "editing"


@dataclass(frozen=True, slots=True)
class DiffPreviewView:
    """The presentation layer should show a read-only comparison."""

    original: str
    modified: str
    action: str
    diff: str = ""
    summary: str = ""
    kind: ClassVar[str] = "previewing_diff"


ConsoleView = Union[EditingView, DiffPreviewView]
