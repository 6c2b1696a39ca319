"""Event bus and console events.

Orchestrators publish here so the history panel, toolbar, and tab strip can
react to version changes without holding references to the console core.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, DefaultDict, Generic, TypeVar
from weakref import WeakMethod

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all console events."""


# =============================================================================
# Console lifecycle
# =============================================================================


@dataclass(slots=True)
class ConsoleOpened(Event):
    console_id: str


@dataclass(slots=True)
class ConsoleClosed(Event):
    console_id: str


@dataclass(slots=True)
class ActiveConsoleChanged(Event):
    """Emitted when focus moves to another console.

    Attributes:
        console_id: The newly active console, or None when none is active.
        previous_id: The console that lost focus, if any.
    """

    console_id: str | None
    previous_id: str | None = None


# =============================================================================
# History events
# =============================================================================


@dataclass(slots=True)
class VersionSaved(Event):
    """Emitted whenever a new entry is appended to a console history.

    Attributes:
        console_id: The console that owns the history.
        version_id: Identifier of the new entry.
        origin: ``"user"`` or ``"ai"``.
        description: Human-readable label shown in the history panel.
        sequence_index: Monotonic counter assigned by the version manager.
    """

    console_id: str
    version_id: str
    origin: str
    description: str
    sequence_index: int


@dataclass(slots=True)
class HistoryNavigated(Event):
    """Emitted after undo, redo, or restore moved the history cursor.

    Attributes:
        console_id: The console whose cursor moved.
        version_id: The entry now current.
        operation: ``"undo"``, ``"redo"`` or ``"restore"``.
        can_undo: Whether another undo is possible.
        can_redo: Whether a redo is possible.
    """

    console_id: str
    version_id: str
    operation: str
    can_undo: bool
    can_redo: bool


@dataclass(slots=True)
class HistoryCleared(Event):
    console_id: str


# =============================================================================
# Diff preview events
# =============================================================================


@dataclass(slots=True)
class DiffPreviewStarted(Event):
    """Emitted when an AI modification enters preview.

    Attributes:
        console_id: The console being previewed.
        action: The modification action (replace/append/insert).
        summary: Short line-count summary of the change.
        replaced_pending: True if an earlier preview was overwritten.
    """

    console_id: str
    action: str
    summary: str
    replaced_pending: bool = False


@dataclass(slots=True)
class DiffAccepted(Event):
    console_id: str
    action: str
    version_id: str | None


@dataclass(slots=True)
class DiffRejected(Event):
    """Emitted when a preview is discarded.

    Attributes:
        console_id: The console whose preview was dropped.
        action: The modification action that was rejected.
        reason: ``"user"``, ``"closed"``, ``"switched"`` or ``"superseded"``.
    """

    console_id: str
    action: str
    reason: str = "user"


# =============================================================================
# Dirty state & persistence
# =============================================================================


@dataclass(slots=True)
class DirtyStateChanged(Event):
    console_id: str
    dirty: bool


@dataclass(slots=True)
class ContentPersisted(Event):
    console_id: str
    content_hash: str


@dataclass(slots=True)
class PersistenceFailed(Event):
    console_id: str
    error: str | None = None


class EventBus(Generic[E]):
    """Synchronous publish/subscribe bus.

    Bound-method handlers are held weakly so a closed console's listeners
    disappear with it. A handler that raises is logged and the remaining
    handlers still run. Not thread-safe; publish from the UI loop only.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: DefaultDict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        self._handlers[event_type].append(_HandlerRef.create(handler))
        logger.debug("Subscribed %s to %s", _handler_name(handler), event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""

        handlers = self._handlers.get(event_type)
        if not handlers:
            return
        for index, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(index)
                return

    def publish(self, event: E) -> None:
        event_type = type(event)
        handlers = self._handlers.get(event_type)
        if not handlers:
            return

        dead: list[int] = []
        for index, handler_ref in enumerate(list(handlers)):
            handler = handler_ref.resolve()
            if handler is None:
                dead.append(index)
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s raised while handling %s",
                    _handler_name(handler),
                    event_type.__name__,
                )

        for index in reversed(dead):
            if index < len(handlers) and handlers[index].resolve() is None:
                handlers.pop(index)

    def clear(self) -> None:
        self._handlers.clear()

    def handler_count(self, event_type: type[E] | None = None) -> int:
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    """Weak reference for bound methods, strong reference for everything else."""

    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: WeakMethod | Handler, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> _HandlerRef:
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                pass
        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        if not self._is_weak:
            return self._ref  # type: ignore[return-value]
        return self._ref()  # type: ignore[operator]

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        return resolved is not None and resolved == handler


def _handler_name(handler: Handler) -> str:
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        return f"{type(handler.__self__).__name__}.{handler.__func__.__name__}"
    return getattr(handler, "__name__", repr(handler))


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "ConsoleOpened",
    "ConsoleClosed",
    "ActiveConsoleChanged",
    "VersionSaved",
    "HistoryNavigated",
    "HistoryCleared",
    "DiffPreviewStarted",
    "DiffAccepted",
    "DiffRejected",
    "DirtyStateChanged",
    "ContentPersisted",
    "PersistenceFailed",
]
