"""Wires an editing surface to version history, diff previews, and dirty tracking."""

from __future__ import annotations

import asyncio
import inspect
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Awaitable, Callable, Iterator, Union

from ..events import (
    ContentPersisted,
    DiffAccepted,
    DiffPreviewStarted,
    DiffRejected,
    DirtyStateChanged,
    Event,
    EventBus,
    HistoryCleared,
    HistoryNavigated,
    PersistenceFailed,
    VersionSaved,
)
from ..settings import VersioningSettings
from .diff_session import CommitResult, DiffPreview, DiffSession, commit_modification
from .models import (
    ConsoleView,
    HistoryItem,
    Modification,
    VersionEntry,
    VersionOrigin,
    WriteMode,
    hash_content,
)
from .patches import compute_modified_content
from .scheduling import AsyncioScheduler, Debouncer, Scheduler
from .version_manager import VersionManager

if TYPE_CHECKING:  # pragma: no cover
    from ..surface import EditingSurface

__all__ = ["ConsoleOrchestrator", "Persister"]

LOGGER = logging.getLogger(__name__)

Persister = Callable[[str], Union[bool, Awaitable[bool]]]


class ConsoleOrchestrator:
    """Owns the version history and diff session of one open console.

    User edits reach :meth:`handle_content_changed` from the editing surface.
    The first edit after a quiet period snapshots the pre-edit baseline; the
    debounce timer then records the final content of the burst once typing
    pauses. Writes made by undo, redo, restore, and AI commits carry
    :attr:`WriteMode.APPLYING_PROGRAMMATIC_WRITE` and are never recorded as
    user versions.
    """

    def __init__(
        self,
        console_id: str,
        surface: EditingSurface,
        *,
        settings: VersioningSettings | None = None,
        scheduler: Scheduler | None = None,
        event_bus: EventBus | None = None,
        persister: Persister | None = None,
        persisted_content: str | None = None,
        versions: VersionManager | None = None,
    ) -> None:
        self._console_id = console_id
        self._surface = surface
        self._settings = settings or VersioningSettings()
        self._bus = event_bus
        self._persister = persister
        self._versions = versions or VersionManager(max_versions=self._settings.max_versions)
        self._diff = DiffSession(self._versions)
        self._debouncer = Debouncer(scheduler or AsyncioScheduler(), self._settings.debounce_seconds)
        self._mode = WriteMode.NORMAL
        self._disposed = False
        self._background_tasks: set[asyncio.Task[bool]] = set()

        content = surface.get_value()
        self._last_seen_content = content
        baseline = content if persisted_content is None else persisted_content
        self._last_persisted_hash = hash_content(baseline)
        self._dirty = hash_content(content) != self._last_persisted_hash

        if self._settings.seed_initial_version and self._versions.is_empty():
            self._record_version(content, "user", self._settings.initial_description)

        surface.add_change_listener(self.handle_content_changed)
        LOGGER.debug(
            "ConsoleOrchestrator attached: console_id=%s, versions=%d, dirty=%s",
            console_id,
            len(self._versions),
            self._dirty,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def console_id(self) -> str:
        return self._console_id

    @property
    def surface(self) -> EditingSurface:
        return self._surface

    @property
    def versions(self) -> VersionManager:
        return self._versions

    @property
    def diff_session(self) -> DiffSession:
        return self._diff

    @property
    def mode(self) -> WriteMode:
        return self._mode

    @property
    def is_previewing(self) -> bool:
        return self._diff.is_previewing

    @property
    def can_undo(self) -> bool:
        return not self._diff.is_previewing and self._versions.can_undo()

    @property
    def can_redo(self) -> bool:
        return not self._diff.is_previewing and self._versions.can_redo()

    @property
    def has_unsaved_changes(self) -> bool:
        return hash_content(self._surface.get_value()) != self._last_persisted_hash

    @property
    def last_persisted_hash(self) -> str:
        return self._last_persisted_hash

    @property
    def has_pending_edit(self) -> bool:
        return self._debouncer.pending

    @property
    def view(self) -> ConsoleView:
        return self._diff.view()

    def get_history(self) -> tuple[VersionEntry, ...]:
        return self._versions.get_history()

    def history_view(self) -> tuple[HistoryItem, ...]:
        return self._versions.history_view()

    # ------------------------------------------------------------------
    # Editing surface listener
    # ------------------------------------------------------------------
    def handle_content_changed(self, text: str, mode: WriteMode = WriteMode.NORMAL) -> None:
        """Process a content-change notification from the editing surface."""

        if self._disposed:
            return
        self._refresh_dirty(text)
        if mode is WriteMode.APPLYING_PROGRAMMATIC_WRITE or self._mode is WriteMode.APPLYING_PROGRAMMATIC_WRITE:
            self._last_seen_content = text
            return

        if not self._debouncer.pending:
            self._record_version(self._last_seen_content, "user")
        self._last_seen_content = text
        self._debouncer.schedule(self._flush_debounced_edit)

    def flush_pending_edits(self) -> VersionEntry | None:
        """Record the pending debounced edit immediately, if there is one."""

        if not self._debouncer.cancel():
            return None
        return self._record_version(self._surface.get_value(), "user")

    def _flush_debounced_edit(self) -> None:
        if self._disposed:
            return
        self._record_version(self._surface.get_value(), "user")

    # ------------------------------------------------------------------
    # History navigation
    # ------------------------------------------------------------------
    def undo(self) -> str | None:
        if self._diff.is_previewing:
            LOGGER.debug("Undo ignored while a diff preview is open (console_id=%s)", self._console_id)
            return None
        self.flush_pending_edits()
        return self._navigate("undo", self._versions.undo())

    def redo(self) -> str | None:
        if self._diff.is_previewing:
            LOGGER.debug("Redo ignored while a diff preview is open (console_id=%s)", self._console_id)
            return None
        self.flush_pending_edits()
        return self._navigate("redo", self._versions.redo())

    def restore_version(self, version_id: str) -> str | None:
        if self._diff.is_previewing:
            LOGGER.debug("Restore ignored while a diff preview is open (console_id=%s)", self._console_id)
            return None
        self.flush_pending_edits()
        return self._navigate("restore", self._versions.restore_version(version_id))

    def clear_history(self) -> None:
        """Drop all versions and re-seed with the live content when seeding is enabled."""

        self._debouncer.cancel()
        self._versions.clear()
        self._publish(HistoryCleared(console_id=self._console_id))
        if self._settings.seed_initial_version:
            self._record_version(self._surface.get_value(), "user", self._settings.initial_description)

    def _navigate(self, operation: str, content: str | None) -> str | None:
        if content is None:
            return None
        self._write(content)
        current = self._versions.current_version()
        LOGGER.debug(
            "Console %s %s -> index %d",
            self._console_id,
            operation,
            self._versions.cursor,
        )
        if current is not None:
            self._publish(
                HistoryNavigated(
                    console_id=self._console_id,
                    version_id=current.id,
                    operation=operation,
                    can_undo=self.can_undo,
                    can_redo=self.can_redo,
                )
            )
        return content

    # ------------------------------------------------------------------
    # AI modifications
    # ------------------------------------------------------------------
    def show_diff(self, modification: Modification, *, ai_prompt: str | None = None) -> DiffPreview:
        """Preview ``modification`` against the live buffer without mutating it.

        A pending debounced edit is recorded first so the history stays fixed
        while the preview is open.
        """

        self.flush_pending_edits()
        replaced = self._diff.is_previewing
        preview = self._diff.show_diff(self._surface.get_value(), modification, ai_prompt=ai_prompt)
        self._publish(
            DiffPreviewStarted(
                console_id=self._console_id,
                action=preview.action,
                summary=preview.summary(),
                replaced_pending=replaced,
            )
        )
        return preview

    def accept_changes(self) -> CommitResult | None:
        if not self._diff.is_previewing:
            return None
        self._debouncer.cancel()
        result = self._diff.accept_changes(self._write)
        if result is not None:
            self._publish_commit(result)
        return result

    def reject_changes(self, *, reason: str = "user") -> DiffPreview | None:
        preview = self._diff.reject_changes()
        if preview is not None:
            self._publish(DiffRejected(console_id=self._console_id, action=preview.action, reason=reason))
        return preview

    def apply_modification(self, modification: Modification, *, ai_prompt: str | None = None) -> CommitResult:
        """Apply ``modification`` straight to the live buffer, skipping the preview."""

        if self._diff.is_previewing:
            self.reject_changes(reason="superseded")
        self._debouncer.cancel()
        original = self._surface.get_value()
        preview = DiffPreview(
            original_content=original,
            modified_content=compute_modified_content(original, modification),
            modification=modification,
            ai_prompt=ai_prompt,
        )
        result = commit_modification(preview, self._versions, self._write)
        self._publish_commit(result)
        return result

    def _publish_commit(self, result: CommitResult) -> None:
        for entry in (result.before, result.after):
            if entry is not None:
                self._publish_version(entry)
        self._publish(
            DiffAccepted(
                console_id=self._console_id,
                action=result.preview.action,
                version_id=result.after.id if result.after else None,
            )
        )

    # ------------------------------------------------------------------
    # Persistence & dirty state
    # ------------------------------------------------------------------
    def mark_persisted(self, content: str | None = None) -> None:
        """Record ``content`` (default: the live buffer) as the last persisted text."""

        persisted = self._surface.get_value() if content is None else content
        self._last_persisted_hash = hash_content(persisted)
        self._refresh_dirty(self._surface.get_value())
        self._publish(ContentPersisted(console_id=self._console_id, content_hash=self._last_persisted_hash))

    async def persist(self) -> bool:
        """Hand the live content to the persister and advance the baseline on success."""

        if self._persister is None:
            LOGGER.debug("Console %s has no persister configured", self._console_id)
            return False
        content = self._surface.get_value()
        try:
            outcome = self._persister(content)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as exc:
            LOGGER.warning("Persisting console %s failed: %s", self._console_id, exc)
            self._publish(PersistenceFailed(console_id=self._console_id, error=str(exc)))
            return False
        if not outcome:
            LOGGER.warning("Persister reported failure for console %s", self._console_id)
            self._publish(PersistenceFailed(console_id=self._console_id))
            return False
        self.mark_persisted(content)
        return True

    def persist_in_background(self) -> asyncio.Task[bool]:
        """Schedule :meth:`persist` on the running loop without awaiting it."""

        task = asyncio.get_running_loop().create_task(self.persist())
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    def _refresh_dirty(self, content: str) -> None:
        dirty = hash_content(content) != self._last_persisted_hash
        if dirty == self._dirty:
            return
        self._dirty = dirty
        self._publish(DirtyStateChanged(console_id=self._console_id, dirty=dirty))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def dispose(self, *, reason: str = "closed") -> None:
        """Detach from the surface; an open preview is rejected."""

        if self._disposed:
            return
        if self._diff.is_previewing:
            self.reject_changes(reason=reason)
        self._debouncer.cancel()
        self._surface.remove_change_listener(self.handle_content_changed)
        self._versions.clear()
        self._disposed = True
        LOGGER.debug("ConsoleOrchestrator disposed: console_id=%s", self._console_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    @contextmanager
    def _programmatic_write(self) -> Iterator[None]:
        previous = self._mode
        self._mode = WriteMode.APPLYING_PROGRAMMATIC_WRITE
        try:
            yield
        finally:
            self._mode = previous

    def _write(self, content: str) -> None:
        with self._programmatic_write():
            self._surface.set_value(content, mode=WriteMode.APPLYING_PROGRAMMATIC_WRITE)
        self._last_seen_content = content
        self._refresh_dirty(content)

    def _record_version(
        self, content: str, origin: VersionOrigin, description: str | None = None
    ) -> VersionEntry | None:
        entry = self._versions.save_version(content, origin, description)
        if entry is not None:
            self._publish_version(entry)
        return entry

    def _publish_version(self, entry: VersionEntry) -> None:
        self._publish(
            VersionSaved(
                console_id=self._console_id,
                version_id=entry.id,
                origin=entry.origin,
                description=entry.description,
                sequence_index=entry.sequence_index,
            )
        )

    def _publish(self, event: Event) -> None:
        if self._bus is not None:
            self._bus.publish(event)
