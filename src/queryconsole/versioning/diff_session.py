"""Preview/accept/reject workflow for AI modifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from .models import (
    ConsoleView,
    DiffPreviewView,
    DiffStatus,
    EditingView,
    Modification,
    VersionEntry,
)
from .patches import build_unified_diff, compute_modified_content, summarize_change
from .version_manager import VersionManager

__all__ = [
    "BEFORE_AI_DESCRIPTION",
    "CommitResult",
    "DiffPreview",
    "DiffSession",
    "commit_modification",
]

LOGGER = logging.getLogger(__name__)
BEFORE_AI_DESCRIPTION = "Before AI modification"

BufferWriter = Callable[[str], None]


@dataclass(frozen=True, slots=True)
class DiffPreview:
    """Pending comparison between the live buffer and a modification result."""

    original_content: str
    modified_content: str
    modification: Modification
    ai_prompt: str | None = None

    @property
    def action(self) -> str:
        return self.modification.action

    @property
    def has_changes(self) -> bool:
        return self.original_content != self.modified_content

    def unified_diff(self, *, filename: str | None = None, context: int = 3) -> str:
        return build_unified_diff(
            self.original_content,
            self.modified_content,
            filename=filename,
            context=context,
        )

    def summary(self) -> str:
        return summarize_change(self.original_content, self.modified_content)


@dataclass(frozen=True, slots=True)
class CommitResult:
    """Outcome of writing a modification to the live buffer."""

    preview: DiffPreview
    before: VersionEntry | None
    after: VersionEntry | None


def commit_modification(
    preview: DiffPreview,
    versions: VersionManager,
    write: BufferWriter,
) -> CommitResult:
    """Record the pre-AI snapshot, write the modified text, then record the AI version.

    Both entries are always appended, even when the history already ends with
    the original text or the modification changes nothing.
    """

    before = versions.save_version(
        preview.original_content,
        "user",
        BEFORE_AI_DESCRIPTION,
        collapse_duplicate=False,
    )
    write(preview.modified_content)
    after = versions.save_version(
        preview.modified_content,
        "ai",
        f"AI {preview.action}",
        ai_prompt=preview.ai_prompt,
        collapse_duplicate=False,
    )
    return CommitResult(preview=preview, before=before, after=after)


class DiffSession:
    """Transient state machine: ``IDLE -> PREVIEWING -> IDLE``.

    The session never touches the live buffer while previewing. Accepting
    commits through :func:`commit_modification`; rejecting simply forgets the
    preview.
    """

    def __init__(self, versions: VersionManager) -> None:
        self._versions = versions
        self._preview: DiffPreview | None = None

    @property
    def status(self) -> DiffStatus:
        return DiffStatus.PREVIEWING if self._preview is not None else DiffStatus.IDLE

    @property
    def is_previewing(self) -> bool:
        return self._preview is not None

    @property
    def preview(self) -> DiffPreview | None:
        return self._preview

    @property
    def original_content(self) -> str | None:
        return self._preview.original_content if self._preview else None

    @property
    def modified_content(self) -> str | None:
        return self._preview.modified_content if self._preview else None

    @property
    def pending_modification(self) -> Modification | None:
        return self._preview.modification if self._preview else None

    def show_diff(
        self,
        original_content: str,
        modification: Modification,
        *,
        ai_prompt: str | None = None,
    ) -> DiffPreview:
        """Start previewing ``modification`` against ``original_content``.

        A second call while previewing replaces the pending preview.
        """

        if self._preview is not None:
            LOGGER.warning(
                "Replacing pending %s preview with a new %s preview",
                self._preview.action,
                modification.action,
            )
        self._preview = DiffPreview(
            original_content=original_content,
            modified_content=compute_modified_content(original_content, modification),
            modification=modification,
            ai_prompt=ai_prompt,
        )
        LOGGER.debug("DiffSession previewing %s (%s)", modification.action, self._preview.summary())
        return self._preview

    def accept_changes(self, write: BufferWriter) -> CommitResult | None:
        preview = self._preview
        if preview is None:
            LOGGER.debug("DiffSession.accept_changes ignored: nothing to accept")
            return None
        self._preview = None
        result = commit_modification(preview, self._versions, write)
        LOGGER.debug("DiffSession accepted %s", preview.action)
        return result

    def reject_changes(self) -> DiffPreview | None:
        preview = self._preview
        if preview is None:
            return None
        self._preview = None
        LOGGER.debug("DiffSession rejected %s", preview.action)
        return preview

    def view(self) -> ConsoleView:
        """Return the presentation state consumed by the editor chrome."""

        preview = self._preview
        if preview is None:
            return EditingView()
        return DiffPreviewView(
            original=preview.original_content,
            modified=preview.modified_content,
            action=preview.action,
            diff=preview.unified_diff(),
            summary=preview.summary(),
        )
