"""Linear undo/redo history for a single console buffer."""

from __future__ import annotations

import logging
from typing import List

from .models import HistoryItem, VersionEntry, VersionOrigin

__all__ = ["VersionManager", "DEFAULT_MAX_VERSIONS"]

LOGGER = logging.getLogger(__name__)
DEFAULT_MAX_VERSIONS = 50


class VersionManager:
    """Owns the snapshot list and cursor for one console.

    Saving after an undo truncates the redo branch. ``restore_version`` only
    moves the cursor, so browsing older versions never destroys history; the
    next save from that point does.
    """

    def __init__(self, *, max_versions: int = DEFAULT_MAX_VERSIONS) -> None:
        self._max_versions = max(1, int(max_versions))
        self._entries: List[VersionEntry] = []
        self._cursor = -1
        self._sequence = 0

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def save_version(
        self,
        content: str,
        origin: VersionOrigin,
        description: str | None = None,
        *,
        ai_prompt: str | None = None,
        collapse_duplicate: bool = True,
    ) -> VersionEntry | None:
        """Append ``content`` as a new version unless it matches the current entry.

        Audit entries pass ``collapse_duplicate=False`` so they are recorded even
        when the history already ends with the same text.
        """

        current = self.current_version()
        if collapse_duplicate and current is not None and current.content == content:
            LOGGER.debug("Skipping duplicate %s version at index %d", origin, self._cursor)
            return None

        if self._cursor < len(self._entries) - 1:
            dropped = len(self._entries) - self._cursor - 1
            del self._entries[self._cursor + 1 :]
            LOGGER.debug("Discarded %d redo version(s) after index %d", dropped, self._cursor)

        entry = VersionEntry(
            content=content,
            origin=origin,
            sequence_index=self._sequence,
            description=description or "",
            ai_prompt=ai_prompt,
        )
        self._sequence += 1
        self._entries.append(entry)

        overflow = len(self._entries) - self._max_versions
        if overflow > 0:
            del self._entries[:overflow]
        self._cursor = len(self._entries) - 1

        LOGGER.debug(
            "Saved %s version %s (seq=%d, total=%d)",
            origin,
            entry.id,
            entry.sequence_index,
            len(self._entries),
        )
        return entry

    def undo(self) -> str | None:
        if not self.can_undo():
            return None
        self._cursor -= 1
        return self._entries[self._cursor].content

    def redo(self) -> str | None:
        if not self.can_redo():
            return None
        self._cursor += 1
        return self._entries[self._cursor].content

    def restore_version(self, version_id: str) -> str | None:
        """Move the cursor to ``version_id`` without discarding any entries."""

        for index, entry in enumerate(self._entries):
            if entry.id == version_id:
                self._cursor = index
                LOGGER.debug("Restored version %s at index %d", version_id, index)
                return entry.content
        LOGGER.warning("Cannot restore unknown version id %s", version_id)
        return None

    def clear(self) -> None:
        self._entries.clear()
        self._cursor = -1

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return 0 <= self._cursor < len(self._entries) - 1

    def current_version(self) -> VersionEntry | None:
        if 0 <= self._cursor < len(self._entries):
            return self._entries[self._cursor]
        return None

    @property
    def cursor(self) -> int:
        """Index of the current entry, or ``-1`` when the history is empty."""

        return self._cursor

    @property
    def max_versions(self) -> int:
        return self._max_versions

    def get_history(self) -> tuple[VersionEntry, ...]:
        return tuple(self._entries)

    def history_view(self) -> tuple[HistoryItem, ...]:
        return tuple(
            HistoryItem(entry=entry, is_current=index == self._cursor)
            for index, entry in enumerate(self._entries)
        )

    def __len__(self) -> int:
        return len(self._entries)

    def is_empty(self) -> bool:
        return not self._entries
