"""Editing-surface contract and an in-memory buffer implementation."""

from __future__ import annotations

import logging
from typing import List, Protocol

from .versioning.models import WriteMode

__all__ = ["ContentChangeListener", "EditingSurface", "TextBuffer"]

LOGGER = logging.getLogger(__name__)


class ContentChangeListener(Protocol):
    """Callback fired after the surface text changes.

    ``mode`` is the write mode passed to :meth:`EditingSurface.set_value`;
    keystrokes always report :attr:`WriteMode.NORMAL`.
    """

    def __call__(self, text: str, mode: WriteMode) -> None:  # pragma: no cover - protocol
        ...


class EditingSurface(Protocol):
    """Minimal editor widget API the console core depends on."""

    def get_value(self) -> str:  # pragma: no cover - protocol
        ...

    def set_value(self, text: str, *, mode: WriteMode = WriteMode.NORMAL) -> None:  # pragma: no cover - protocol
        ...

    def add_change_listener(self, listener: ContentChangeListener) -> None:  # pragma: no cover - protocol
        ...

    def remove_change_listener(self, listener: ContentChangeListener) -> None:  # pragma: no cover - protocol
        ...


class TextBuffer:
    """Headless editing surface holding its text in memory.

    ``type_text`` simulates user input; ``set_value`` is the programmatic write
    path and notifies listeners the same way a real editor model does.
    """

    def __init__(self, text: str = "") -> None:
        self._text = text
        self._listeners: List[ContentChangeListener] = []
        self.read_only = False

    def get_value(self) -> str:
        return self._text

    def set_value(self, text: str, *, mode: WriteMode = WriteMode.NORMAL) -> None:
        if text == self._text:
            return
        self._text = text
        self._notify(mode)

    def type_text(self, text: str) -> None:
        """Replace the buffer as if the user had edited it."""

        if self.read_only:
            LOGGER.debug("TextBuffer is read-only; ignoring edit")
            return
        self.set_value(text)

    def add_change_listener(self, listener: ContentChangeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_change_listener(self, listener: ContentChangeListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _notify(self, mode: WriteMode) -> None:
        for listener in list(self._listeners):
            listener(self._text, mode)
