"""PySide6 adapters: a ``QPlainTextEdit`` editing surface and a ``QTimer`` scheduler.

Install with the ``qt`` extra. Qt's ``textChanged`` signal carries no origin,
so programmatic writes are reported with the mode recorded by ``set_value``
while the signal is being delivered.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Set

from PySide6.QtCore import QObject, QTimer
from PySide6.QtWidgets import QPlainTextEdit

from .surface import ContentChangeListener
from .versioning.models import DiffPreviewView, EditingView, WriteMode

__all__ = ["QtEditingSurface", "QtScheduler", "QtTimerTask"]

LOGGER = logging.getLogger(__name__)


class QtEditingSurface:
    """Adapts a ``QPlainTextEdit`` to the editing-surface contract."""

    def __init__(self, editor: QPlainTextEdit | None = None, parent: Any | None = None) -> None:
        self._editor = editor if editor is not None else QPlainTextEdit(parent)
        self._listeners: List[ContentChangeListener] = []
        self._write_mode = WriteMode.NORMAL
        self._editor.textChanged.connect(self._on_text_changed)

    @property
    def widget(self) -> QPlainTextEdit:
        return self._editor

    def get_value(self) -> str:
        return self._editor.toPlainText()

    def set_value(self, text: str, *, mode: WriteMode = WriteMode.NORMAL) -> None:
        if text == self._editor.toPlainText():
            return
        previous = self._write_mode
        self._write_mode = mode
        try:
            self._editor.setPlainText(text)
        finally:
            self._write_mode = previous

    def add_change_listener(self, listener: ContentChangeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_change_listener(self, listener: ContentChangeListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def apply_view(self, view: EditingView | DiffPreviewView) -> None:
        """Lock the editor while a diff preview is shown."""

        previewing = isinstance(view, DiffPreviewView)
        self._editor.setReadOnly(previewing)
        if previewing:
            LOGGER.debug("Editor locked for %s preview (%s)", view.action, view.summary)

    def _on_text_changed(self) -> None:
        text = self._editor.toPlainText()
        mode = self._write_mode
        for listener in list(self._listeners):
            listener(text, mode)


class QtTimerTask:
    """Cancellable single-shot ``QTimer`` owned by a parent ``QObject``."""

    def __init__(
        self,
        delay: float,
        callback: Callable[[], None],
        parent: QObject,
        on_done: Callable[[QtTimerTask], None] | None = None,
    ) -> None:
        self._callback = callback
        self._on_done = on_done
        self._active = True
        self._timer = QTimer(parent)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_timeout)
        self._timer.start(max(0, int(delay * 1000)))

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._timer.stop()
        self._finish()

    def _on_timeout(self) -> None:
        if not self._active:
            return
        self._finish()
        self._callback()

    def _finish(self) -> None:
        self._active = False
        # deleteLater is safe while the timeout signal is still being delivered.
        self._timer.deleteLater()
        if self._on_done is not None:
            self._on_done(self)


class QtScheduler:
    """Scheduler running debounce callbacks on the Qt event loop.

    Pending tasks are kept alive here until they fire or are cancelled.
    """

    def __init__(self, parent: QObject | None = None) -> None:
        self._owner = parent if parent is not None else QObject()
        self._tasks: Set[QtTimerTask] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def call_later(self, delay: float, callback: Callable[[], None]) -> QtTimerTask:
        task = QtTimerTask(delay, callback, self._owner, on_done=self._tasks.discard)
        self._tasks.add(task)
        return task
