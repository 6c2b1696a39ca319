"""Delayed-task scheduling used to debounce user edits."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Protocol

__all__ = ["ScheduledTask", "Scheduler", "AsyncioScheduler", "Debouncer"]

LOGGER = logging.getLogger(__name__)


class ScheduledTask(Protocol):
    """Handle returned by :meth:`Scheduler.call_later`."""

    def cancel(self) -> None:  # pragma: no cover - protocol
        ...


class Scheduler(Protocol):
    """Runs a callback once after ``delay`` seconds on the owning event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:  # pragma: no cover - protocol
        ...


class AsyncioScheduler:
    """Scheduler backed by ``loop.call_later``."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0.0, delay), callback)


class Debouncer:
    """Owns at most one pending delayed task; each ``schedule`` replaces it."""

    def __init__(self, scheduler: Scheduler, delay: float) -> None:
        self._scheduler = scheduler
        self._delay = max(0.0, float(delay))
        self._handle: ScheduledTask | None = None
        self._generation = 0

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, callback: Callable[[], None]) -> None:
        self.cancel()
        self._generation += 1
        generation = self._generation

        def _fire() -> None:
            # A cancelled handle may still fire on schedulers without true cancellation.
            if generation != self._generation or self._handle is None:
                return
            self._handle = None
            callback()

        self._handle = self._scheduler.call_later(self._delay, _fire)

    def cancel(self) -> bool:
        handle = self._handle
        if handle is None:
            return False
        self._handle = None
        self._generation += 1
        handle.cancel()
        return True
