"""Shared test helpers and stub classes.

Import from here instead of duplicating these classes in individual test files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from queryconsole import events
from queryconsole.events import Event, EventBus


@dataclass
class FakeTask:
    """Handle returned by :class:`FakeScheduler`."""

    due: float
    callback: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class FakeScheduler:
    """Manually advanced clock implementing the scheduler protocol.

    Example:
        scheduler.call_later(0.5, callback)
        scheduler.advance(0.5)  # fires callback
    """

    now: float = 0.0
    tasks: list[FakeTask] = field(default_factory=list)

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTask:
        task = FakeTask(due=self.now + delay, callback=callback)
        self.tasks.append(task)
        return task

    def advance(self, seconds: float) -> None:
        self.now += seconds
        for task in sorted(self.tasks, key=lambda item: item.due):
            if task.cancelled or task.fired or task.due > self.now:
                continue
            task.fired = True
            task.callback()

    @property
    def pending(self) -> list[FakeTask]:
        return [task for task in self.tasks if not task.cancelled and not task.fired]


class EventRecorder:
    """Subscribes to every console event type and keeps them in order."""

    def __init__(self, bus: EventBus) -> None:
        self.events: list[Event] = []
        for name in events.__all__:
            candidate = getattr(events, name)
            if isinstance(candidate, type) and issubclass(candidate, Event) and candidate is not Event:
                bus.subscribe(candidate, self.events.append)

    def of_type(self, event_type: type[Event]) -> list[Event]:
        return [event for event in self.events if isinstance(event, event_type)]
