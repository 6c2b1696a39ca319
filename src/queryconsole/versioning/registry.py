"""Per-console orchestrator registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterator, List

from ..events import ActiveConsoleChanged, ConsoleClosed, ConsoleOpened, EventBus
from ..settings import VersioningSettings
from .orchestrator import ConsoleOrchestrator, Persister
from .scheduling import AsyncioScheduler, Scheduler

if TYPE_CHECKING:  # pragma: no cover
    from ..surface import EditingSurface

__all__ = ["ConsoleRegistry"]

LOGGER = logging.getLogger(__name__)


class ConsoleRegistry:
    """Maps console ids to their orchestrators.

    Each console owns exactly one version history and at most one diff
    preview. Closing a console or switching away from it rejects a preview
    that is still open.
    """

    def __init__(
        self,
        *,
        settings: VersioningSettings | None = None,
        event_bus: EventBus | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._settings = settings or VersioningSettings()
        self._bus = event_bus
        self._scheduler = scheduler or AsyncioScheduler()
        self._consoles: Dict[str, ConsoleOrchestrator] = {}
        self._order: List[str] = []
        self._active_id: str | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def open_console(
        self,
        console_id: str,
        surface: EditingSurface,
        *,
        persister: Persister | None = None,
        persisted_content: str | None = None,
        make_active: bool = True,
    ) -> ConsoleOrchestrator:
        """Create the orchestrator for ``console_id``.

        Raises:
            ValueError: If the console is already open.
        """

        if console_id in self._consoles:
            raise ValueError(f"Console {console_id!r} is already open")
        orchestrator = ConsoleOrchestrator(
            console_id,
            surface,
            settings=self._settings,
            scheduler=self._scheduler,
            event_bus=self._bus,
            persister=persister,
            persisted_content=persisted_content,
        )
        self._consoles[console_id] = orchestrator
        self._order.append(console_id)
        LOGGER.debug("ConsoleRegistry.open_console: console_id=%s, open=%d", console_id, len(self._order))
        self._publish(ConsoleOpened(console_id=console_id))
        if make_active:
            self.activate(console_id)
        return orchestrator

    def close_console(self, console_id: str) -> bool:
        orchestrator = self._consoles.pop(console_id, None)
        if orchestrator is None:
            LOGGER.warning("ConsoleRegistry.close_console: unknown console_id=%s", console_id)
            return False
        self._order.remove(console_id)
        orchestrator.dispose(reason="closed")
        if self._active_id == console_id:
            previous = self._active_id
            self._active_id = self._order[-1] if self._order else None
            self._publish(ActiveConsoleChanged(console_id=self._active_id, previous_id=previous))
        self._publish(ConsoleClosed(console_id=console_id))
        return True

    def close_all(self) -> None:
        for console_id in list(self._order):
            self.close_console(console_id)

    def activate(self, console_id: str) -> ConsoleOrchestrator:
        """Make ``console_id`` the active console.

        Raises:
            KeyError: If the console is not open.
        """

        orchestrator = self.get(console_id)
        previous_id = self._active_id
        if previous_id == console_id:
            return orchestrator
        previous = self._consoles.get(previous_id) if previous_id else None
        if previous is not None and previous.is_previewing:
            previous.reject_changes(reason="switched")
        self._active_id = console_id
        self._publish(ActiveConsoleChanged(console_id=console_id, previous_id=previous_id))
        return orchestrator

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------
    def get(self, console_id: str) -> ConsoleOrchestrator:
        return self._consoles[console_id]

    def find(self, console_id: str) -> ConsoleOrchestrator | None:
        return self._consoles.get(console_id)

    @property
    def active(self) -> ConsoleOrchestrator | None:
        if self._active_id is None:
            return None
        return self._consoles.get(self._active_id)

    @property
    def active_id(self) -> str | None:
        return self._active_id

    @property
    def settings(self) -> VersioningSettings:
        return self._settings

    def __contains__(self, console_id: object) -> bool:
        return console_id in self._consoles

    def __len__(self) -> int:
        return len(self._consoles)

    def __iter__(self) -> Iterator[ConsoleOrchestrator]:
        return (self._consoles[console_id] for console_id in list(self._order))

    def _publish(self, event) -> None:
        if self._bus is not None:
            self._bus.publish(event)
