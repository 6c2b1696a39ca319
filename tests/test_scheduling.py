"""Tests for debounce scheduling."""

from __future__ import annotations

import asyncio

from queryconsole.versioning.scheduling import AsyncioScheduler, Debouncer

from tests.helpers import FakeScheduler


class TestDebouncer:
    def test_fires_once_after_delay(self, scheduler: FakeScheduler) -> None:
        calls: list[str] = []
        debouncer = Debouncer(scheduler, 0.5)

        debouncer.schedule(lambda: calls.append("fired"))
        scheduler.advance(0.4)
        assert calls == []
        assert debouncer.pending

        scheduler.advance(0.2)
        assert calls == ["fired"]
        assert not debouncer.pending

    def test_rescheduling_restarts_the_timer(self, scheduler: FakeScheduler) -> None:
        calls: list[int] = []
        debouncer = Debouncer(scheduler, 0.5)

        for index in range(3):
            debouncer.schedule(lambda index=index: calls.append(index))
            scheduler.advance(0.3)

        assert calls == []
        scheduler.advance(0.5)
        assert calls == [2]
        assert len(scheduler.pending) == 0

    def test_cancel_reports_whether_a_task_was_pending(self, scheduler: FakeScheduler) -> None:
        calls: list[str] = []
        debouncer = Debouncer(scheduler, 0.5)

        assert debouncer.cancel() is False
        debouncer.schedule(lambda: calls.append("fired"))
        assert debouncer.cancel() is True

        scheduler.advance(1.0)
        assert calls == []

    def test_stale_fire_after_cancel_is_ignored(self, scheduler: FakeScheduler) -> None:
        calls: list[str] = []
        debouncer = Debouncer(scheduler, 0.5)
        debouncer.schedule(lambda: calls.append("fired"))
        task = scheduler.tasks[0]

        debouncer.cancel()
        task.callback()

        assert calls == []

    def test_negative_delay_is_clamped(self, scheduler: FakeScheduler) -> None:
        assert Debouncer(scheduler, -1).delay == 0.0


class TestAsyncioScheduler:
    def test_call_later_runs_on_running_loop(self) -> None:
        async def runner() -> list[str]:
            calls: list[str] = []
            scheduler = AsyncioScheduler()
            scheduler.call_later(0.01, lambda: calls.append("fired"))
            await asyncio.sleep(0.05)
            return calls

        assert asyncio.run(runner()) == ["fired"]

    def test_debouncer_coalesces_on_asyncio(self) -> None:
        async def runner() -> list[int]:
            calls: list[int] = []
            debouncer = Debouncer(AsyncioScheduler(), 0.02)
            for index in range(3):
                debouncer.schedule(lambda index=index: calls.append(index))
                await asyncio.sleep(0)
            await asyncio.sleep(0.1)
            return calls

        assert asyncio.run(runner()) == [2]

    def test_cancelled_handle_never_fires(self) -> None:
        async def runner() -> list[str]:
            calls: list[str] = []
            handle = AsyncioScheduler().call_later(0.01, lambda: calls.append("fired"))
            handle.cancel()
            await asyncio.sleep(0.05)
            return calls

        assert asyncio.run(runner()) == []
