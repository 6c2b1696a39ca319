"""Unit tests for :mod:`queryconsole.events`."""

from __future__ import annotations

import gc
import logging
from dataclasses import dataclass

import pytest

from queryconsole.events import DiffRejected, Event, EventBus, VersionSaved


@dataclass(slots=True)
class SampleEvent(Event):
    message: str
    value: int = 0


@dataclass(slots=True)
class AnotherEvent(Event):
    data: str


class _Listener:
    def __init__(self) -> None:
        self.received: list[Event] = []

    def on_event(self, event: Event) -> None:
        self.received.append(event)


class TestEventBusSubscription:
    def test_subscribe_and_publish(self) -> None:
        bus: EventBus[Event] = EventBus()
        received: list[SampleEvent] = []

        bus.subscribe(SampleEvent, received.append)
        bus.publish(SampleEvent(message="hello", value=42))

        assert received == [SampleEvent(message="hello", value=42)]
        assert bus.handler_count(SampleEvent) == 1

    def test_publish_is_isolated_by_type(self) -> None:
        bus: EventBus[Event] = EventBus()
        received: list[Event] = []
        bus.subscribe(SampleEvent, received.append)

        bus.publish(AnotherEvent(data="x"))

        assert received == []

    def test_handlers_run_in_subscription_order(self) -> None:
        bus: EventBus[Event] = EventBus()
        order: list[str] = []
        bus.subscribe(SampleEvent, lambda _e: order.append("first"))
        bus.subscribe(SampleEvent, lambda _e: order.append("second"))

        bus.publish(SampleEvent(message="x"))

        assert order == ["first", "second"]

    def test_unsubscribe_removes_handler(self) -> None:
        bus: EventBus[Event] = EventBus()
        received: list[SampleEvent] = []

        def handler(event: SampleEvent) -> None:
            received.append(event)

        bus.subscribe(SampleEvent, handler)
        bus.unsubscribe(SampleEvent, handler)
        bus.publish(SampleEvent(message="x"))

        assert received == []
        assert bus.handler_count(SampleEvent) == 0

    def test_unsubscribe_unknown_handler_is_ignored(self) -> None:
        bus: EventBus[Event] = EventBus()

        bus.unsubscribe(SampleEvent, lambda _e: None)

        assert bus.handler_count() == 0

    def test_clear_drops_every_handler(self) -> None:
        bus: EventBus[Event] = EventBus()
        bus.subscribe(SampleEvent, lambda _e: None)
        bus.subscribe(AnotherEvent, lambda _e: None)

        bus.clear()

        assert bus.handler_count() == 0


class TestEventBusRobustness:
    def test_failing_handler_does_not_block_others(self, caplog: pytest.LogCaptureFixture) -> None:
        bus: EventBus[Event] = EventBus()
        received: list[SampleEvent] = []

        def broken(_event: SampleEvent) -> None:
            raise RuntimeError("boom")

        bus.subscribe(SampleEvent, broken)
        bus.subscribe(SampleEvent, received.append)

        with caplog.at_level(logging.ERROR, logger="queryconsole.events"):
            bus.publish(SampleEvent(message="x"))

        assert len(received) == 1
        assert "broken" in caplog.text

    def test_bound_method_handlers_are_weak(self) -> None:
        bus: EventBus[Event] = EventBus()
        listener = _Listener()
        bus.subscribe(SampleEvent, listener.on_event)

        bus.publish(SampleEvent(message="alive"))
        assert len(listener.received) == 1

        del listener
        gc.collect()
        bus.publish(SampleEvent(message="gone"))

        assert bus.handler_count(SampleEvent) == 0

    def test_bound_method_can_be_unsubscribed(self) -> None:
        bus: EventBus[Event] = EventBus()
        listener = _Listener()
        bus.subscribe(SampleEvent, listener.on_event)

        bus.unsubscribe(SampleEvent, listener.on_event)

        assert bus.handler_count(SampleEvent) == 0


def test_console_events_defaults() -> None:
    assert DiffRejected(console_id="c", action="replace").reason == "user"
    event = VersionSaved(console_id="c", version_id="v_1", origin="ai", description="AI append", sequence_index=3)
    assert event.sequence_index == 3
