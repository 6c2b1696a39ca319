"""Shared pytest fixtures."""

from __future__ import annotations

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from queryconsole.events import EventBus
from queryconsole.settings import VersioningSettings
from queryconsole.surface import TextBuffer

from tests.helpers import EventRecorder, FakeScheduler


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorder(event_bus: EventBus) -> EventRecorder:
    return EventRecorder(event_bus)


@pytest.fixture
def settings() -> VersioningSettings:
    return VersioningSettings(debounce_seconds=0.5, max_versions=50)


@pytest.fixture
def buffer() -> TextBuffer:
    return TextBuffer("SELECT 1")
