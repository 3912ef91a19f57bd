"""Shared providers and fixtures for the analytics engine test suite."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Mapping
from typing import Any

import pytest

from analytics_engine.dispatch.service import AnalyticsService
from analytics_engine.models.event import AnalyticsEvent
from analytics_engine.models.provider_config import ProviderConfig
from analytics_engine.providers.base import BaseProvider


class RecordingProvider(BaseProvider):
    """Provider that records every call it receives."""

    def __init__(self, name: str = "Recording") -> None:
        super().__init__()
        self._name = name
        self.events: list[AnalyticsEvent] = []
        self.user_properties: list[tuple[str, Any]] = []
        self.flush_count = 0
        self.consents: list[tuple[bool, dict[str, Any]]] = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def event_names(self) -> list[str]:
        return [event.name for event in self.events]

    def _send_event(self, event: AnalyticsEvent) -> None:
        with self._lock:
            self.events.append(event)

    def _send_user_property(self, name: str, value: Any) -> None:
        with self._lock:
            self.user_properties.append((name, value))

    def _flush(self) -> None:
        with self._lock:
            self.flush_count += 1

    def _on_consent(self, consented: bool, details: dict[str, Any]) -> None:
        self.consents.append((consented, details))


class FailingProvider:
    """Duck-typed provider whose every call after initialization raises."""

    def __init__(self, name: str = "Failing", fail_initialize: bool = False) -> None:
        self._name = name
        self._fail_initialize = fail_initialize
        self._initialized = False
        self._enabled = False
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_enabled(self) -> bool:
        return self._initialized and self._enabled

    def initialize(self, config: ProviderConfig) -> None:
        self.calls.append("initialize")
        if self._fail_initialize:
            raise RuntimeError(f"{self._name} cannot start")
        self._initialized = True
        self._enabled = config.is_enabled_on_start

    def enable(self, enabled: bool) -> None:
        self.calls.append(f"enable:{enabled}")
        if self._initialized:
            self._enabled = enabled

    def track_event(self, event: AnalyticsEvent) -> None:
        self.calls.append("track_event")
        raise RuntimeError("track exploded")

    def set_user_property(self, name: str, value: Any) -> None:
        self.calls.append("set_user_property")
        raise RuntimeError("property exploded")

    def flush_events(self) -> None:
        self.calls.append("flush_events")
        raise RuntimeError("flush exploded")

    def set_consent(self, consented: bool, details: Mapping[str, Any] | None) -> None:
        self.calls.append(f"set_consent:{consented}")
        raise RuntimeError("consent exploded")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_recorder() -> type[RecordingProvider]:
    return RecordingProvider


@pytest.fixture
def make_failing() -> type[FailingProvider]:
    return FailingProvider


@pytest.fixture
def recorder() -> RecordingProvider:
    return RecordingProvider()


@pytest.fixture
def service() -> Iterator[AnalyticsService]:
    svc = AnalyticsService()
    yield svc
    svc.shutdown()


@pytest.fixture
def restore_root_logging() -> Iterator[logging.Logger]:
    """Undo handler and level changes made to the root logger by a test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
