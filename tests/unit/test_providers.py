"""Tests for the provider base class and the built-in providers."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

import pytest

from analytics_engine.models.event import AnalyticsEvent
from analytics_engine.models.provider_config import (
    DebugProviderConfig,
    JsonLinesProviderConfig,
    ProviderConfig,
)
from analytics_engine.providers.base import AnalyticsProvider
from analytics_engine.providers.debug import DebugAnalyticsProvider, format_parameter_value
from analytics_engine.providers.jsonl import JsonLinesProvider

DEBUG_LOGGER = "analytics_engine.providers.debug"

# ---------------------------------------------------------------------------
# BaseProvider lifecycle
# ---------------------------------------------------------------------------


class TestBaseProvider:
    """Verify the shared lifecycle bookkeeping."""

    def test_satisfies_protocol(self, recorder) -> None:
        assert isinstance(recorder, AnalyticsProvider)

    def test_initialize_applies_enabled_on_start(self, make_recorder) -> None:
        on = make_recorder()
        off = make_recorder()
        on.initialize(ProviderConfig(provider_identifier="A"))
        off.initialize(ProviderConfig(provider_identifier="B", is_enabled_on_start=False))
        assert on.is_initialized and on.is_enabled
        assert off.is_initialized and not off.is_enabled

    def test_enable_before_initialize_is_noop(self, recorder) -> None:
        recorder.enable(True)
        assert not recorder.is_enabled
        assert not recorder.is_initialized

    def test_sends_dropped_while_disabled(self, recorder) -> None:
        recorder.initialize(ProviderConfig(provider_identifier="A"))
        recorder.enable(False)
        recorder.track_event(AnalyticsEvent(name="e"))
        recorder.set_user_property("tier", "gold")
        assert recorder.events == []
        assert recorder.user_properties == []

    def test_flush_requires_initialization(self, recorder) -> None:
        recorder.flush_events()
        assert recorder.flush_count == 0
        recorder.initialize(ProviderConfig(provider_identifier="A", is_enabled_on_start=False))
        recorder.flush_events()
        assert recorder.flush_count == 1

    def test_set_consent_enables_and_passes_details(self, recorder) -> None:
        recorder.initialize(ProviderConfig(provider_identifier="A", is_enabled_on_start=False))
        recorder.set_consent(True, {"hasConsented": True})
        assert recorder.is_enabled
        assert recorder.consents == [(True, {"hasConsented": True})]


# ---------------------------------------------------------------------------
# Debug provider
# ---------------------------------------------------------------------------


class TestFormatParameterValue:
    def test_scalars(self) -> None:
        assert format_parameter_value(None) == "null"
        assert format_parameter_value(3) == "3"
        assert format_parameter_value("x") == "x"

    def test_nested_collections(self) -> None:
        assert format_parameter_value({"a": [1, None], "b": {"c": True}}) == "{a:[1, null], b:{c:True}}"


class TestDebugAnalyticsProvider:
    """Verify what the debug provider writes to the log."""

    def test_rejects_wrong_config_type(self, caplog: pytest.LogCaptureFixture) -> None:
        provider = DebugAnalyticsProvider()
        with caplog.at_level(logging.ERROR):
            provider.initialize(ProviderConfig(provider_identifier="Debug"))
        assert not provider.is_initialized
        assert "requires a DebugProviderConfig, but received ProviderConfig" in caplog.text

    def test_logs_event_with_parameters(self, caplog: pytest.LogCaptureFixture) -> None:
        provider = DebugAnalyticsProvider()
        provider.initialize(DebugProviderConfig())
        event = AnalyticsEvent(
            name="level_complete",
            parameters={"level": 3, "extra": None},
            timestamp=datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=UTC),
        )
        with caplog.at_level(logging.INFO, logger=DEBUG_LOGGER):
            provider.track_event(event)

        assert "[DEBUG ANALYTICS] Event: level_complete at 2024-05-01 12:30:15.123" in caplog.text
        assert "  level = 3" in caplog.text
        assert "  extra = null" in caplog.text

    def test_quiet_mode_omits_parameters(self, caplog: pytest.LogCaptureFixture) -> None:
        provider = DebugAnalyticsProvider()
        provider.initialize(DebugProviderConfig(verbose_logging=False))
        with caplog.at_level(logging.INFO, logger=DEBUG_LOGGER):
            provider.track_event(AnalyticsEvent(name="e", parameters={"level": 3}))
        assert "Event: e at" in caplog.text
        assert "Parameters:" not in caplog.text

    def test_custom_formats(self, caplog: pytest.LogCaptureFixture) -> None:
        provider = DebugAnalyticsProvider()
        provider.initialize(DebugProviderConfig(property_log_format="prop {0}={1}"))
        with caplog.at_level(logging.INFO, logger=DEBUG_LOGGER):
            provider.set_user_property("tier", ["gold"])
        assert "prop tier=[gold]" in caplog.text

    def test_flush_only_logs_when_enabled(self, caplog: pytest.LogCaptureFixture) -> None:
        provider = DebugAnalyticsProvider()
        provider.initialize(DebugProviderConfig(is_enabled_on_start=False))
        with caplog.at_level(logging.INFO, logger=DEBUG_LOGGER):
            provider.flush_events()
            assert "Flushing events" not in caplog.text
            provider.enable(True)
            provider.flush_events()
        assert "[Debug Analytics Provider] Flushing events (simulation)" in caplog.text

    def test_consent_details_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        provider = DebugAnalyticsProvider()
        provider.initialize(DebugProviderConfig())
        with caplog.at_level(logging.INFO, logger=DEBUG_LOGGER):
            provider.set_consent(False, {"hasConsented": False})
        assert "Consent details:" in caplog.text
        assert "  hasConsented = False" in caplog.text
        assert not provider.is_enabled


# ---------------------------------------------------------------------------
# JSON-lines provider
# ---------------------------------------------------------------------------


def _read_records(path: Path) -> list[dict]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


class TestJsonLinesProvider:
    """Verify buffering and file output."""

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "dir" / "events.jsonl"
        provider = JsonLinesProvider()
        provider.initialize(JsonLinesProviderConfig(path=path))
        assert path.parent.is_dir()

    def test_buffers_until_flush(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        provider = JsonLinesProvider()
        provider.initialize(JsonLinesProviderConfig(path=path))

        provider.track_event(AnalyticsEvent(name="purchase", parameters={"sku": "gem"}))
        provider.set_user_property("tier", "gold")
        assert provider.pending_count == 2
        assert not path.exists()

        provider.flush_events()
        assert provider.pending_count == 0
        records = _read_records(path)
        assert records[0]["type"] == "event"
        assert records[0]["name"] == "purchase"
        assert records[0]["parameters"] == {"sku": "gem"}
        assert records[1]["type"] == "user_property"
        assert records[1]["name"] == "tier"
        assert records[1]["value"] == "gold"

    def test_full_buffer_flushes(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        provider = JsonLinesProvider()
        provider.initialize(JsonLinesProviderConfig(path=path, max_buffer_size=2))

        provider.track_event(AnalyticsEvent(name="a"))
        provider.track_event(AnalyticsEvent(name="b"))
        assert provider.pending_count == 0
        assert [r["name"] for r in _read_records(path)] == ["a", "b"]

    def test_flush_appends(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        provider = JsonLinesProvider()
        provider.initialize(JsonLinesProviderConfig(path=path))
        for name in ("a", "b"):
            provider.track_event(AnalyticsEvent(name=name))
            provider.flush_events()
        assert len(_read_records(path)) == 2

    def test_rejects_debug_config(self) -> None:
        provider = JsonLinesProvider()
        provider.initialize(DebugProviderConfig())
        assert not provider.is_initialized
