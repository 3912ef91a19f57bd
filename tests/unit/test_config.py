"""Tests for analytics settings loaded from the environment."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from analytics_engine.config import AnalyticsEnv, Settings, load_settings
from analytics_engine.dispatch.models import DispatchMode


class TestSettings:
    """Verify defaults and environment parsing."""

    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.env == AnalyticsEnv.DEV
        assert settings.log_level == "INFO"
        assert settings.dispatch_mode == DispatchMode.SEQUENTIAL
        assert settings.max_dispatch_workers == 4
        assert settings.consent_default is None
        assert settings.consent_overrides == {}
        assert settings.debug_provider_enabled is True
        assert settings.events_file is None

    def test_reads_prefixed_env(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("ANALYTICS_ENV", "prod")
        monkeypatch.setenv("ANALYTICS_DISPATCH_MODE", "threaded")
        monkeypatch.setenv("ANALYTICS_CONSENT_DEFAULT", "false")
        monkeypatch.setenv("ANALYTICS_CONSENT_OVERRIDES", '{"Debug": true}')
        monkeypatch.setenv("ANALYTICS_EVENTS_FILE", str(tmp_path / "events.jsonl"))

        settings = load_settings()

        assert settings.env == AnalyticsEnv.PROD
        assert settings.dispatch_mode == DispatchMode.THREADED
        assert settings.consent_default is False
        assert settings.consent_overrides == {"Debug": True}
        assert settings.events_file == tmp_path / "events.jsonl"

    def test_overrides_win(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ANALYTICS_DEBUG_PROVIDER_ENABLED", "true")
        settings = load_settings(debug_provider_enabled=False)
        assert settings.debug_provider_enabled is False

    def test_log_level_normalised(self) -> None:
        assert Settings(log_level=" debug ").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(log_level="LOUD")

    def test_worker_bounds(self) -> None:
        with pytest.raises(ValidationError):
            Settings(max_dispatch_workers=0)
        with pytest.raises(ValidationError):
            Settings(max_dispatch_workers=65)
