"""Analytics engine configuration loaded from environment variables."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from analytics_engine.dispatch.models import DispatchMode

logger = logging.getLogger(__name__)


class AnalyticsEnv(str, Enum):
    DEV = "dev"
    STAGING = "staging"
    PROD = "prod"


class Settings(BaseSettings):
    """Application settings loaded from environment variables with ANALYTICS_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="ANALYTICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    env: AnalyticsEnv = AnalyticsEnv.DEV
    debug: bool = False

    # Logging
    log_level: str = "INFO"
    structured_logging: bool = False

    # Dispatch
    dispatch_mode: DispatchMode = DispatchMode.SEQUENTIAL
    max_dispatch_workers: int = Field(default=4, ge=1, le=64)

    # Consent applied right after initialization; None leaves providers
    # in their enabled-on-start state.
    consent_default: bool | None = None
    consent_overrides: dict[str, bool] = Field(default_factory=dict)

    # Debug provider
    debug_provider_enabled: bool = True
    debug_verbose_logging: bool = True

    # JSON-lines provider, registered only when a file is configured
    events_file: Path | None = None
    events_buffer_size: int = Field(default=100, ge=1)

    @field_validator("log_level")
    @classmethod
    def normalise_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level '{v}'")
        return level


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info("Loaded analytics settings for environment: %s", settings.env.value)

    return settings
