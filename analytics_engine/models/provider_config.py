"""Provider configuration models.

The engine only reads two fields from any configuration:
``provider_identifier`` (the key for per-provider consent overrides) and
``is_enabled_on_start``.  Everything a subclass adds is opaque to the
engine and interpreted by the matching provider.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class ProviderConfig(BaseModel):
    """Base configuration shared by all providers."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    provider_identifier: str = Field(
        ...,
        min_length=1,
        description="Stable identifier used as the key for consent overrides, e.g. 'Firebase'.",
    )
    is_enabled_on_start: bool = Field(
        default=True,
        description="Whether the provider is enabled right after initialization.",
    )


class DebugProviderConfig(ProviderConfig):
    """Configuration for :class:`~analytics_engine.providers.debug.DebugAnalyticsProvider`."""

    provider_identifier: str = Field(default="Debug", min_length=1)
    verbose_logging: bool = Field(
        default=True,
        description="Log every event parameter and consent detail, one per line.",
    )
    event_log_format: str = Field(
        default="[DEBUG ANALYTICS] Event: {0} at {1}",
        description="Event log line. Placeholders: {0} = event name, {1} = timestamp.",
    )
    property_log_format: str = Field(
        default="[DEBUG ANALYTICS] User Property: {0} = {1}",
        description="User property log line. Placeholders: {0} = name, {1} = value.",
    )


class JsonLinesProviderConfig(ProviderConfig):
    """Configuration for :class:`~analytics_engine.providers.jsonl.JsonLinesProvider`."""

    provider_identifier: str = Field(default="JsonLines", min_length=1)
    path: Path = Field(..., description="JSON-lines file that flushed records are appended to.")
    max_buffer_size: int = Field(
        default=100,
        ge=1,
        description="Buffered records that force a flush before the next explicit one.",
    )
