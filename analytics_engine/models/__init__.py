"""Domain models for the analytics engine."""

from analytics_engine.models.contexts import DeviceContext, PlayerContext, SessionContext
from analytics_engine.models.event import AnalyticsEvent
from analytics_engine.models.provider_config import (
    DebugProviderConfig,
    JsonLinesProviderConfig,
    ProviderConfig,
)

__all__ = [
    "AnalyticsEvent",
    "DebugProviderConfig",
    "DeviceContext",
    "JsonLinesProviderConfig",
    "PlayerContext",
    "ProviderConfig",
    "SessionContext",
]
