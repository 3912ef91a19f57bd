"""Client-side analytics aggregation engine.

Fans tracked events out to independently configured providers, enriching
each event with the current global contexts and honouring per-provider
consent.
"""

from __future__ import annotations

from analytics_engine.context.kinds import ContextField, ContextKind, ContextKindError, define_context_kind
from analytics_engine.context.store import ContextStore
from analytics_engine.dispatch.models import DispatchMode, DispatchResult, SlotInfo
from analytics_engine.dispatch.service import AnalyticsService
from analytics_engine.dispatch.slots import SlotState
from analytics_engine.models.event import AnalyticsEvent
from analytics_engine.models.provider_config import (
    DebugProviderConfig,
    JsonLinesProviderConfig,
    ProviderConfig,
)
from analytics_engine.providers.base import AnalyticsProvider, BaseProvider

__version__ = "0.3.0"

__all__ = [
    "AnalyticsEvent",
    "AnalyticsProvider",
    "AnalyticsService",
    "BaseProvider",
    "ContextField",
    "ContextKind",
    "ContextKindError",
    "ContextStore",
    "DebugProviderConfig",
    "DispatchMode",
    "DispatchResult",
    "JsonLinesProviderConfig",
    "ProviderConfig",
    "SlotInfo",
    "SlotState",
    "define_context_kind",
]
