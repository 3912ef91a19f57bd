"""Provider registry, event enrichment and fan-out dispatch."""

from analytics_engine.dispatch.enricher import EventEnricher
from analytics_engine.dispatch.models import (
    CallOutcome,
    DispatchMode,
    DispatchResult,
    ProviderCallResult,
    SlotInfo,
)
from analytics_engine.dispatch.service import AnalyticsService
from analytics_engine.dispatch.slots import ProviderSlot, SlotId, SlotRegistry, SlotState

__all__ = [
    "AnalyticsService",
    "CallOutcome",
    "DispatchMode",
    "DispatchResult",
    "EventEnricher",
    "ProviderCallResult",
    "ProviderSlot",
    "SlotId",
    "SlotInfo",
    "SlotRegistry",
    "SlotState",
]
