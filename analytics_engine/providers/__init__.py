"""Analytics provider contract and built-in providers."""

from analytics_engine.providers.base import AnalyticsProvider, BaseProvider
from analytics_engine.providers.debug import DebugAnalyticsProvider
from analytics_engine.providers.jsonl import JsonLinesProvider

__all__ = [
    "AnalyticsProvider",
    "BaseProvider",
    "DebugAnalyticsProvider",
    "JsonLinesProvider",
]
