"""Debug provider that writes every call to the application log.

Useful during development to see exactly what each provider would receive,
including the parameters merged in from global contexts.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from analytics_engine.models.event import AnalyticsEvent
from analytics_engine.models.provider_config import DebugProviderConfig, ProviderConfig
from analytics_engine.providers.base import BaseProvider

logger = logging.getLogger(__name__)


def format_parameter_value(value: Any) -> str:
    """Render a parameter value for a log line.

    ``None`` becomes ``null``; mappings and sequences are rendered
    recursively as ``{key:value, ...}`` and ``[item, ...]``.
    """
    if value is None:
        return "null"
    if isinstance(value, Mapping):
        inner = ", ".join(f"{key}:{format_parameter_value(item)}" for key, item in value.items())
        return "{" + inner + "}"
    if isinstance(value, (list, tuple, set, frozenset)):
        return "[" + ", ".join(format_parameter_value(item) for item in value) + "]"
    return str(value)


def _format_timestamp(event: AnalyticsEvent) -> str:
    return event.timestamp.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]


class DebugAnalyticsProvider(BaseProvider):
    """Log-only provider configured by :class:`DebugProviderConfig`."""

    config_type = DebugProviderConfig

    @property
    def name(self) -> str:
        return "Debug Analytics Provider"

    @property
    def debug_config(self) -> DebugProviderConfig:
        assert isinstance(self._config, DebugProviderConfig)  # noqa: S101
        return self._config

    def _on_initialize(self, config: ProviderConfig) -> None:
        assert isinstance(config, DebugProviderConfig)  # noqa: S101
        logger.info("%s initializing. Verbose logging: %s", self.name, config.verbose_logging)

    def _send_event(self, event: AnalyticsEvent) -> None:
        config = self.debug_config
        message = config.event_log_format.format(event.name, _format_timestamp(event))
        if config.verbose_logging and event.parameters:
            lines = [message, "Parameters:"]
            lines.extend(f"  {key} = {format_parameter_value(value)}" for key, value in event.parameters.items())
            message = "\n".join(lines)
        logger.info("%s", message)

    def _send_user_property(self, name: str, value: Any) -> None:
        logger.info("%s", self.debug_config.property_log_format.format(name, format_parameter_value(value)))

    def _flush(self) -> None:
        if not self.is_enabled:
            return
        logger.info("[%s] Flushing events (simulation)", self.name)

    def _on_consent(self, consented: bool, details: dict[str, Any]) -> None:
        config = self._config
        if isinstance(config, DebugProviderConfig) and config.verbose_logging and details:
            lines = ["Consent details:"]
            lines.extend(f"  {key} = {format_parameter_value(value)}" for key, value in details.items())
            logger.info("%s", "\n".join(lines))
