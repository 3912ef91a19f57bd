"""Construction helpers wiring the service, providers and settings together.

The service itself holds no global state; whoever calls these helpers owns
the returned instance and its lifecycle (``initialize`` / ``shutdown``).
"""

from __future__ import annotations

import logging

from analytics_engine.config import Settings
from analytics_engine.dispatch.models import DispatchMode
from analytics_engine.dispatch.service import AnalyticsService
from analytics_engine.models.provider_config import DebugProviderConfig, JsonLinesProviderConfig
from analytics_engine.providers.debug import DebugAnalyticsProvider
from analytics_engine.providers.jsonl import JsonLinesProvider

logger = logging.getLogger(__name__)


def create_analytics_service(
    *,
    dispatch_mode: DispatchMode = DispatchMode.SEQUENTIAL,
    max_workers: int = 4,
) -> AnalyticsService:
    """Create an empty, uninitialized :class:`AnalyticsService`."""
    return AnalyticsService(dispatch_mode=dispatch_mode, max_workers=max_workers)


def create_debug_provider() -> DebugAnalyticsProvider:
    return DebugAnalyticsProvider()


def create_service_with_debug_provider(config: DebugProviderConfig | None = None) -> AnalyticsService:
    """Create an initialized service with a single debug provider.

    Parameters
    ----------
    config:
        Debug provider configuration.  Defaults to verbose logging,
        enabled on start.
    """
    service = create_analytics_service()
    service.register_provider(create_debug_provider(), config or DebugProviderConfig())
    service.initialize()
    return service


def create_service_from_settings(settings: Settings, *, initialize: bool = True) -> AnalyticsService:
    """Build a service with the providers enabled in *settings*.

    Registers the debug provider when ``debug_provider_enabled`` is set and
    the JSON-lines provider when ``events_file`` is configured.  When
    *initialize* is true the service is initialized and, if
    ``consent_default`` is set, consent is applied with
    ``consent_overrides``.
    """
    service = create_analytics_service(
        dispatch_mode=settings.dispatch_mode,
        max_workers=settings.max_dispatch_workers,
    )

    if settings.debug_provider_enabled:
        service.register_provider(
            create_debug_provider(),
            DebugProviderConfig(verbose_logging=settings.debug_verbose_logging),
        )

    if settings.events_file is not None:
        service.register_provider(
            JsonLinesProvider(),
            JsonLinesProviderConfig(path=settings.events_file, max_buffer_size=settings.events_buffer_size),
        )

    if not initialize:
        return service

    service.initialize()
    if settings.consent_default is not None:
        service.set_consent(settings.consent_default, settings.consent_overrides)
    logger.debug(
        "Analytics service ready with %d provider(s), dispatch=%s",
        len(service.slots()),
        settings.dispatch_mode.value,
    )
    return service
