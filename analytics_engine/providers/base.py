"""Provider capability contract and lifecycle base class.

:class:`AnalyticsProvider` is the protocol the dispatch service relies on;
any object exposing these members can be registered.  :class:`BaseProvider`
implements the shared lifecycle bookkeeping (configuration type check,
initialized/enabled flags, consent handling) so that concrete providers
only implement the actual sends.
"""

from __future__ import annotations

import abc
import logging
from collections.abc import Mapping
from typing import Any, ClassVar, Protocol, runtime_checkable

from analytics_engine.models.event import AnalyticsEvent
from analytics_engine.models.provider_config import ProviderConfig

logger = logging.getLogger(__name__)


@runtime_checkable
class AnalyticsProvider(Protocol):
    """Protocol for analytics backends."""

    @property
    def name(self) -> str:
        """Stable, human-readable identity used in logs."""
        ...

    @property
    def is_initialized(self) -> bool: ...

    @property
    def is_enabled(self) -> bool:
        """Only meaningful once :attr:`is_initialized` is true."""
        ...

    def initialize(self, config: ProviderConfig) -> None:
        """Initialize with *config*.

        A configuration of the wrong type must leave the provider
        uninitialized.
        """
        ...

    def track_event(self, event: AnalyticsEvent) -> None:
        """Send an already enriched event."""
        ...

    def set_user_property(self, name: str, value: Any) -> None: ...

    def flush_events(self) -> None: ...

    def enable(self, enabled: bool) -> None:
        """Set the enabled flag; no effect before initialization."""
        ...

    def set_consent(self, consented: bool, details: Mapping[str, Any] | None) -> None: ...


class BaseProvider(abc.ABC):
    """Abstract base implementing the provider lifecycle.

    Subclasses set :attr:`config_type` and implement :attr:`name`,
    :meth:`_send_event`, :meth:`_send_user_property` and :meth:`_flush`.
    Events and user properties are dropped while the provider is not
    enabled.
    """

    config_type: ClassVar[type[ProviderConfig]] = ProviderConfig

    def __init__(self) -> None:
        self._config: ProviderConfig | None = None
        self._initialized = False
        self._enabled = False

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Human-readable provider name."""

    @property
    def config(self) -> ProviderConfig | None:
        """The configuration accepted by the last successful :meth:`initialize`."""
        return self._config

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_enabled(self) -> bool:
        return self._enabled and self._initialized

    # -- Lifecycle -----------------------------------------------------------

    def initialize(self, config: ProviderConfig) -> None:
        if not isinstance(config, self.config_type):
            logger.error(
                "%s requires a %s, but received %s",
                self.name,
                self.config_type.__name__,
                type(config).__name__,
            )
            return

        self._on_initialize(config)
        self._config = config
        self._initialized = True
        self._enabled = config.is_enabled_on_start
        logger.info("%s initialized (enabled=%s)", self.name, self._enabled)

    def enable(self, enabled: bool) -> None:
        if not self._initialized:
            logger.debug("[%s] Ignoring enable(%s) before initialization", self.name, enabled)
            return
        self._enabled = enabled
        logger.info("[%s] %s", self.name, "Enabled" if enabled else "Disabled")

    def set_consent(self, consented: bool, details: Mapping[str, Any] | None = None) -> None:
        logger.info("[%s] Consent set to: %s", self.name, consented)
        self._on_consent(consented, dict(details or {}))
        self.enable(consented)

    # -- Calls ---------------------------------------------------------------

    def track_event(self, event: AnalyticsEvent) -> None:
        if not self.is_enabled:
            return
        self._send_event(event)

    def set_user_property(self, name: str, value: Any) -> None:
        if not self.is_enabled:
            return
        self._send_user_property(name, value)

    def flush_events(self) -> None:
        if not self._initialized:
            return
        self._flush()

    # -- Hooks ---------------------------------------------------------------

    def _on_initialize(self, config: ProviderConfig) -> None:
        """Prepare provider resources; raising leaves the provider uninitialized."""

    def _on_consent(self, consented: bool, details: dict[str, Any]) -> None:
        """React to a consent change before the enabled flag is updated."""

    @abc.abstractmethod
    def _send_event(self, event: AnalyticsEvent) -> None: ...

    @abc.abstractmethod
    def _send_user_property(self, name: str, value: Any) -> None: ...

    @abc.abstractmethod
    def _flush(self) -> None: ...
