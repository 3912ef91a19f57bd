"""Analytics dispatch service -- owner of provider slots and global contexts.

The :class:`AnalyticsService` registers providers, drives their lifecycle
(initialize, enable, consent), enriches every tracked event with the
current global contexts and fans each call out to the eligible providers.

Failure isolation: every provider call is wrapped individually.  An
exception raised by one provider is logged with the provider's name and
never prevents the remaining providers from receiving the same call, nor
does it propagate to the caller.

Concurrency: the slot registry and the context store are each guarded by
a lock.  Fan-outs snapshot the eligible slots under the registry lock and
call providers outside of it, either in registration order
(:attr:`DispatchMode.SEQUENTIAL`) or on a thread pool
(:attr:`DispatchMode.THREADED`).
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from pydantic import ValidationError

from analytics_engine.context.kinds import ContextKindError
from analytics_engine.context.store import ContextStore, KindArg
from analytics_engine.dispatch.enricher import EventEnricher
from analytics_engine.dispatch.models import (
    CallOutcome,
    DispatchMode,
    DispatchResult,
    ProviderCallResult,
    SlotInfo,
)
from analytics_engine.dispatch.slots import ProviderSlot, SlotId, SlotRegistry, SlotState
from analytics_engine.models.event import AnalyticsEvent
from analytics_engine.models.provider_config import ProviderConfig
from analytics_engine.providers.base import AnalyticsProvider

logger = logging.getLogger(__name__)

# Verb phrases used in per-provider error messages.
_OPERATION_LABELS: dict[str, str] = {
    "track_event": "tracking event",
    "set_user_property": "setting user property",
    "set_consent": "setting consent",
    "flush_events": "flushing events",
    "shutdown": "shutting down",
}

SlotCall = Callable[[ProviderSlot], None]
Eligibility = Callable[[AnalyticsProvider], bool]


def _provider_active(provider: AnalyticsProvider) -> bool:
    return bool(provider.is_initialized and provider.is_enabled)


def _provider_initialized(provider: AnalyticsProvider) -> bool:
    return bool(provider.is_initialized)


class AnalyticsService:
    """Fan-out coordinator for analytics providers.

    Parameters
    ----------
    dispatch_mode:
        Whether providers of one call are invoked sequentially or
        concurrently on a thread pool.
    max_workers:
        Thread pool size for :attr:`DispatchMode.THREADED`.
    context_store:
        Optional pre-populated store.  A new empty store is created when
        ``None``.
    enricher:
        Optional enricher; defaults to :class:`EventEnricher`.
    """

    def __init__(
        self,
        *,
        dispatch_mode: DispatchMode = DispatchMode.SEQUENTIAL,
        max_workers: int = 4,
        context_store: ContextStore | None = None,
        enricher: EventEnricher | None = None,
    ) -> None:
        self._registry = SlotRegistry()
        self._contexts = context_store if context_store is not None else ContextStore()
        self._enricher = enricher or EventEnricher()
        self._dispatch_mode = dispatch_mode
        self._max_workers = max(1, max_workers)
        self._executor: ThreadPoolExecutor | None = None
        self._lock = threading.RLock()
        self._initialized = False

    # -- Properties ----------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        with self._lock:
            return self._initialized

    @property
    def dispatch_mode(self) -> DispatchMode:
        return self._dispatch_mode

    @property
    def context_store(self) -> ContextStore:
        return self._contexts

    # -- Registration --------------------------------------------------------

    def register_provider(self, provider: AnalyticsProvider | None, config: ProviderConfig | None) -> SlotId | None:
        """Register *provider* with *config* and return its slot id.

        Registering a provider that is already registered replaces its
        configuration in place and keeps its slot id.  When the service is
        already initialized the provider is initialized and enabled
        immediately.  Returns ``None`` when either argument is missing.
        """
        if provider is None:
            logger.error("Cannot register null analytics provider")
            return None

        if config is None:
            logger.error("Cannot register provider %s with null config", getattr(provider, "name", provider))
            return None

        with self._lock:
            slot, created = self._registry.add(provider, config)
            start_now = self._initialized
            if created:
                logger.info("Registered analytics provider %s as %s", slot.provider_name, slot.slot_id)
            else:
                logger.warning("Provider %s is already registered. Updating config.", slot.provider_name)
                slot.state = SlotState.REGISTERED

        if start_now:
            self._start_slot(slot.slot_id)
        return slot.slot_id

    def unregister_provider(self, provider: AnalyticsProvider | SlotId | str | None) -> bool:
        """Remove a provider by object or slot id.

        Returns ``False`` when nothing was registered under that key.
        """
        if provider is None:
            return False

        with self._lock:
            if isinstance(provider, str):
                slot = self._registry.remove(SlotId(provider))
            else:
                found = self._registry.find_by_provider(provider)
                slot = self._registry.remove(found.slot_id) if found is not None else None

        if slot is None:
            return False
        logger.info("Unregistered analytics provider %s (%s)", slot.provider_name, slot.slot_id)
        return True

    def slots(self) -> list[SlotInfo]:
        """Return a read-only view of every slot, in registration order."""
        with self._lock:
            return [self._info(slot) for slot in self._registry.select()]

    def get_slot(self, slot_id: SlotId | str) -> SlotInfo | None:
        with self._lock:
            slot = self._registry.get(SlotId(slot_id))
            return self._info(slot) if slot is not None else None

    # -- Lifecycle -----------------------------------------------------------

    def initialize(self) -> None:
        """Initialize every registered provider and enable it per its config.

        A provider that raises or rejects its configuration is logged and
        left ``REGISTERED``; the others are unaffected.  Calling this a
        second time logs a warning and does nothing.
        """
        with self._lock:
            if self._initialized:
                logger.warning("AnalyticsService is already initialized.")
                return
            self._initialized = True
            slot_ids = [slot.slot_id for slot in self._registry.select()]

        started = sum(1 for slot_id in slot_ids if self._start_slot(slot_id))
        logger.info("AnalyticsService initialized %d of %d provider(s)", started, len(slot_ids))

    def shutdown(self) -> DispatchResult:
        """Flush and disable every initialized provider, then forget all slots.

        The service can be initialized again after providers are
        re-registered.
        """
        result = self.flush_all_providers()

        with self._lock:
            slots = self._registry.select(lambda s: s.state.is_initialized)
        self._fan_out("shutdown", slots, lambda slot: slot.provider.enable(False), _provider_initialized)

        with self._lock:
            self._registry.clear()
            self._initialized = False
            executor, self._executor = self._executor, None

        if executor is not None:
            executor.shutdown(wait=True)
        logger.info("AnalyticsService shut down")
        return result

    def __enter__(self) -> AnalyticsService:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    # -- Global contexts -----------------------------------------------------

    def update_global_context(self, kind: KindArg | None, data: Any) -> None:
        """Store *data* as the live context of *kind*; ``None`` removes it.

        An unresolvable kind or an instance of the wrong type is logged and
        ignored; the previously stored context is kept.
        """
        try:
            self._contexts.upsert(kind, data)  # type: ignore[arg-type]
        except ContextKindError as exc:
            logger.error("Cannot update global context: %s", exc)

    def remove_global_context(self, kind: KindArg | None) -> None:
        try:
            self._contexts.remove(kind)  # type: ignore[arg-type]
        except ContextKindError as exc:
            logger.error("Cannot remove global context: %s", exc)

    def get_global_context(self, kind: KindArg | None) -> Any | None:
        try:
            return self._contexts.get(kind)  # type: ignore[arg-type]
        except ContextKindError as exc:
            logger.error("Cannot read global context: %s", exc)
            return None

    # -- Fan-out operations --------------------------------------------------

    def track_event(self, name: str | None, parameters: Mapping[str, Any] | None = None) -> DispatchResult:
        """Build, enrich and dispatch an event to every enabled provider."""
        if not isinstance(name, str) or not name:
            logger.error("Cannot track event with null or empty name")
            return DispatchResult.rejected("track_event")

        try:
            event = AnalyticsEvent(name=name, parameters=dict(parameters or {}))
        except ValidationError as exc:
            logger.error("Cannot track event %s: invalid parameters: %s", name, exc)
            return DispatchResult.rejected("track_event")
        return self.track(event)

    def track(self, event: AnalyticsEvent | None) -> DispatchResult:
        """Enrich and dispatch a pre-built event.

        Enrichment happens once, so every provider receives the identical
        enriched event.
        """
        if event is None:
            logger.error("Cannot track null analytics event")
            return DispatchResult.rejected("track_event")

        enriched = self._enricher.enrich(event, self._contexts.snapshot())
        return self._fan_out(
            "track_event",
            self._enabled_slots(),
            lambda slot: slot.provider.track_event(enriched),
            _provider_active,
        )

    def set_user_property(self, name: str | None, value: Any) -> DispatchResult:
        """Forward a user property to every enabled provider."""
        if not isinstance(name, str) or not name:
            logger.error("Cannot set user property with null or empty name")
            return DispatchResult.rejected("set_user_property")

        return self._fan_out(
            "set_user_property",
            self._enabled_slots(),
            lambda slot: slot.provider.set_user_property(name, value),
            _provider_active,
        )

    def set_consent(self, has_consented: bool, overrides: Mapping[str, bool] | None = None) -> DispatchResult:
        """Recompute every initialized slot's enabled state from consent.

        Each slot's effective consent is its override (keyed by the
        config's ``provider_identifier``) when present, else
        *has_consented*.  Nothing carries over from earlier calls.
        """
        overrides = dict(overrides or {})

        def apply(slot: ProviderSlot) -> None:
            effective = bool(overrides.get(slot.config.provider_identifier, has_consented))
            try:
                slot.provider.set_consent(effective, {"hasConsented": effective})
            finally:
                # Enable is issued even if the provider's consent hook fails.
                slot.provider.enable(effective)
                self._set_state(slot.slot_id, SlotState.ENABLED if effective else SlotState.DISABLED)

        with self._lock:
            slots = self._registry.select(lambda s: s.state.is_initialized)
        return self._fan_out("set_consent", slots, apply, _provider_initialized)

    def flush_all_providers(self) -> DispatchResult:
        """Ask every initialized provider, enabled or not, to flush."""
        with self._lock:
            slots = self._registry.select(lambda s: s.state.is_initialized)
        return self._fan_out("flush_events", slots, lambda slot: slot.provider.flush_events(), _provider_initialized)

    # -- Internals -----------------------------------------------------------

    def _start_slot(self, slot_id: SlotId) -> bool:
        """Initialize and enable one slot; return whether it initialized."""
        with self._lock:
            slot = self._registry.get(slot_id)
        if slot is None:
            return False

        provider, config, name = slot.provider, slot.config, slot.provider_name
        try:
            provider.initialize(config)
            initialized = bool(provider.is_initialized)
        except Exception as exc:
            logger.error("Failed to initialize analytics provider %s: %s", name, exc)
            logger.debug("Initialization traceback for %s", name, exc_info=True)
            self._set_state(slot_id, SlotState.REGISTERED)
            return False

        if not initialized:
            logger.error(
                "Analytics provider %s did not initialize with %s",
                name,
                type(config).__name__,
            )
            self._set_state(slot_id, SlotState.REGISTERED)
            return False

        self._set_state(slot_id, SlotState.INITIALIZED)
        enabled = config.is_enabled_on_start
        try:
            provider.enable(enabled)
        except Exception as exc:
            logger.error("Error enabling analytics provider %s: %s", name, exc)
            return True

        self._set_state(slot_id, SlotState.ENABLED if enabled else SlotState.DISABLED)
        logger.info("Initialized analytics provider: %s", name)
        return True

    def _enabled_slots(self) -> list[ProviderSlot]:
        with self._lock:
            return self._registry.select(lambda s: s.state is SlotState.ENABLED)

    def _set_state(self, slot_id: SlotId, state: SlotState) -> None:
        with self._lock:
            slot = self._registry.get(slot_id)
            if slot is None:
                return
            previous, slot.state = slot.state, state
        if previous is not state:
            logger.debug("Slot %s: %s -> %s", slot_id, previous.value, state.value)

    def _fan_out(
        self,
        operation: str,
        slots: list[ProviderSlot],
        call: SlotCall,
        eligible: Eligibility,
    ) -> DispatchResult:
        if self._dispatch_mode is DispatchMode.THREADED and len(slots) > 1:
            executor = self._get_executor()
            futures = [executor.submit(self._call_slot, operation, slot, call, eligible) for slot in slots]
            results = [future.result() for future in futures]
        else:
            results = [self._call_slot(operation, slot, call, eligible) for slot in slots]
        return DispatchResult(operation=operation, results=results)

    def _call_slot(
        self,
        operation: str,
        slot: ProviderSlot,
        call: SlotCall,
        eligible: Eligibility,
    ) -> ProviderCallResult:
        name = slot.provider_name
        try:
            if not eligible(slot.provider):
                return ProviderCallResult(slot_id=slot.slot_id, provider_name=name, outcome=CallOutcome.SKIPPED)
            call(slot)
        except Exception as exc:
            logger.error(
                "Error %s with provider %s: %s",
                _OPERATION_LABELS.get(operation, operation),
                name,
                exc,
                extra={"operation": operation, "provider": name, "slot_id": slot.slot_id},
            )
            logger.debug("Provider %s traceback", name, exc_info=True)
            return ProviderCallResult(
                slot_id=slot.slot_id,
                provider_name=name,
                outcome=CallOutcome.FAILED,
                error=str(exc),
            )
        return ProviderCallResult(slot_id=slot.slot_id, provider_name=name, outcome=CallOutcome.DELIVERED)

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix="analytics-dispatch",
                )
            return self._executor

    @staticmethod
    def _info(slot: ProviderSlot) -> SlotInfo:
        return SlotInfo(
            slot_id=slot.slot_id,
            provider_name=slot.provider_name,
            provider_identifier=slot.config.provider_identifier,
            state=slot.state,
        )
