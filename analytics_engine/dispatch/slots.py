"""Provider slots and the slot registry.

A slot pairs one provider with its configuration and the lifecycle state
the dispatch service assigns to it.  Slots live in a dense list with an
index from opaque slot id to position; a second index maps each provider
object to its slot so registering the same provider twice updates the
existing slot instead of creating another.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import NewType

from analytics_engine.models.provider_config import ProviderConfig
from analytics_engine.providers.base import AnalyticsProvider

SlotId = NewType("SlotId", str)


class SlotState(str, Enum):
    """Lifecycle state of a provider slot.

    ``REGISTERED --initialize--> INITIALIZED --enable(b)--> ENABLED | DISABLED``.
    A slot whose provider failed to initialize stays ``REGISTERED``.
    """

    REGISTERED = "registered"
    INITIALIZED = "initialized"
    ENABLED = "enabled"
    DISABLED = "disabled"

    @property
    def is_initialized(self) -> bool:
        return self is not SlotState.REGISTERED


def new_slot_id() -> SlotId:
    return SlotId(f"slot-{uuid.uuid4().hex[:12]}")


@dataclass(slots=True)
class ProviderSlot:
    """Registry entry for a single provider."""

    slot_id: SlotId
    provider: AnalyticsProvider
    config: ProviderConfig
    state: SlotState = SlotState.REGISTERED

    @property
    def provider_name(self) -> str:
        try:
            return str(self.provider.name)
        except Exception:
            return type(self.provider).__name__


class SlotRegistry:
    """Arena of provider slots keyed by :data:`SlotId`.

    Not thread-safe on its own; :class:`~analytics_engine.dispatch.service.AnalyticsService`
    serializes access with its registry lock.  Iteration follows
    registration order.
    """

    def __init__(self) -> None:
        self._slots: list[ProviderSlot] = []
        self._positions: dict[SlotId, int] = {}
        self._by_provider: dict[int, SlotId] = {}

    def add(self, provider: AnalyticsProvider, config: ProviderConfig) -> tuple[ProviderSlot, bool]:
        """Create a slot for *provider*, or update the config of its existing slot.

        Returns
        -------
        tuple[ProviderSlot, bool]
            The slot and whether it was newly created.
        """
        existing = self.find_by_provider(provider)
        if existing is not None:
            existing.config = config
            return existing, False

        slot = ProviderSlot(slot_id=new_slot_id(), provider=provider, config=config)
        self._positions[slot.slot_id] = len(self._slots)
        self._slots.append(slot)
        self._by_provider[id(provider)] = slot.slot_id
        return slot, True

    def remove(self, slot_id: SlotId) -> ProviderSlot | None:
        """Remove and return the slot, or ``None`` if it is not registered."""
        position = self._positions.pop(slot_id, None)
        if position is None:
            return None
        slot = self._slots.pop(position)
        del self._by_provider[id(slot.provider)]
        for index in range(position, len(self._slots)):
            self._positions[self._slots[index].slot_id] = index
        return slot

    def get(self, slot_id: SlotId) -> ProviderSlot | None:
        position = self._positions.get(slot_id)
        return self._slots[position] if position is not None else None

    def find_by_provider(self, provider: AnalyticsProvider) -> ProviderSlot | None:
        slot_id = self._by_provider.get(id(provider))
        return self.get(slot_id) if slot_id is not None else None

    def select(self, predicate: Callable[[ProviderSlot], bool] | None = None) -> list[ProviderSlot]:
        """Return the slots matching *predicate*, in registration order."""
        if predicate is None:
            return list(self._slots)
        return [slot for slot in self._slots if predicate(slot)]

    def clear(self) -> None:
        self._slots.clear()
        self._positions.clear()
        self._by_provider.clear()

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[ProviderSlot]:
        return iter(list(self._slots))

    def __contains__(self, slot_id: object) -> bool:
        return slot_id in self._positions
