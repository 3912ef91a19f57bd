"""Analytics event envelope.

An :class:`AnalyticsEvent` is created, enriched, dispatched and discarded
within a single ``track`` call.  Events are immutable: the parameter map is
a read-only view over a private copy, so the one enriched event handed to
every provider cannot be altered by any of them, and enrichment produces a
new event rather than writing into the caller's mapping.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


def _frozen_parameters(parameters: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(parameters))


class AnalyticsEvent(BaseModel):
    """A single named event with dynamically typed parameters.

    Parameter values may be strings, numbers, booleans, nested mappings or
    sequences.  The engine never validates or coerces them; interpretation
    is left to each provider.  Writing to :attr:`parameters` raises
    ``TypeError``.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        ...,
        min_length=1,
        description="Event name, e.g. 'level_complete' or 'purchase'.",
    )
    parameters: Mapping[str, Any] = Field(
        default_factory=lambda: MappingProxyType({}),
        description="Caller-supplied parameters, later extended with context values.",
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="UTC timestamp assigned when the event was constructed.",
    )

    @field_validator("parameters", mode="after")
    @classmethod
    def freeze_parameters(cls, v: Mapping[str, Any]) -> Mapping[str, Any]:
        return _frozen_parameters(v)

    @field_serializer("parameters")
    def serialize_parameters(self, v: Mapping[str, Any]) -> dict[str, Any]:
        return dict(v)

    def with_parameters(self, parameters: Mapping[str, Any]) -> AnalyticsEvent:
        """Return a copy of this event carrying *parameters* instead.

        Name and timestamp are preserved.
        """
        return self.model_copy(update={"parameters": _frozen_parameters(parameters)})
