"""Result and inspection models returned by the dispatch service."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from analytics_engine.dispatch.slots import SlotState


class DispatchMode(str, Enum):
    """How a fan-out reaches the providers of one call."""

    SEQUENTIAL = "sequential"  # Registration order, one provider at a time
    THREADED = "threaded"  # One worker task per provider, joined before returning


class CallOutcome(str, Enum):
    """What happened when one provider was asked to handle one call."""

    DELIVERED = "DELIVERED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class ProviderCallResult(BaseModel):
    """Outcome of a single provider call within a fan-out."""

    model_config = ConfigDict(frozen=True)

    slot_id: str = Field(..., description="Slot the provider is registered under.")
    provider_name: str = Field(..., description="Human-readable provider name.")
    outcome: CallOutcome = Field(..., description="Whether the provider handled the call.")
    error: str = Field(default="", description="Exception message when the call failed.")


class DispatchResult(BaseModel):
    """Aggregated outcome of one fan-out operation.

    Informational only: provider failures are already logged by the
    service and never raised to the caller.
    """

    model_config = ConfigDict(frozen=True)

    operation: str = Field(..., description="Service operation, e.g. 'track_event'.")
    accepted: bool = Field(
        default=True,
        description="False when the call was rejected before reaching any provider.",
    )
    results: list[ProviderCallResult] = Field(default_factory=list)

    @property
    def delivered(self) -> list[str]:
        return [r.provider_name for r in self.results if r.outcome == CallOutcome.DELIVERED]

    @property
    def failed(self) -> list[str]:
        return [r.provider_name for r in self.results if r.outcome == CallOutcome.FAILED]

    @property
    def skipped(self) -> list[str]:
        return [r.provider_name for r in self.results if r.outcome == CallOutcome.SKIPPED]

    @staticmethod
    def rejected(operation: str) -> DispatchResult:
        return DispatchResult(operation=operation, accepted=False)


class SlotInfo(BaseModel):
    """Read-only view of a provider slot."""

    model_config = ConfigDict(frozen=True)

    slot_id: str
    provider_name: str
    provider_identifier: str
    state: SlotState

    @property
    def is_enabled(self) -> bool:
        return self.state == SlotState.ENABLED
