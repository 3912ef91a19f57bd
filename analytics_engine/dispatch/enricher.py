"""Merge global context values into tracked events."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from analytics_engine.models.event import AnalyticsEvent

logger = logging.getLogger(__name__)

Snapshot = Iterable[tuple[str, Mapping[str, Any]]]


class EventEnricher:
    """Adds context-derived parameters to events without overwriting caller values.

    Caller-supplied parameters always take precedence.  The check is made
    per key, so a context may contribute some of its fields to an event
    that already defines others.
    """

    def enrich(self, event: AnalyticsEvent, snapshot: Snapshot) -> AnalyticsEvent:
        """Return a new event carrying the merged parameters.

        Neither *event* nor the snapshot is modified.
        """
        parameters: dict[str, Any] = dict(event.parameters)
        skipped = 0
        for _kind_name, values in snapshot:
            for key, value in values.items():
                if key in parameters:
                    skipped += 1
                    continue
                parameters[key] = value

        if skipped:
            logger.debug("Event %s kept %d caller-supplied parameter(s) over context values", event.name, skipped)
        return event.with_parameters(parameters)
