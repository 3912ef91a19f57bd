"""JSON-lines file provider.

Buffers events and user-property records in memory and appends them to a
local file on flush, one JSON object per line.  Useful for local
development and for feeding tracked events into offline tooling.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import UTC, datetime
from typing import Any

from analytics_engine.models.event import AnalyticsEvent
from analytics_engine.models.provider_config import JsonLinesProviderConfig, ProviderConfig
from analytics_engine.providers.base import BaseProvider

logger = logging.getLogger(__name__)


class JsonLinesProvider(BaseProvider):
    """Buffering file provider configured by :class:`JsonLinesProviderConfig`.

    Reaching ``max_buffer_size`` buffered records triggers an immediate
    flush.  Buffered records are kept across enable/disable changes and
    written on the next flush.
    """

    config_type = JsonLinesProviderConfig

    def __init__(self) -> None:
        super().__init__()
        self._buffer: list[str] = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "JSON Lines Provider"

    @property
    def pending_count(self) -> int:
        """Number of records currently buffered."""
        with self._lock:
            return len(self._buffer)

    def _on_initialize(self, config: ProviderConfig) -> None:
        assert isinstance(config, JsonLinesProviderConfig)  # noqa: S101
        config.path.parent.mkdir(parents=True, exist_ok=True)

    def _send_event(self, event: AnalyticsEvent) -> None:
        record = {"type": "event", **event.model_dump(mode="json")}
        self._append(json.dumps(record, sort_keys=True, default=str))

    def _send_user_property(self, name: str, value: Any) -> None:
        record = {
            "type": "user_property",
            "name": name,
            "value": value,
            "timestamp": datetime.now(UTC).isoformat(),
        }
        self._append(json.dumps(record, sort_keys=True, default=str))

    def _flush(self) -> None:
        with self._lock:
            self._flush_locked()

    def _append(self, line: str) -> None:
        assert isinstance(self._config, JsonLinesProviderConfig)  # noqa: S101
        with self._lock:
            self._buffer.append(line)
            if len(self._buffer) >= self._config.max_buffer_size:
                self._flush_locked()

    def _flush_locked(self) -> None:
        """Write buffered records while already holding the lock."""
        if not self._buffer:
            return
        assert isinstance(self._config, JsonLinesProviderConfig)  # noqa: S101
        path = self._config.path
        with path.open("a", encoding="utf-8") as fh:
            for line in self._buffer:
                fh.write(line + "\n")
        logger.debug("Flushed %d record(s) to %s", len(self._buffer), path)
        self._buffer.clear()
