"""Logging setup for applications embedding the analytics engine.

Two modes are supported:

* plain text via :func:`logging.basicConfig` (default), and
* single-line JSON records via :class:`JSONFormatter` when
  ``structured_logging`` is enabled, for log aggregators that index
  fields without regex parsing.

Output schema per JSON line::

    {
        "timestamp": "2025-05-15T12:34:56.789012+00:00",
        "level": "INFO",
        "logger": "analytics_engine.dispatch.service",
        "message": "Error tracking event with provider Debug Analytics Provider: ...",
        "operation": "track_event",       // present only on provider failures
        "provider": "Debug Analytics Provider",
        "slot_id": "slot-3f2a9c1b7d4e",
        "exc_info": "Traceback ..."       // present only on exceptions
    }
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import Any

from analytics_engine.config import Settings

_TEXT_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"

# Attributes attached via ``extra=`` by the dispatch service when a provider
# call fails.
_DISPATCH_FIELDS = ("operation", "provider", "slot_id")


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Render *record* as a single JSON line."""
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in _DISPATCH_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(settings: Settings) -> None:
    """Install root handlers according to *settings*.

    ``debug`` forces the DEBUG level regardless of ``log_level``.
    """
    level = logging.DEBUG if settings.debug else logging.getLevelNamesMapping()[settings.log_level]

    if settings.structured_logging:
        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        root_logger.addHandler(handler)
        root_logger.setLevel(level)
        logging.getLogger(__name__).info("Structured JSON logging enabled")
        return

    logging.basicConfig(level=level, format=_TEXT_FORMAT, force=True)
