"""Structured JSON logging for the gateway.

Core modules log a dotted event name as the message (``bridge.reply``,
``channel.release_failed``) and put the details in ``extra=``; the
formatter flattens those into one JSON object per line.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import IO, Any, Dict, Optional

import orjson

# Attributes every LogRecord carries; anything else came in through extra=
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


def _fallback(obj: Any) -> str:
    return repr(obj)


class JsonFormatter(logging.Formatter):
    """Render records as orjson lines, tagged with the emitting service."""

    def __init__(self, service: Optional[str] = None) -> None:
        super().__init__()
        self._service = service

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self._service:
            payload["service"] = self._service

        payload.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        )

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info

        return orjson.dumps(payload, default=_fallback).decode()


def configure_logging(
    level: str = "INFO",
    *,
    name: str = "rasputin",
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Send all records through one JSON handler on the root logger.

    uvicorn is started without its own logging config, so its records
    propagate here too. Returns the logger called ``name``.
    """
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter(service=name))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())
    return logging.getLogger(name)


__all__ = ["JsonFormatter", "configure_logging"]
