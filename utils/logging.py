"""
Logging setup shared by the API server and the CLI.

Two output formats, selected by ``APP_LOG_FORMAT`` or ``--log-format``:

    text  "2024-06-19 18:40:00,123 WARNING eggpool.coordinator Write conflict ..."
    json  one JSON object per line, with ``extra`` fields merged in

Modules log through ``logging.getLogger(__name__)``; only entry points call
:func:`configure_logging`.
"""

from __future__ import annotations

import json
import logging

# extra={...} keys copied into JSON records when present
_EXTRA_FIELDS = ("attempt", "status", "key", "kind", "record_id", "method",
                 "path", "duration_ms")


class JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def build_handler(log_format: str = "text") -> logging.Handler:
    handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    return handler


def configure_logging(log_format: str = "text", level: str | int = "INFO") -> None:
    """Replace root handlers with a single stream handler."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(handlers=[build_handler(log_format)], level=level, force=True)
