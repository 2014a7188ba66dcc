"""Logging setup for cloudobject.

Library modules only ever call ``logging.getLogger(__name__)``; handlers
are installed by applications (and the CLI) through ``configure_logging``.
Exchanges with the storage service carry ``method``, ``path``, ``status``
and ``duration_ms`` extras; object operations add ``container`` and
``object``.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import TextIO

EXTRA_FIELDS = ("method", "path", "status", "duration_ms", "container", "object")

# Transport libraries that log every connection event at DEBUG.
_NOISY_LOGGERS = ("httpx", "httpcore")


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects.

    Fields: timestamp, level, logger, message, plus any of EXTRA_FIELDS.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        for key in EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines, suffixed with ``[container/object]`` when known."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        container = getattr(record, "container", None)
        if container is not None:
            line += f" [{container}/{getattr(record, 'object', '')}]"
        return line


def configure_logging(level: str = "INFO", fmt: str = "text", stream: TextIO | None = None) -> None:
    """Install a single handler on the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown names fall back to INFO.
        fmt: 'text' for human-readable lines, 'json' for structured output.
        stream: Where to write; defaults to stderr so stdout stays free for
            object content.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(numeric_level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    root.addHandler(handler)

    # Our own connection module already logs each exchange.
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))
