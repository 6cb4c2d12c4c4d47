"""
JSON log output for character storage.

Fallback warnings carry ``operation``/``error_type``/``store`` fields; the
formatter below keeps them as top-level JSON keys so they stay searchable
in whatever collects the app's stdout.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

LOGGER_PREFIX = "character_sheet_storage"

# Attributes present on every LogRecord; anything else came from ``extra``.
_STANDARD_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "taskName", "message",
    }
)


class StructuredJsonFormatter(logging.Formatter):
    """Render each record as one line of JSON.

    Keys: ``timestamp`` (UTC, ISO 8601), ``level``, ``logger``, ``message``,
    ``exception`` when there is one, then every ``extra`` field. Extra values
    that are not JSON serializable are written as their ``str()``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key.startswith("_"):
                continue
            try:
                json.dumps(value)
            except (TypeError, ValueError):
                value = str(value)
            entry[key] = value

        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_structured_logging(
    level: int | str = logging.INFO,
    logger_name: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Send ``logger_name`` (root by default) to ``stream`` as JSON lines.

    ``level`` may be a number or a name such as ``"DEBUG"``. Any handlers
    already on the logger are replaced.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger(logger_name)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(StructuredJsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def get_storage_logger(name: str) -> logging.Logger:
    """Logger named ``character_sheet_storage.{name}``."""
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")


class StorageLoggerAdapter(logging.LoggerAdapter):
    """Attach fixed context (e.g. ``store="characters"``) to every record.

    Per-call ``extra`` is kept; on a key clash the adapter's value wins.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        merged = dict(kwargs.get("extra") or {})
        merged.update(self.extra)
        kwargs["extra"] = merged
        return msg, kwargs
