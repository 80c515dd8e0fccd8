"""
Logging helpers for job tracker storage.

Remote and local persistence failures are absorbed by the collections
and only surface in the sync status and the logs. Every collection
logs through a StorageLoggerAdapter so each line carries the
collection name and the user it belongs to; StructuredJsonFormatter
lifts that context into top-level JSON keys.
"""

import json
import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any

ROOT_LOGGER_NAME = "job_tracker_storage"

# Context keys lifted to top-level JSON fields, in output order
CONTEXT_FIELDS = ("collection", "user_id", "record_id", "operation")

_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class StructuredJsonFormatter(logging.Formatter):
    """One JSON object per line.

    Always present: ``timestamp`` (UTC), ``level``, ``logger``, ``message``.
    Context keys from CONTEXT_FIELDS come next when set; any other
    ``extra`` values follow, stringified if not JSON-serializable.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value

        for key, value in vars(record).items():
            if key in _RESERVED or key in entry or key.startswith("_"):
                continue
            entry[key] = value if _is_json_value(value) else str(value)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _is_json_value(value: Any) -> bool:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return False
    return True


def configure_structured_logging(
    level: int | str | None = None,
    stream: Any = None,
) -> logging.Logger:
    """Send this package's logs to ``stream`` (stdout by default) as JSON.

    Only the ``job_tracker_storage`` logger is touched; application
    logging is left alone. ``level`` defaults to the
    ``JOB_TRACKER_LOG_LEVEL`` environment variable, then INFO.

    Returns:
        The configured package logger
    """
    if level is None:
        level = os.environ.get("JOB_TRACKER_LOG_LEVEL", "INFO").upper()

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler.formatter, StructuredJsonFormatter):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(StructuredJsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def get_storage_logger(name: str) -> logging.Logger:
    """Logger named ``job_tracker_storage.{name}``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class StorageLoggerAdapter(logging.LoggerAdapter):
    """Adapter stamping fixed context (collection, user_id) on every record.

    Per-call ``extra`` wins over the bound context.
    """

    def bind(self, **context: Any) -> "StorageLoggerAdapter":
        """Return an adapter with ``context`` merged into the bound context."""
        return StorageLoggerAdapter(self.logger, {**(self.extra or {}), **context})

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs
