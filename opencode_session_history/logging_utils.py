"""
JSON-lines logging for the history tools.

Responses are printed on stdout (CLI) or handed back to the host (tools),
so log output goes to stderr unless a stream is given. Each line is one
JSON object; fields passed through ``extra=`` or a HistoryLoggerAdapter
(query, session_id, db_path, ...) appear as top-level keys.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

PACKAGE_LOGGER = "opencode_session_history"

# Attribute names every LogRecord carries; anything else came from ``extra``
_RECORD_FIELDS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


class StructuredJsonFormatter(logging.Formatter):
    """
    Render a record as a single JSON line.

    Fields: ``timestamp`` (UTC, ISO 8601, taken from the record's creation
    time), ``level``, ``logger``, ``message``, ``exception`` when a traceback
    is attached, then any context fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        line: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            line["exception"] = self.formatException(record.exc_info)

        context = {
            key: _jsonable(value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_FIELDS and not key.startswith("_")
        }
        line.update(context)
        return json.dumps(line, default=str)


def configure_structured_logging(
    level: int = logging.INFO,
    logger_name: str | None = PACKAGE_LOGGER,
    stream: TextIO | None = None,
) -> logging.Logger:
    """
    Attach a JSON-lines handler to ``logger_name``, replacing existing ones.

    Args:
        level: Threshold for the logger.
        logger_name: Logger to configure; None means the root logger.
        stream: Destination, stderr by default.

    Returns:
        The configured logger.
    """
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(StructuredJsonFormatter())

    logger = logging.getLogger(logger_name)
    logger.handlers = [handler]
    logger.setLevel(level)
    return logger


def get_history_logger(name: str) -> logging.Logger:
    """Child logger of the package logger, e.g. ``opencode_session_history.tool``."""
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


class HistoryLoggerAdapter(logging.LoggerAdapter):
    """
    Tags every line of one operation with its query or session id.

    Per-call ``extra`` is merged with the adapter's context; the adapter's
    context wins on conflicting keys.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**kwargs.get("extra", {}), **self.extra}
        return msg, kwargs
