"""Logging setup for applications embedding modcache.

Library modules only call ``logging.getLogger(__name__)`` (or ``get_logger``
when they carry per-entry context). Handlers are installed by the
application, or by the ``modcache`` CLI, through ``configure_logging``:

- text or JSON-lines output
- stderr or a log file
- any standard level name, case-insensitive
"""

from __future__ import annotations

from datetime import UTC, datetime
import json
import logging
import sys
from typing import Any

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord has; anything else arrived through ``extra=``
# or a LoggerAdapter and belongs in the JSON context.
_RECORD_ATTRS = frozenset(logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__) | {
    "message",
    "asctime",
}


class StructuredJSONFormatter(logging.Formatter):
    """Render each record as one JSON object per line.

    Example output (wrapped here for readability)::

        {"level": "WARNING",
         "message": "Failed to decompress cached code: ...",
         "timestamp": "2026-01-29T12:00:00.000000+00:00",
         "context": {"logger_name": "modcache.core.caching.entry",
                     "function": "load", "line": 118,
                     "cache_path": "/var/cache/modcache/.../mod-..."}}
    """

    def format(self, record: logging.LogRecord) -> str:
        context = self._source_context(record)
        if record.exc_info:
            context.update(self._error_context(record.exc_info, record.exc_text))
        context.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        )

        return json.dumps(
            {
                "level": record.levelname,
                "message": record.getMessage(),
                "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
                "context": context,
            },
            default=str,
        )

    @staticmethod
    def _source_context(record: logging.LogRecord) -> dict[str, Any]:
        return {
            "logger_name": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "process": record.process,
            "thread_name": record.threadName,
        }

    def _error_context(self, exc_info: Any, exc_text: str | None) -> dict[str, Any]:
        exc_type, exc_value, _ = exc_info
        return {
            "error_type": exc_type.__name__ if exc_type else None,
            "error_message": str(exc_value) if exc_value else None,
            "stack_trace": exc_text or self.formatException(exc_info),
        }


def _resolve_level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def configure_logging(
    level: str = "INFO",
    format_string: str | None = None,
    filename: str | None = None,
    structured: bool = False,
) -> None:
    """Install a single root handler, replacing any existing ones.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL), any case
        format_string: Text format; ignored when ``structured`` is set
        filename: Append to this file instead of writing to stderr
        structured: Emit JSON lines via ``StructuredJSONFormatter``

    Raises:
        ValueError: If level is not a known logging level name

    Examples:
        >>> configure_logging(level="DEBUG")
        >>> configure_logging(level="INFO", structured=True, filename="cache.jsonl")
    """
    level_value = _resolve_level(level)

    # stdout carries command output
    handler: logging.Handler = (
        logging.FileHandler(filename) if filename else logging.StreamHandler(sys.stderr)
    )
    handler.setFormatter(
        StructuredJSONFormatter()
        if structured
        else logging.Formatter(format_string or DEFAULT_FORMAT)
    )

    logging.basicConfig(level=level_value, handlers=[handler], force=True)


def get_logger(name: str, **context: Any) -> logging.Logger | logging.LoggerAdapter:
    """Return ``logging.getLogger(name)``, wrapped in a LoggerAdapter when
    context (for example ``cache_path``) should ride along on every record."""
    logger = logging.getLogger(name)
    if context:
        return logging.LoggerAdapter(logger, context)
    return logger
