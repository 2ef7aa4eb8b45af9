"""Centralized logging setup and JSON formatter for structured logging."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Union

# Attributes present on every LogRecord; anything else came in via ``extra=``.
_RESERVED_ATTRS = {
    "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno",
    "funcName", "created", "msecs", "relativeCreated", "thread",
    "threadName", "processName", "process", "name", "message",
    "taskName",
}


class JsonFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects.

    Merges any `extra=` kwargs directly into the payload, so
    ``logger.warning("...", extra={"dropped": 3})`` yields a ``dropped`` key.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        for key, value in getattr(record, "__dict__", {}).items():
            if key not in _RESERVED_ATTRS:
                payload[key] = value

        # safe fallback for non-serializable objects (Timestamps, Paths, ...)
        return json.dumps(payload, default=str)


def configure_logging(
    level: Union[int, str] = logging.WARNING,
    json_format: bool = False,
) -> logging.Handler:
    """Attach a stderr handler to the ``vptsviz`` package logger.

    Calling it again replaces the handler installed by the previous call
    instead of stacking a second one.

    Args:
        level: Logging level name (``'INFO'``) or number.
        json_format: Use :class:`JsonFormatter` instead of plain text.

    Returns:
        The installed handler.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")

    pkg_logger = logging.getLogger("vptsviz")
    for existing in list(pkg_logger.handlers):
        if getattr(existing, "_vptsviz_handler", False):
            pkg_logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(levelname)s %(name)s: %(message)s")
        )
    handler._vptsviz_handler = True

    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(level)
    return handler
