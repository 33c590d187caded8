"""
encache — Logging Setup

Modules log through ``logging.getLogger(__name__)`` and pass context with
``extra={...}``. configure_logging() attaches a handler to the ``encache``
logger that renders those records as JSON lines (or plain text).
"""

import json
import logging
from datetime import UTC, datetime

from .config import LogLevel, get_config

# Standard LogRecord attributes, everything else came in through `extra`
_RESERVED_ATTRS = frozenset(
    {
        "args",
        "msg",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "name",
        "message",
    }
)


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key, value in record.__dict__.items():
            if key not in log_data and not key.startswith("_") and key not in _RESERVED_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging(level: LogLevel | str | None = None, json_format: bool = True) -> logging.Logger:
    """
    Install a stream handler on the package logger.

    Calling it again replaces the previous handler.

    Args:
        level: Log level name (None = LOG_LEVEL from the loaded configuration)
        json_format: Emit JSON lines instead of plain text

    Returns:
        The configured ``encache`` logger
    """
    if level is None:
        level = get_config().log_level

    logger = logging.getLogger("encache")
    logger.handlers.clear()

    handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(LogLevel(level).value)

    return logger
