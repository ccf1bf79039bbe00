"""Logging configuration for Tilbot.

Engine records carry the id of the session that produced them (see
:class:`ContextLogger`); records from elsewhere are tagged ``-``. The console
gets one text line per record, the optional log file one JSON object per
record.
"""

import logging
import logging.config
from typing import Any

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(session_id)s] %(message)s"
JSON_FORMAT = "%(asctime)s %(name)s %(levelname)s %(session_id)s %(message)s"

NO_SESSION = "-"


class SessionContextFilter(logging.Filter):
    """Give every record a ``session_id`` attribute so formats can rely on it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session_id"):
            record.session_id = NO_SESSION
        return True


def build_logging_config(level: str = "INFO", log_file: str | None = None) -> dict[str, Any]:
    """Return the ``dictConfig`` tree for the ``tilbot`` logger."""
    level = level.upper()
    handlers: dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "text",
            "filters": ["session"],
            "level": level,
        },
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": log_file,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "encoding": "utf-8",
            "formatter": "json",
            "filters": ["session"],
            "level": level,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"session": {"()": SessionContextFilter}},
        "formatters": {
            "text": {"format": TEXT_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
            "json": {"()": "pythonjsonlogger.json.JsonFormatter", "format": JSON_FORMAT},
        },
        "handlers": handlers,
        "loggers": {
            "tilbot": {"handlers": list(handlers), "level": level, "propagate": False},
        },
        "root": {"handlers": ["console"], "level": "WARNING"},
    }


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """
    Configure logging for Tilbot.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR), case-insensitive
        log_file: Optional path of a rotating JSON log file
    """
    logging.config.dictConfig(build_logging_config(level, log_file))


class ContextLogger:
    """Logger with contextual information."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def with_context(self, **context: Any) -> logging.LoggerAdapter:
        """
        Bind context to every record logged through the returned adapter.

        Example:
            log = ContextLogger(__name__).with_context(session_id="abc")
            log.info("Session started")  # record.session_id == "abc"
        """
        return logging.LoggerAdapter(self.logger, context)
