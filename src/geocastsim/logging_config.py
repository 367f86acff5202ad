"""Logging configuration for geocastsim.

Configurable via environment variables:
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR. Default: WARNING
- LOG_FORMAT: 'text' or 'json'. Default: text

Usage:
    from geocastsim.logging_config import configure_logging
    configure_logging()  # once, at the start of a demo or script
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {
            k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS
        }
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """
    Plain text lines: TIMESTAMP LEVEL [LOGGER] MESSAGE

    The 'geocastsim.' prefix is stripped from logger names for readability.
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

        logger_name = record.name
        if logger_name.startswith("geocastsim."):
            logger_name = logger_name[len("geocastsim."):]

        line = f"{timestamp} {record.levelname:8s} [{logger_name}] {record.getMessage()}"
        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"
        return line


def get_log_level() -> int:
    """Read LOG_LEVEL from the environment (falls back to WARNING)."""
    level_name = os.environ.get("LOG_LEVEL", "WARNING").upper()
    return _LEVELS.get(level_name, logging.WARNING)


def get_log_format() -> str:
    """Read LOG_FORMAT from the environment ('text' or 'json')."""
    format_name = os.environ.get("LOG_FORMAT", "text").lower()
    if format_name not in ("text", "json"):
        return "text"
    return format_name


def configure_logging(
    level: int | None = None,
    format_type: str | None = None,
) -> None:
    """
    Attach a single stderr handler to the 'geocastsim' logger.

    Args:
        level: Logging level; read from LOG_LEVEL when None
        format_type: 'text' or 'json'; read from LOG_FORMAT when None
    """
    if level is None:
        level = get_log_level()
    if format_type is None:
        format_type = get_log_format()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if format_type == "json" else TextFormatter())

    root_logger = logging.getLogger("geocastsim")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False

    root_logger.debug(
        "Logging configured: level=%s, format=%s",
        logging.getLevelName(level),
        format_type,
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the geocastsim namespace."""
    if not name.startswith("geocastsim"):
        name = f"geocastsim.{name}"
    return logging.getLogger(name)
