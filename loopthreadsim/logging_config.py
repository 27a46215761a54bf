"""Opt-in log output for loopthreadsim.

Importing the package installs only a NullHandler on the ``loopthreadsim``
logger. What is logged where:

- INFO: run started, stopped, completed; deferred reconfiguration.
- DEBUG: queue pushes, slot and thread assignment, external call capacity
  overruns, stale timers ignored after a stop.

Typical use::

    import loopthreadsim

    loopthreadsim.enable_console_logging("DEBUG")
    loopthreadsim.set_module_level("engines.thread_pool", "INFO")

Environment variables read by configure_from_env():
    LTS_LOGGING   level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    LTS_LOG_FILE  write to this rotating file instead of stderr
    LTS_LOG_JSON  "1" to emit one JSON object per line
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Literal

__all__ = [
    "JsonFormatter",
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "set_level",
    "set_module_level",
]

LOGGER_NAME = "loopthreadsim"

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

ROTATE_BYTES = 5 * 1024 * 1024
ROTATE_KEEP = 3

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class JsonFormatter(logging.Formatter):
    """One JSON object per record with timestamp, level, logger and message."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _get_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def _attach(handler: logging.Handler, formatter: logging.Formatter, level: str | int) -> None:
    numeric = _get_level(level)
    handler.setFormatter(formatter)
    handler.setLevel(numeric)
    logger = _get_logger()
    logger.setLevel(numeric)
    logger.addHandler(handler)


def enable_console_logging(
    level: LogLevel | int = "INFO",
    format: str = TEXT_FORMAT,
    date_format: str = DATE_FORMAT,
) -> logging.StreamHandler:
    """Log to stderr. Returns the handler so callers can remove it again."""
    handler = logging.StreamHandler()
    _attach(handler, logging.Formatter(format, date_format), level)
    return handler


def enable_json_logging(level: LogLevel | int = "INFO") -> logging.StreamHandler:
    """Log JSON lines to stderr."""
    handler = logging.StreamHandler()
    _attach(handler, JsonFormatter(), level)
    return handler


def enable_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = ROTATE_BYTES,
    backup_count: int = ROTATE_KEEP,
    json_format: bool = False,
) -> RotatingFileHandler:
    """Log to a size-rotated file, creating its directory if needed.

    Args:
        path: Log file location.
        level: Minimum level written.
        max_bytes: Rotate once the file reaches this size.
        backup_count: Rotated files kept alongside the live one.
        json_format: Write JSON lines instead of text.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)
    formatter = JsonFormatter() if json_format else logging.Formatter(TEXT_FORMAT, DATE_FORMAT)
    _attach(handler, formatter, level)
    return handler


def configure_from_env() -> None:
    """Apply LTS_LOGGING / LTS_LOG_FILE / LTS_LOG_JSON; no-op when both of the first two are unset."""
    level = os.environ.get("LTS_LOGGING", "").strip().upper()
    log_file = os.environ.get("LTS_LOG_FILE", "").strip()
    as_json = os.environ.get("LTS_LOG_JSON", "") == "1"

    if not (level or log_file):
        return
    level = level or "INFO"

    if log_file:
        enable_file_logging(log_file, level=level, json_format=as_json)
    elif as_json:
        enable_json_logging(level)
    else:
        enable_console_logging(level)


def set_level(level: LogLevel | int) -> None:
    _get_logger().setLevel(_get_level(level))


def set_module_level(module: str, level: LogLevel | int) -> None:
    """Adjust one subsystem, e.g. ``set_module_level("controller", "WARNING")``."""
    logging.getLogger(f"{LOGGER_NAME}.{module}").setLevel(_get_level(level))


def disable_logging() -> None:
    """Drop every handler and silence the package logger."""
    logger = _get_logger()
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.CRITICAL + 1)
