"""
Logging for the activity status service.

Service code logs through loguru with the module name bound into ``extra["name"]``.
The libraries underneath (httpx, APScheduler, werkzeug) log through the standard
library; setup_logger turns their chatter down to warnings so that per-request and
per-job lines do not drown the refresh log.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Optional

from loguru import logger as _logger

from activity_status.config import LoggingConfig, get_config

# Standard library loggers capped at WARNING
NOISY_LOGGERS = ("httpx", "httpcore", "apscheduler", "werkzeug")


def _console_sink(level: str, fmt: str) -> dict[str, Any]:
    return {
        "sink": sys.stderr,
        "format": fmt,
        "level": level,
        "colorize": True,
        "backtrace": True,
        "diagnose": False,
    }


def _file_sink(path: str, level: str, fmt: str, rotation: str, retention: str) -> dict[str, Any]:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    return {
        "sink": path,
        "format": fmt,
        "level": level,
        "rotation": rotation,
        "retention": retention,
        "compression": "zip",
        "encoding": "utf-8",
        # scheduler jobs and request handlers write from different threads
        "enqueue": True,
        "backtrace": True,
        "diagnose": False,
    }


def build_sinks(
    log_config: LoggingConfig,
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    rotation: Optional[str] = None,
    retention: Optional[str] = None,
    fmt: Optional[str] = None,
) -> list[dict[str, Any]]:
    """Keyword arguments for ``logger.add``, one dict per enabled sink.

    Explicit values win over the ones in ``log_config``.
    """
    level = level or log_config.level
    fmt = fmt or log_config.format

    sinks = []
    if log_config.console_enabled:
        sinks.append(_console_sink(level, fmt))
    if log_config.file_enabled:
        sinks.append(
            _file_sink(
                log_file or log_config.file_path,
                level,
                fmt,
                rotation or log_config.rotation,
                retention or log_config.retention,
            )
        )
    return sinks


def setup_logger(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    rotation: Optional[str] = None,
    retention: Optional[str] = None,
    format: Optional[str] = None,
) -> None:
    """Replace loguru's default handler with the configured console and file sinks.

    Args:
        level: Log level, e.g. "DEBUG" or "WARNING"
        log_file: Path to the log file
        rotation: When to rotate the file, e.g. "50 MB"
        retention: How long rotated files are kept, e.g. "14 days"
        format: loguru format string
    """
    sinks = build_sinks(get_config().logging, level, log_file, rotation, retention, format)

    _logger.remove()
    for sink in sinks:
        _logger.add(**sink)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None):
    """Logger bound to a module name.

    Args:
        name: Usually ``__name__`` of the caller; omitted returns the root logger

    Returns:
        loguru logger
    """
    return _logger.bind(name=name) if name else _logger


logger = _logger

__all__ = ["build_sinks", "get_logger", "logger", "setup_logger"]
