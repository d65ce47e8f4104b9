# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Structured logging for esfinder.

Handlers are attached to the "esfinder" package logger, never the root
logger, so an application embedding esfinder keeps its own logging setup.
Records still propagate to the root logger. Calling setup_logging again
replaces the handlers installed by the previous call and leaves every
other handler alone.

Log files hold one JSON object per line, named esfinder_YYYYMMDD.log.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .config import Config

PACKAGE_LOGGER = "esfinder"

# Marks handlers owned by setup_logging
_HANDLER_ATTR = "_esfinder_handler"


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Each record carries the emitting thread, which tells apart the
    workers of a directory scan (named esfinder_0, esfinder_1, ...).
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Set via logger.warning(..., extra={"extra_fields": {...}})
        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data)


def _coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def _remove_owned_handlers(package_logger: logging.Logger) -> None:
    for handler in list(package_logger.handlers):
        if getattr(handler, _HANDLER_ATTR, False):
            package_logger.removeHandler(handler)
            handler.close()


def setup_logging(
    config: Optional[Config] = None,
    log_dir: Optional[Path] = None,
    log_level: Optional[Union[int, str]] = None,
    console_output: bool = True,
) -> Path:
    """Send esfinder log records to a JSON log file and optionally stderr.

    Args:
        config: Source of log_dir and log_level. If None, uses the
            configuration defaults (.esfinder_logs/, INFO).
        log_dir: Overrides the configured log directory.
        log_level: Overrides the configured level; a logging constant or
            a level name such as "DEBUG".
        console_output: Also write human-readable lines to stderr.

    Returns:
        Path of the log file receiving JSON records.

    Raises:
        ValueError: If log_level names no logging level.
    """
    if config is None:
        config = Config.from_dict({})

    directory = Path(log_dir) if log_dir is not None else config.log_dir
    if not directory.is_absolute():
        directory = Path.cwd() / directory
    level = _coerce_level(log_level) if log_level is not None else config.log_level

    directory.mkdir(parents=True, exist_ok=True)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    _remove_owned_handlers(package_logger)
    package_logger.setLevel(level)

    log_file = directory / f"esfinder_{datetime.now(timezone.utc).strftime('%Y%m%d')}.log"
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(StructuredFormatter())
    setattr(file_handler, _HANDLER_ATTR, True)
    package_logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        setattr(console_handler, _HANDLER_ATTR, True)
        package_logger.addHandler(console_handler)

    package_logger.info(f"Logging initialized. Log file: {log_file}")
    return log_file


def teardown_logging() -> None:
    """Remove and close the handlers installed by setup_logging."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    _remove_owned_handlers(package_logger)
    package_logger.setLevel(logging.NOTSET)
