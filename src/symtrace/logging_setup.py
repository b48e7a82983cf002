# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Structured logging for symbol tracing.

setup_logging() attaches handlers to the ``symtrace`` package logger only,
so an application embedding symtrace keeps its own root logger setup. Every
module logs through ``logging.getLogger(__name__)``, which places its records
under that package logger.

The level comes from the ``log_level`` key of the configuration unless an
explicit level is passed.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from symtrace.config import Config

PACKAGE_LOGGER_NAME = "symtrace"
DEFAULT_LOG_DIRNAME = ".symtrace_logs"

# Marks handlers installed by setup_logging() so a second call replaces them
_HANDLER_ATTR = "_symtrace_handler"


class StructuredFormatter(logging.Formatter):
    """Formats records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # logger.info(..., extra={"extra_fields": {...}})
        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


def _remove_installed_handlers(package_logger: logging.Logger) -> None:
    for handler in list(package_logger.handlers):
        if getattr(handler, _HANDLER_ATTR, False):
            package_logger.removeHandler(handler)
            handler.close()


def setup_logging(
    config: Optional[Config] = None,
    log_dir: Optional[Path] = None,
    log_level: Optional[int] = None,
    console_output: bool = True,
) -> Path:
    """Send symtrace log records to a JSON log file and, optionally, stdout.

    Calling this again replaces the handlers from the previous call.

    Args:
        config: Configuration supplying the level. If None, loads
            .symtrace.yml from the current directory.
        log_dir: Directory for log files. If None, uses .symtrace_logs/
            in the current directory.
        log_level: Overrides the configured level when given.
        console_output: Also write human-readable lines to stdout.

    Returns:
        Path of the JSON log file.
    """
    if config is None:
        config = Config()
    if log_level is None:
        log_level = config.log_level
    if log_dir is None:
        log_dir = Path.cwd() / DEFAULT_LOG_DIRNAME

    log_dir.mkdir(parents=True, exist_ok=True)

    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    package_logger.setLevel(log_level)
    _remove_installed_handlers(package_logger)

    log_file = log_dir / f"symtrace_{datetime.now(timezone.utc).strftime('%Y%m%d')}.log"
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(StructuredFormatter())
    setattr(file_handler, _HANDLER_ATTR, True)
    package_logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        setattr(console_handler, _HANDLER_ATTR, True)
        package_logger.addHandler(console_handler)

    package_logger.info(
        f"Logging initialized at {logging.getLevelName(log_level)}",
        extra={"extra_fields": {"log_dir": str(log_dir), "config": config.to_dict()}},
    )
    return log_file
