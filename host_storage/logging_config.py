"""
Logging configuration for the host storage layer

Storage code logs through the standard ``logging`` module so that records
carry structured ``extra`` fields (host id, address, operation, duration).
This module renders them either as colored console lines or as one JSON
object per line, and provides a context manager that times a storage
operation.
"""

import json
import logging
import sys
import time
from datetime import datetime, timezone
from typing import Dict, Optional, Sequence

from colorama import Fore, Style

# Attributes present on every LogRecord; anything else came in through ``extra``
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}

STORAGE_LOGGERS = ("host_storage", "subnet_discovery.web")

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _extra_fields(record: logging.LogRecord) -> Dict[str, object]:
    return {key: value for key, value in record.__dict__.items() if key not in _RESERVED_ATTRS}


class StructuredFormatter(logging.Formatter):
    """
    Renders each record as a single JSON line.

    Fields passed through ``extra=`` are nested under ``extra``; timestamps
    are UTC ISO 8601.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        extra = _extra_fields(record)
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, default=str, ensure_ascii=False)


class ColoredConsoleFormatter(logging.Formatter):
    """Console formatter that colors the level name with colorama."""

    LEVEL_COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.MAGENTA,
    }

    def format(self, record: logging.LogRecord) -> str:
        plain_levelname = record.levelname
        color = self.LEVEL_COLORS.get(record.levelno, "")
        record.levelname = f"{color}{plain_levelname}{Style.RESET_ALL}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain_levelname


def _build_formatter(format_type: str) -> logging.Formatter:
    if format_type == "json":
        return StructuredFormatter()
    if format_type == "detailed":
        return logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT)
    if format_type == "simple":
        return logging.Formatter("%(levelname)s - %(message)s")
    return ColoredConsoleFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(level: str = "INFO", format_type: str = "console",
                  log_file: Optional[str] = None) -> None:
    """
    Configure the root logger for storage and web API output.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Console format: 'console', 'detailed', 'json' or 'simple'
        log_file: Optional path of a file that receives JSON lines
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(numeric_level)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(numeric_level)
    console.setFormatter(_build_formatter(format_type))
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(StructuredFormatter())
        root.addHandler(file_handler)

    configure_storage_loggers(numeric_level)


def configure_storage_loggers(level: int, names: Sequence[str] = STORAGE_LOGGERS) -> None:
    """
    Apply ``level`` to the storage loggers.

    The pymongo driver stays at WARNING unless DEBUG was requested.
    """
    for name in names:
        logging.getLogger(name).setLevel(level)
    logging.getLogger("pymongo").setLevel(level if level <= logging.DEBUG else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return the stdlib logger called ``name`` (typically ``__name__``)."""
    return logging.getLogger(name)


class OperationLogger:
    """
    Times a storage operation and logs its start and outcome.

    Example:
        >>> with OperationLogger(logger, "migrate", collection="hosts"):
        ...     collection.create_index("ipv4_address", unique=True)
    """

    def __init__(self, logger: logging.Logger, operation: str, **context):
        self.logger = logger
        self.operation = operation
        self.context = context
        self._started: Optional[float] = None

    def _extra(self, phase: str, **fields) -> dict:
        return {"operation": self.operation, "operation_phase": phase, **self.context, **fields}

    def __enter__(self) -> "OperationLogger":
        self._started = time.monotonic()
        self.logger.debug(f"{self.operation} started", extra=self._extra("start"))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        duration = round(time.monotonic() - self._started, 3)

        if exc_type is None:
            self.logger.info(
                f"{self.operation} completed in {duration:.3f}s",
                extra=self._extra("success", duration_seconds=duration)
            )
            return

        self.logger.error(
            f"{self.operation} failed after {duration:.3f}s: {exc_val}",
            extra=self._extra(
                "error",
                duration_seconds=duration,
                error_type=exc_type.__name__,
                error_message=str(exc_val),
            )
        )
