"""Logging utilities for agentrules.

This module provides standalone structlog logger factories that write
JSON-formatted or text-formatted logs to a file or to stderr. Each logger is
self-contained and does not modify global structlog configuration.
"""

from __future__ import annotations

import itertools
import logging
import sys
from logging.handlers import RotatingFileHandler
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from agentrules.config import ActivationSettings

LogFormatType = Literal["json", "text"]

# Suffix keeping each file logger's stdlib logger distinct
_logger_ids = itertools.count()


def get_log_level() -> int:
    """Get the log level from environment variables.

    Checks AGENTRULES_DEBUG first (sets DEBUG if present), then
    AGENTRULES_LOG_LEVEL. Defaults to INFO if neither is set.

    Returns:
        The logging level as an integer.
    """
    if getenv("AGENTRULES_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(getenv("AGENTRULES_LOG_LEVEL", "info").upper(), logging.INFO)


def log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, AGENTRULES_DEBUG overrides to DEBUG level.

    Returns:
        The logging level as an integer.
    """
    if respect_env and getenv("AGENTRULES_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def create_logger(
    log_file: str | Path | None = None,
    *,
    level: str | None = None,
    log_format: LogFormatType = "json",
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> FilteringBoundLogger:
    """Create a standalone structlog logger.

    The log level is determined by (in order of precedence):
    1. AGENTRULES_DEBUG environment variable (if set, enables DEBUG level)
    2. The ``level`` parameter (if provided)
    3. AGENTRULES_LOG_LEVEL environment variable
    4. Default: INFO

    Args:
        log_file: Path to the log file (opened in append mode). Logs go to
            stderr when empty or None.
        level: Optional log level string (debug, info, warning, error).
        log_format: Output format, either "json" or "text".
        max_bytes: Maximum size in bytes before rotation. Must be set with
            backup_count for rotation to be enabled.
        backup_count: Number of rotated log files to keep. Must be set with
            max_bytes for rotation to be enabled.

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_level = (
        log_level_from_string(level, respect_env=True)
        if level is not None
        else get_log_level()
    )

    raw_logger: object
    if not log_file:
        raw_logger = structlog.PrintLoggerFactory(file=sys.stderr)()
    else:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        stdlib_logger = logging.getLogger(
            f"agentrules.{log_path.stem}.{next(_logger_ids)}"
        )
        stdlib_logger.propagate = False
        stdlib_logger.setLevel(effective_level)

        handler: logging.FileHandler
        if max_bytes is not None and backup_count is not None:
            handler = RotatingFileHandler(
                log_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
            )
        else:
            handler = logging.FileHandler(log_path)
        handler.setLevel(effective_level)
        # structlog renders the message; the handler writes it verbatim
        handler.setFormatter(logging.Formatter("%(message)s"))
        stdlib_logger.addHandler(handler)
        raw_logger = stdlib_logger

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            raw_logger,
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(effective_level),
            context_class=dict,
        ),
    )


def create_logger_from_settings(settings: ActivationSettings) -> FilteringBoundLogger:
    """Create a logger configured by service settings.

    Rotation is enabled only when both ``log_max_bytes`` and
    ``log_backup_count`` are set.
    """
    return create_logger(
        settings.log_file or None,
        level=settings.log_level.value,
        log_format=cast("LogFormatType", settings.log_format.value),
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
    )


def close_logger(logger: FilteringBoundLogger) -> None:
    """Close the log file behind a logger made by ``create_logger``.

    Loggers writing to stderr are left alone. If the logger is used again
    after closing, its handler reopens the file in append mode.
    """
    raw_logger = getattr(logger, "_logger", None)
    if isinstance(raw_logger, logging.Logger):
        for handler in raw_logger.handlers:
            handler.close()
