"""Logging utilities for repostage.

This module provides a standalone structlog logger factory. Each logger is
self-contained and does not modify global structlog configuration, so the
library never interferes with an application's own logging setup. Loggers
write to stderr unless a log file is given.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from repostage.config import LoggingConfig

LogFormatType = Literal["json", "text"]


def _get_log_level() -> int:
    """Get the log level from environment variables.

    Checks REPOSTAGE_DEBUG first (sets DEBUG if present), then
    REPOSTAGE_LOG_LEVEL. Defaults to WARNING if neither is set.

    Returns:
        The logging level as an integer.
    """
    if getenv("REPOSTAGE_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(
        getenv("REPOSTAGE_LOG_LEVEL", "warning").upper(), logging.WARNING
    )


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, REPOSTAGE_DEBUG overrides to DEBUG level.

    Returns:
        The logging level as an integer.
    """
    if respect_env and getenv("REPOSTAGE_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.WARNING)


def create_logger(
    name: str,
    *,
    level: str | None = None,
    log_format: LogFormatType = "text",
    log_file: str = "",
    max_bytes: int | None = None,
    backup_count: int | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a standalone structlog logger.

    The log level is determined by (in order of precedence):
    1. REPOSTAGE_DEBUG environment variable (if set, enables DEBUG level)
    2. The `level` parameter (if provided)
    3. REPOSTAGE_LOG_LEVEL environment variable
    4. Default: WARNING

    Args:
        name: Logger name, bound to every entry as ``logger``.
        level: Optional log level string (debug, info, warning, error).
        log_format: Output format, either "json" or "text".
        log_file: Path to a log file (writes to stderr if empty).
        max_bytes: Maximum size in bytes before rotation. Must be set with
            backup_count for rotation to be enabled.
        backup_count: Number of rotated log files to keep. Must be set with
            max_bytes for rotation to be enabled.

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_level = (
        _log_level_from_string(level, respect_env=True)
        if level is not None
        else _get_log_level()
    )

    raw_logger: object
    if log_file and max_bytes is not None and backup_count is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        stdlib_logger = logging.getLogger(f"{name}.{log_path.stem}.{id(log_path)}")
        stdlib_logger.handlers.clear()
        stdlib_logger.propagate = False
        stdlib_logger.setLevel(effective_level)

        handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        handler.setLevel(effective_level)
        handler.setFormatter(logging.Formatter("%(message)s"))
        stdlib_logger.addHandler(handler)
        raw_logger = stdlib_logger
    elif log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        raw_logger = structlog.WriteLoggerFactory(file=log_path.open("a"))()
    else:
        raw_logger = structlog.PrintLoggerFactory(file=sys.stderr)()

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    logger = cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            raw_logger,
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(effective_level),
            context_class=dict,
        ),
    )
    return logger.bind(logger=name)


def create_logger_from_config(
    name: str, config: "LoggingConfig"  # noqa: UP037
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a logger from a logging configuration section.

    Args:
        name: Logger name.
        config: Logging configuration.

    Returns:
        A configured FilteringBoundLogger instance.
    """
    return create_logger(
        name,
        level=str(config.level),
        log_format=cast("LogFormatType", str(config.format)),
        log_file=config.file,
    )
