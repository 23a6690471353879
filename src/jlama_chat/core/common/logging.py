"""
Structured logging configuration.

This module provides utilities for configuring and using structured logging.
Library modules log through the standard ``logging`` module; callers that want
structured output call :func:`configure_logging` once at start-up.
"""

from __future__ import annotations

import logging
from enum import Enum

import structlog


class LogFormat(str, Enum):
    """Log format options."""

    JSON = "json"
    CONSOLE = "console"
    PLAIN = "plain"


DEFAULT_PLAIN_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s:%(lineno)d %(message)s"


def configure_logging(
    level: int | str = logging.INFO,
    log_format: LogFormat | str = LogFormat.CONSOLE,
) -> None:
    """Configure stdlib logging and structlog.

    Args:
        level: Logging level, as an int or a level name
        log_format: Output format for both stdlib and structlog records
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    log_format = LogFormat(log_format)

    logging.basicConfig(
        level=level,
        format=DEFAULT_PLAIN_FORMAT if log_format is LogFormat.PLAIN else "%(message)s",
        force=True,  # Override any existing configuration
    )

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if log_format is LogFormat.JSON:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    elif log_format is LogFormat.CONSOLE:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    else:
        processors.append(structlog.processors.KeyValueRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger.

    Args:
        name: Optional logger name

    Returns:
        A structured logger
    """
    return structlog.get_logger(name)  # type: ignore


def redact(value: str, mask: str = "***") -> str:
    """Redact a sensitive value.

    Args:
        value: The value to redact
        mask: The mask to use

    Returns:
        The redacted value
    """
    if not value:
        return value

    # Keep first and last two characters
    if len(value) > 6:
        return f"{value[0:2]}{mask}{value[-2:]}"
    else:
        return mask
