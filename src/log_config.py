"""Centralized structured logging configuration using structlog.

This module configures structlog for the resolver with JSON or console
output, timestamps and contextual fields. Every resolution runs inside a
``resolution_context`` so its log lines share one ``resolution_id``.

Example:
    >>> from src.log_config import configure_logging, get_logger
    >>> configure_logging(level="INFO")
    >>> logger = get_logger(__name__)
    >>> logger.info("resolution_started", node_count=12)
"""

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """Configure structlog and the standard library logging it writes through.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, use JSONRenderer; if False, use ConsoleRenderer for development

    Raises:
        ValueError: If an invalid log level is provided
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        msg = f"Invalid log level: {level}"
        raise ValueError(msg)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )
    logging.getLogger().setLevel(numeric_level)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured structlog logger.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        A structlog logger
    """
    return structlog.get_logger(name)


@contextmanager
def resolution_context(resolution_id: str | None = None, **kwargs: Any) -> Iterator[str]:
    """Bind a resolution ID and extra fields for the duration of a block.

    Args:
        resolution_id: Identifier to bind; a random one is generated if omitted
        **kwargs: Additional context fields

    Yields:
        The bound resolution ID

    Example:
        >>> with resolution_context(strategy="scan") as rid:
        ...     logger.info("resolution_started")  # includes resolution_id
    """
    resolution_id = resolution_id or uuid.uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(resolution_id=resolution_id, **kwargs):
        yield resolution_id


def bind_context(**kwargs: Any) -> None:
    """Bind arbitrary context variables to the logging context.

    Example:
        >>> bind_context(host="server-1")
        >>> logger.info("resolution_started")  # Will include host
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific context variables from the logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all context variables from the logging context."""
    structlog.contextvars.clear_contextvars()
