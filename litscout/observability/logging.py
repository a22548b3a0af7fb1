"""Structured logging with correlation ID propagation.

Usage:
    from litscout.observability.logging import configure_logging

    # At application startup
    configure_logging(level="INFO", json_output=True)

    # Every module keeps its own module-level logger
    logger = structlog.get_logger()
    logger.info("candidates_fetched", source="crossref", count=10)

    # Output includes correlation_id automatically:
    # {"event": "candidates_fetched", "source": "crossref", "count": 10,
    #  "correlation_id": "abc-123", "level": "info", ...}
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.typing import EventDict, WrappedLogger

from litscout.observability.context import get_correlation_id


def add_correlation_id_processor(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Stamp each entry with the active correlation id, or "none"."""
    corr_id = get_correlation_id()
    event_dict["correlation_id"] = corr_id if corr_id else "none"
    return event_dict


def _stderr_logger_factory(*args: Any) -> structlog.PrintLogger:
    # Resolved per logger so a swapped or closed sys.stderr is never cached
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    add_timestamp: bool = True,
) -> None:
    """Install the structlog processor chain.

    Args:
        level: Minimum level name; unknown names fall back to INFO
        json_output: Render JSON lines instead of the colored console format
        add_timestamp: Add an ISO-8601 ``timestamp`` key
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_correlation_id_processor,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if add_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    # Logs go to stderr so `discover --json` output stays parseable
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )


def get_logger(component: Optional[str] = None, **initial_context: Any) -> Any:
    """Module logger, optionally bound to a component name and extra keys.

    Args:
        component: Optional component name to include in logs
        **initial_context: Additional context bound to all entries

    Returns:
        A bound structlog logger
    """
    logger = structlog.get_logger()

    if component:
        logger = logger.bind(component=component)

    if initial_context:
        logger = logger.bind(**initial_context)

    return logger


def bind_context(**context: Any) -> None:
    """Bind context to all subsequent log entries in the current context."""
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    """Clear all bound context from structlog contextvars."""
    structlog.contextvars.clear_contextvars()
