"""Structured logging configuration using structlog.

Console output while developing, JSON lines when the monitor runs as a service.
Modules call get_logger(__name__) and log snake_case events with key/value
context instead of formatted strings.
"""

import logging
import sys
from typing import TextIO

import structlog


def setup_logging(
    json_output: bool = False, log_level: str = "INFO", stream: TextIO | None = None
) -> None:
    """Configure structlog processors and the stdlib bridge.

    Args:
        json_output: If True, render JSON lines. If False, console format.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        stream: Where log lines go; CLI scripts pass stderr to keep stdout for data.
    """
    stream = stream or sys.stdout
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if json_output:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer(ensure_ascii=False))
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(stream),
        cache_logger_on_first_use=True,
    )

    # APScheduler and Playwright log through stdlib logging
    logging.basicConfig(
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=stream,
        level=numeric_level,
        force=True,
    )
    logging.getLogger("apscheduler").setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger bound with the module name.

    Args:
        name: Logger name (typically __name__ from calling module).

    Returns:
        structlog logger carrying a ``logger`` key.
    """
    # Lazy proxy: configuration is resolved on first use, not at import
    # (``logger=`` cannot go through get_logger: it collides with wrap_logger's
    # own ``logger`` parameter, so build the same lazy proxy directly)
    return structlog._config.BoundLoggerLazyProxy(
        None, logger_factory_args=(name,), initial_values={"logger": name}
    )
