"""Structured logging with structlog; rich renders console tracebacks."""

import logging
import sys

import structlog


def setup_logging(*, json_logs: bool = False, log_level: str = "INFO") -> None:
    """Configure structlog with rich console output or JSON formatting.

    Args:
        json_logs: If True, output JSON logs (for production). Otherwise, rich console.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_logs:
        renderers: list[structlog.types.Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.rich_traceback,
            ),
        ]

    structlog.configure(
        processors=[*shared_processors, *renderers],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # uvicorn and starlette log through the standard library
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger instance.

    Args:
        name: Optional logger name (typically __name__).

    Returns:
        A bound structlog logger.
    """
    return structlog.get_logger(name)


def get_server_logger() -> structlog.stdlib.BoundLogger:
    """Get logger for server module."""
    return get_logger("central.server")


def get_endpoint_logger() -> structlog.stdlib.BoundLogger:
    """Get logger for the endpoint adapters."""
    return get_logger("central.endpoint")


def get_errors_logger() -> structlog.stdlib.BoundLogger:
    """Get logger for error translation."""
    return get_logger("central.errors")
