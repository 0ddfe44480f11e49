"""
Structured logging configuration using structlog.

JSON lines when LOG_FORMAT=json, coloured console output otherwise.
Everything goes to stdout; the process manager owns persistence.
"""

import logging
import sys

import structlog

from bengyixia.config import settings


def setup_logging() -> None:
    """
    Configure structlog and route stdlib logging (uvicorn, slowapi) to stdout.

    Safe to call more than once.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    # Request lines are already covered by LoggingMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
