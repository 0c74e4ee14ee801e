"""Structured logging setup.

Logs go to stderr through the stdlib logging module; reports are written
to stdout by the console reporter, so the two never interleave in pipes.
"""

import logging
import sys

import structlog


def configure_logging(level: str = "WARNING", json_format: bool = False) -> None:
    """Configure structlog on top of stdlib logging.

    Args:
        level: Log level name
        json_format: Render JSON lines instead of the console format
    """
    level = level.upper()

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level, logging.WARNING),
        force=True,
    )
