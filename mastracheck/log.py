"""
Structured logging configuration: structlog over stdlib ``logging``.

Log events go to stderr so that reports written to stdout stay clean
for piping (``mastracheck scan -f json | jq``).
"""

import logging
import sys
from typing import Any, List

import structlog


def setup_logging(level: str = "warning", json_output: bool = False) -> None:
    """
    Configure structlog with stdlib logging integration.

    Args:
        level: Log level name (``debug``, ``info``, ``warning``, ``error``).
        json_output: Render JSON lines instead of the console renderer.
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    shared_processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        # setup_logging may run more than once per process.
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    package_logger = logging.getLogger("mastracheck")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(log_level)
    package_logger.propagate = False
