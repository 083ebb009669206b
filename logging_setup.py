"""Structured logging configuration with structlog.

Usage:
    from logging_setup import configure_logging

    configure_logging(environment="development")  # console output
    configure_logging(environment="production")   # JSON output

    log = structlog.get_logger(__name__)
    log.info("phase_changed", phase="VERDICT")
"""

import logging

import structlog
from structlog.typing import Processor


def configure_logging(environment: str = "development", level: str = "INFO") -> None:
    """Configure structlog once at startup."""
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if environment == "production":
        final_processor: Processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
