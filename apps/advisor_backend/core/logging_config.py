"""Structured logging setup shared by every module of the backend.

Modules log snake_case events with key-value context, e.g.::

    logger.info("snapshot_refreshed", accounts=3, transactions=120)
"""

import logging
import sys

import structlog

from advisor_backend.config import AppSettings, settings


def configure_logging(app_settings: AppSettings = settings) -> None:
    """Configure stdlib logging and structlog from the application settings."""
    level = getattr(logging, app_settings.LOG_LEVEL)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    if app_settings.LOG_FORMAT == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()

logger = structlog.get_logger()
