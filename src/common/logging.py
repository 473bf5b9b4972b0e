"""
Logging configuration helpers.
Every console entrypoint calls `configure_logging` once so gateway and controller loggers share one format.
The level comes from settings so operators can raise verbosity without code changes.
"""

from __future__ import annotations

import logging

from src.common.settings import get_settings

_LOGGING_CONFIGURED = False

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging() -> None:
    """Configure process-wide logging from environment settings."""

    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    settings = get_settings()
    level_name = settings.LOG_LEVEL.upper()
    level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(level=level, format=LOG_FORMAT)
    # urllib3 logs every pooled connection at DEBUG.
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))
    _LOGGING_CONFIGURED = True
