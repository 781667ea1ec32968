"""
Logging configuration.

Configures the loguru logger for the scheduler, workers and CLI.
Sets up log rotation and retention policies.
"""

import sys

from loguru import logger

from app.config.settings import settings


def setup_logging(log_file: str | None = None) -> None:
    """
    Configure stderr and rotating file sinks.

    Args:
        log_file: File sink path (defaults to settings.log_file, None disables)
    """
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    path = log_file or settings.log_file
    if path:
        logger.add(
            path,
            rotation="1 day",
            retention="7 days",
            level=settings.log_level,
            encoding="utf-8",
        )

    logger.info(f"Logging configured (level={settings.log_level})")
