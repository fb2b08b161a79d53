"""Logging utilities for firestarter modules."""

import logging
from typing import Iterable, Optional


LOGGER_NAMES = (
    'firestarter',
    'firestarter.api',
    'firestarter.auth',
    'firestarter.gateway',
    'firestarter.hashing',
    'firestarter.storage',
    'firestarter.client',
)


def get_logger(name: str) -> logging.Logger:
    """Get a logger that automatically inherits from root logger.

    This ensures that loggers work with basicConfig() without needing
    explicit setup_logging() calls. The logger will:
    - Propagate to root logger (default behavior)
    - Only set a default level if root logger has no handlers

    Args:
        name: Logger name (typically 'firestarter.<area>')

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.propagate = True

    # basicConfig() not called yet
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logger.setLevel(logging.WARNING)

    return logger


def configure_loggers(level: int = logging.INFO, names: Optional[Iterable[str]] = None) -> None:
    """Set the level of every firestarter logger and keep propagation on."""
    for logger_name in names or LOGGER_NAMES:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True
