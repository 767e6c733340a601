"""
Logging configuration for polytrans.

This module provides the logging setup shared by the cache, the engine
invoker, the scheduler and the command-line script. Every module obtains
its logger through get_logger(__name__), so log lines carry the dotted
module path of their origin.

Usage:
    from polytrans.config.logging_config import setup_logging, get_logger

    # At application startup
    setup_logging()

    # In each module
    logger = get_logger(__name__)
    logger.info("Translation run started")

License: MIT
"""

import logging
import sys
from typing import Optional


# =============================================================================
# DEFAULT CONFIGURATION
# =============================================================================

# Timestamp, logger name, level and message.
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_LOG_LEVEL = logging.INFO

# Libraries whose INFO/DEBUG output drowns the run log.
THIRD_PARTY_LOGGERS = [
    "urllib3",
    "urllib3.connectionpool",
    "requests",
    "charset_normalizer",
]


# =============================================================================
# FUNCTION DEFINITIONS
# =============================================================================

def setup_logging(
    level: int = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    suppress_third_party: bool = True
) -> None:
    """
    Configure logging for the entire application.

    Sets up the root logger with a stdout handler and consistent formatting.
    Should be called once at startup, before the first translation run.

    Args:
        level: The logging level threshold (logging.DEBUG, logging.INFO, ...).
        log_format: The format string for log messages.
        date_format: The strftime format for timestamps.
        suppress_third_party: If True, pins HTTP client loggers to WARNING.

    Example:
        >>> setup_logging(level=logging.DEBUG)
        >>> get_logger(__name__).debug("Cache hits are now visible")
    """
    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    if suppress_third_party:
        _suppress_third_party_logging()


def _suppress_third_party_logging() -> None:
    """Set the chatty third-party loggers to WARNING."""
    for logger_name in THIRD_PARTY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: The name of the logger, typically the module's __name__.
            If None, returns the root logger.

    Returns:
        logging.Logger: Logger inheriting the root configuration.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Loaded %d cache entries", 1200)
        2026-01-15 10:30:45 - polytrans.translation.cache - INFO - Loaded 1200 cache entries
    """
    return logging.getLogger(name)


def set_log_level(level: int, logger_name: Optional[str] = None) -> None:
    """
    Change the log level for one logger, or the root logger, at runtime.

    Args:
        level: The new logging level.
        logger_name: The logger to modify. If None, modifies the root logger.

    Example:
        >>> # Show retry details from the invoker only
        >>> set_log_level(logging.DEBUG, "polytrans.translation.translator")
    """
    logging.getLogger(logger_name).setLevel(level)
