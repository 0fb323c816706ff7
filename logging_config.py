"""
Logging Configuration
Sets up the logger hierarchy used by the feed checker.
"""

import logging
import sys

LOGGER_NAME = "rss_checker"

# "trace" has no stdlib counterpart, it is as verbose as debug.
LOG_LEVELS = {
    "off": logging.CRITICAL + 1,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}


def get_logger(module_name: str) -> logging.Logger:
    """Return a child of the feed checker logger for the given module."""
    return logging.getLogger(f"{LOGGER_NAME}.{module_name}")


def setup_logging(level: str = "error") -> logging.Logger:
    """
    Configures the 'rss_checker' logger.

    Records go to stderr, stdout is reserved for the links the checker prints.

    Args:
        level: One of the names in LOG_LEVELS

    Returns:
        The configured logger

    Raises:
        ValueError: If level is not a known level name
    """
    if level not in LOG_LEVELS:
        raise ValueError(
            f"Unknown log level '{level}', expected one of: {', '.join(LOG_LEVELS)}"
        )
    numeric_level = LOG_LEVELS[level]

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)
    logger.propagate = False

    # Avoid duplicate records when called more than once
    if logger.hasHandlers():
        logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)

    # Format: Time - Module - Level - Message
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_handler.setFormatter(formatter)

    logger.addHandler(console_handler)

    logger.debug("Logging initialized at level %s.", level)
    return logger
