"""Logging configuration for store-cli.

Log records go to stderr so that informational notices never mix with
anything a build step reads from stdout.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Set up store-cli logging to stderr.

    Args:
        level: Logging level name; unknown names fall back to INFO

    Returns:
        Configured package logger
    """
    logger = logging.getLogger("store_cli")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove any existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)

    return logger
