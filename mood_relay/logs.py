"""
Logging setup for the Mood Relay service.
"""

import sys

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}"


def setup_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with a stdout sink at the given level."""
    logger.remove()
    logger.add(sys.stdout, level=level.upper(), format=LOG_FORMAT)
    logger.debug("Logging initialized at {}", level.upper())
