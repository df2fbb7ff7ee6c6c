"""
Logging configuration for the application.

One stdout format for every module logger. Device identifiers are
never logged in full (a 4 character prefix at most) and request bodies
are never logged.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure logging for the application.

    Args:
        level: The log level string (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )

    # Request lines are noise next to check-in logs
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
