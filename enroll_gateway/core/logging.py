"""
Centralized logging configuration.
"""

import logging
import sys


def setup_logging(level: int | str = logging.INFO) -> None:
    """Configure application-wide logging."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=level,
        stream=sys.stdout,
    )
    # aiohttp access log duplicates our own request logging
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)
