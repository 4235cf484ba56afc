"""Logging configuration for the application."""

import logging
import sys

from app.config import LOG_LEVEL


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Configure application-wide logging to stdout.

    Safe to call more than once; basicConfig is a no-op once handlers exist.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
