"""Structured logging setup for converge."""

import logging
import os
import sys
from typing import Optional, Union


def setup_logging(level: Union[int, str] = logging.INFO, format_string: Optional[str] = None) -> logging.Logger:
    """
    Set up structured logging for converge.

    Args:
        level: Logging level (default: INFO). CONVERGE_LOG_LEVEL overrides it.
        format_string: Custom format string (optional)

    Returns:
        Configured logger instance
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    env_level = os.getenv("CONVERGE_LOG_LEVEL")
    if env_level:
        level = env_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format=format_string,
        stream=sys.stderr,
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    logger = logging.getLogger("converge")
    logger.setLevel(level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a specific module."""
    return logging.getLogger(f"converge.{name}")
