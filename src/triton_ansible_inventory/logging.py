"""Logging setup shared by the inventory script and the HTTP service.

Everything goes to stderr: stdout is reserved for the inventory JSON that
Ansible reads.
"""

from __future__ import annotations

import logging
import sys

DEFAULT_FORMAT = "%(levelname)s [%(name)s] %(message)s"
DEBUG_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(funcName)s:%(lineno)d] %(message)s"

LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
}


def get_level_from_name(level_name: str) -> int:
    """Convert a level name (bunyan-style names accepted) to a logging level.

    Raises:
        ValueError: If the level name is unknown
    """
    level = LEVELS.get(level_name.strip().lower())
    if level is None:
        valid = ", ".join(LEVELS)
        raise ValueError(f"Invalid log level: {level_name}. Valid levels: {valid}")
    return level


def configure_logging(level: int = logging.INFO) -> None:
    """Replace root handlers with a single stderr handler at ``level``."""
    format_string = DEBUG_FORMAT if level <= logging.DEBUG else DEFAULT_FORMAT

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(format_string))
    root_logger.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
