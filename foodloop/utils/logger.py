"""
Logging configuration for the foodloop package
"""
import logging
import sys
from typing import Optional

from foodloop.config import get_settings

settings = get_settings()

PACKAGE_LOGGER = "foodloop"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _level(name: Optional[str]) -> int:
    if not name:
        return logging.DEBUG if settings.DEBUG else logging.INFO
    level = logging.getLevelName(name.upper())
    # Unknown names come back as "Level X"
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach one stdout handler to the package logger.

    Service modules log through logging.getLogger(__name__) and propagate here.
    Safe to call more than once.
    """
    root = logging.getLogger(PACKAGE_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(_level(level or settings.LOG_LEVEL))
    return root


def get_logger(name: str) -> logging.Logger:
    """Logger under the foodloop namespace, configuring it on first use"""
    configure_logging()
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
