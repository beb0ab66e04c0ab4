"""
Centralized logging configuration.

Handlers live on the 'live_yap' logger only; module loggers are its
children and propagate to it, so every module shares one rotating log file.

Console output goes through rich so warnings print above the live caption
window instead of tearing through it.
"""
import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from .constants import (
    LOG_LEVEL, LOG_FORMAT, LOG_FILE,
    LOG_MAX_SIZE_MB, LOG_BACKUP_COUNT
)

ROOT_LOGGER_NAME = 'live_yap'


def _configure_root(console: Optional[Console] = None) -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)

    # Avoid adding handlers multiple times
    if root.handlers:
        return root

    root.setLevel(getattr(logging, LOG_LEVEL))

    # Console - warnings and up, rendered by rich
    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
    )
    console_handler.setLevel(logging.WARNING)
    root.addHandler(console_handler)

    # File with rotation - everything, including engine stdout traces
    log_path = Path(LOG_FILE)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=LOG_MAX_SIZE_MB * 1024 * 1024,
        backupCount=LOG_BACKUP_COUNT,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(file_handler)

    return root


def setup_logger(name: str = None) -> logging.Logger:
    """
    Get a configured logger.

    Usage:
        from config.logging_config import setup_logger
        logger = setup_logger(__name__)
        logger.info("Message here")

    Args:
        name: Module name. None returns the 'live_yap' logger itself.

    Returns:
        logging.Logger under the 'live_yap' hierarchy.
    """
    root = _configure_root()
    if not name or name == ROOT_LOGGER_NAME:
        return root
    return root.getChild(name)


def get_logger(name: str = None) -> logging.Logger:
    """
    Alias for setup_logger for convenience.

    Usage:
        from config.logging_config import get_logger
        logger = get_logger(__name__)
    """
    return setup_logger(name)


def set_console_level(level: int):
    """Change what reaches the terminal (file logging is unaffected)"""
    for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
        if isinstance(handler, RichHandler):
            handler.setLevel(level)


# Singleton logger for quick imports
# Usage: from config.logging_config import logger
logger = setup_logger()
