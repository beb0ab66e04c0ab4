"""
Configuration for Live Yap: constants, environment-backed settings, logging.

Usage:
    from config import get_logger
    from config.settings import settings
"""
from .constants import *
from .logging_config import ROOT_LOGGER_NAME, get_logger, logger, set_console_level, setup_logger

__all__ = [
    # Logging
    'ROOT_LOGGER_NAME',
    'get_logger',
    'logger',
    'set_console_level',
    'setup_logger',
    # Constants are re-exported with *
]
