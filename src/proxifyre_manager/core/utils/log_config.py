"""Logging configuration for the manager.

This module provides centralized logging configuration using Loguru.
It sets up logging to both file and console with proper formatting
and log rotation.
"""

import sys
from pathlib import Path

from loguru import logger

# Logs live in the user's home directory, not beside the service config
LOG_DIR = Path.home() / ".proxifyre-manager" / "logs"
LOG_DIR.mkdir(parents=True, exist_ok=True)
LOG_FILE = LOG_DIR / "manager.log"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def configure_logging(console_level: str = "WARNING") -> None:
    """(Re)install the console and rotating file handlers.

    Args:
        console_level: Minimum level printed to stderr; the file always gets DEBUG
    """
    logger.remove()
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=console_level,
        backtrace=True,
        diagnose=True,
    )
    logger.add(
        LOG_FILE,
        rotation="10 MB",
        retention="1 week",
        compression="zip",
        format=FILE_FORMAT,
        level="DEBUG",
        backtrace=True,
        diagnose=True,
    )


configure_logging()

__all__ = ["LOG_DIR", "LOG_FILE", "configure_logging", "logger"]
