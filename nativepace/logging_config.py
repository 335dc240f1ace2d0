"""
Loguru setup for applications embedding the engine.

The engine modules only emit records through ``loguru.logger``; the host
application decides where they go by calling ``configure_logging`` once.
"""

from __future__ import annotations

import sys

from loguru import logger

from nativepace.config import get_settings

LOG_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def configure_logging(level: str | None = None, log_file: str | None = None) -> None:
    """
    Replace loguru handlers with a stderr sink and an optional file sink.

    Args:
        level: Minimum level for stderr (defaults to settings.log_level)
        log_file: Path for a rotating file sink (defaults to settings.log_file)
    """
    settings = get_settings()
    level = level or settings.log_level
    log_file = log_file if log_file is not None else settings.log_file

    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    if log_file:
        logger.add(
            log_file,
            level="DEBUG",
            format=FILE_FORMAT,
            rotation="10 MB",
            retention=5,
        )

    logger.debug(f"Logging configured (level={level}, file={log_file})")
