"""
Logging setup for Veyu, built on loguru.

Modules call ``get_logger(__name__)`` once at import time. Hosts (or the CLI)
call ``setup_logging`` to pick the level and an optional log file.
"""

import sys
from typing import Optional

from loguru import logger

_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)

logger.configure(extra={"name": "veyu"})


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Replace loguru's default sink with Veyu's format.

    Args:
        level: Minimum level for all sinks (e.g. "DEBUG", "WARNING")
        log_file: Optional path for a rotating file sink
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=_LOG_FORMAT)

    if log_file:
        logger.add(
            log_file,
            level=level.upper(),
            format=_LOG_FORMAT,
            rotation="10 MB",
            retention=2,
            encoding="utf-8",
        )


def get_logger(name: str):
    """Return a logger bound to a module name."""
    return logger.bind(name=name)
