import os
import sys
from typing import Any

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
DEFAULT_LEVEL = "WARNING"


def configure_logging(level: str | None = None, sink: Any = None) -> None:
    """
    Route gitlet's log records to `sink`.

    The package logger is disabled on import so that embedding code sees
    nothing unless it asks; the command-line entry point calls this once.
    Level comes from the argument, then GITLET_LOG_LEVEL, then WARNING.
    """
    level = (level or os.environ.get("GITLET_LOG_LEVEL") or DEFAULT_LEVEL).upper()

    logger.remove()
    logger.add(sink or sys.stderr, format=LOG_FORMAT, level=level, colorize=False)
    logger.enable("gitlet")
