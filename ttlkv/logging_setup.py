from __future__ import annotations

import logging
import sys

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level:<7}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """Route stdlib logging records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def _stderr_sink(message: str) -> None:
    # Look up sys.stderr per write so redirected streams are honoured.
    sys.stderr.write(message)


def setup_logging(level: str = "WARNING") -> None:
    logger.remove()
    logger.add(
        _stderr_sink,
        format=CONSOLE_FORMAT,
        level=level.upper(),
        colorize=False,
        backtrace=False,
        diagnose=False,
    )
    logger.enable("ttlkv")
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
