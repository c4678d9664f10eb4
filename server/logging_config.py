"""Logging setup for the chat server process."""

import logging
import os
import sys
import time
from contextlib import contextmanager
from typing import Iterator, TextIO

LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# INFO and above: who logged what
SIMPLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
# DEBUG: also where it was logged from
DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
)

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "websockets": logging.WARNING,
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
}


def resolve_level(level: str | None = None) -> int:
    """Map a level name, or $LOG_LEVEL when none is given, to a logging level.

    Unknown names fall back to INFO.
    """
    name = (level or os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).strip().upper()
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def setup_logging(level: str | None = None, stream: TextIO | None = None) -> int:
    """Configure the root logger for the whole process.

    Args:
        level: Level name override; defaults to $LOG_LEVEL, then INFO.
        stream: Where log lines go (default: stdout).

    Returns:
        The effective log level.
    """
    log_level = resolve_level(level)

    logging.basicConfig(
        level=log_level,
        format=DETAILED_FORMAT if log_level <= logging.DEBUG else SIMPLE_FORMAT,
        datefmt=DATE_FORMAT,
        stream=stream or sys.stdout,
        force=True,
    )

    for name, noisy_level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(max(noisy_level, log_level))

    return log_level


@contextmanager
def log_timing(
    logger: logging.Logger, operation: str, level: int = logging.DEBUG
) -> Iterator[None]:
    """Log how long the wrapped block took, also when it raises.

    Example:
        with log_timing(logger, "History load"):
            history = open_history_log(path)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.log(level, "%s completed in %.1fms", operation, elapsed_ms)
