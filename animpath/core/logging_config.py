"""
Logging configuration for the path animation engine.

Thin layer over stdlib logging: module loggers live under the ``animpath``
namespace so a host can tune the whole engine with one logger.
"""

import functools
import logging
import time
from typing import Optional

ROOT_LOGGER_NAME = "animpath"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a logger parented under the ``animpath`` namespace."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """
    Attach handlers to the package root logger.

    Args:
        level: Logging level (e.g., logging.DEBUG, logging.INFO)
        log_file: Optional file path for logging output
        fmt: Format string for all handlers

    Returns:
        The configured package root logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def configure_logging(level: int = logging.INFO, log_file: Optional[str] = None):
    """
    Configure global logging settings.

    Args:
        level: Logging level (e.g., logging.DEBUG, logging.INFO)
        log_file: Optional file path for logging output
    """
    setup_logging(level=level, log_file=log_file)


def log_performance(func):
    """Decorator logging wall time of the wrapped call at DEBUG level."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        logger.debug(f"{func.__qualname__} took {elapsed_ms:.3f}ms")
        return result

    return wrapper


class LogContext:
    """
    Temporarily change the level of the package logger.

    Usage:
        with LogContext(logging.DEBUG):
            document.redistribute_timestamps()
    """

    def __init__(self, level: int, name: str = ROOT_LOGGER_NAME):
        self.level = level
        self.logger = logging.getLogger(name)
        self._previous_level: Optional[int] = None

    def __enter__(self) -> logging.Logger:
        self._previous_level = self.logger.level
        self.logger.setLevel(self.level)
        return self.logger

    def __exit__(self, exc_type, exc, tb):
        if self._previous_level is not None:
            self.logger.setLevel(self._previous_level)
        return False


__all__ = [
    "get_logger",
    "setup_logging",
    "configure_logging",
    "log_performance",
    "LogContext",
]
