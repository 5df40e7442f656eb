"""Logging configuration for Video Text Search."""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

from video_text_search.errors import ConfigurationError

LOGGER_NAME = "video_text_search"

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Worker threads are named "frame-pipeline_N" by the executor
FILE_FORMAT = "%(asctime)s - %(threadName)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logger: Optional[logging.Logger] = None


def parse_level(level: Union[str, int]) -> int:
    """
    Convert a level name (case-insensitive) or number to a logging level.

    Raises:
        ConfigurationError: If the level is not one of LEVELS
    """
    if isinstance(level, int) and not isinstance(level, bool):
        return level
    name = str(level).strip().upper()
    if name not in LEVELS:
        raise ConfigurationError(
            f"Invalid log level: {level}. Available: {', '.join(LEVELS)}"
        )
    return logging.getLevelName(name)


def _console_handler(rich_formatting: bool) -> logging.Handler:
    if rich_formatting:
        handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_time=True,
            show_path=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        return handler

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(log_file: Union[str, Path]) -> logging.Handler:
    try:
        handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Could not open log file {log_file}: {e}") from e
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    rich_formatting: bool = True,
) -> logging.Logger:
    """
    Set up the package logger.

    Handlers are built before the old ones are removed, so an invalid
    level or an unwritable log file leaves the current setup in place.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path that also receives every record
        rich_formatting: Use rich console formatting on stderr

    Returns:
        Configured logger instance

    Raises:
        ConfigurationError: Invalid level or log file that cannot be opened
    """
    global _logger

    numeric_level = parse_level(level)
    handlers = [_console_handler(rich_formatting)]
    if log_file:
        handlers.append(_file_handler(log_file))

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """Get the package logger, configuring defaults on first use."""
    global _logger

    if _logger is None:
        _logger = setup_logging()

    return _logger
