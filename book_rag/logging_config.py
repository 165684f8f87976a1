"""
Logging setup for the retrieval engine and its CLI.

Library modules only create loggers (``logging.getLogger(__name__)``); the
CLI, or an embedding application, calls ``setup_logging`` once.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = "book_rag"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# SDK loggers that log every HTTP request at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "chromadb", "urllib3")


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the ``book_rag`` logger tree.

    Args:
        level: Level as int or name ("DEBUG", "info", ...).
        log_file: Optional log file; parent directories are created.
        format_string: Optional custom format string.

    Returns:
        The package logger.

    Raises:
        ValueError: For an unknown level name.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level '{level}'")
        level = resolved

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    sdk_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(sdk_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger below the package logger, e.g. ``get_logger("cli")``."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
