"""Logging setup for the sysprune host program."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "sysprune"


def setup_logging(log_level: str, log_file: Path | None = None, *, verbose: bool = False) -> logging.Logger:
    """Attach a Rich console handler and an optional file handler to the package logger.

    Args:
        log_level: Level name for the package logger.
        log_file: Where to write the full DEBUG log; skipped when None.
        verbose: Show DEBUG records on the console too.

    Returns:
        Configured logger instance.

    Raises:
        ValueError: If ``log_level`` is not a valid level name.

    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Invalid log_level: {log_level}")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else level)

    # Clear existing handlers to avoid duplicates if setup runs twice
    if logger.handlers:
        logger.handlers.clear()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_path=False,
    )
    console_handler.setLevel(logging.DEBUG if verbose else level)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
        logger.addHandler(file_handler)

    return logger
