"""Logging configuration for bedforge.

This module provides logging setup for bedforge, with support for console
and file output.

Features:
    - Console logging with rich formatting
    - File logging for debugging
    - Configurable verbosity levels
    - Timing of long operations

Example:
    >>> from bedforge.utils.logging import setup_logging, get_logger
    >>> setup_logging(verbosity=2)
    >>> logger = get_logger(__name__)
    >>> logger.info("Processing started")
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

# =============================================================================
# Constants
# =============================================================================

# Default log format
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Rich console format (when using rich handler)
RICH_FORMAT = "%(message)s"

# Log levels by verbosity
VERBOSITY_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}


# =============================================================================
# Setup Functions
# =============================================================================


def setup_logging(
    verbosity: int = 1,
    log_file: Path | str | None = None,
    use_rich: bool = True,
) -> logging.Logger:
    """Configure logging for bedforge.

    Console output goes to stderr so that BED output on stdout stays clean.

    Args:
        verbosity: Verbosity level (0=warning, 1=info, 2=debug).
        log_file: Optional file to log to.
        use_rich: Use rich for console output.

    Returns:
        The configured package logger.
    """
    level = VERBOSITY_LEVELS.get(max(verbosity, 0), logging.DEBUG)

    logger = logging.getLogger("bedforge")
    logger.setLevel(logging.DEBUG if log_file is not None else level)
    logger.handlers.clear()

    if use_rich:
        console_handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_time=False,
            show_path=False,
        )
        console_handler.setFormatter(logging.Formatter(RICH_FORMAT))
    else:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))

    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        file_handler.setLevel(logging.DEBUG)  # Always log debug to file
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module.

    Args:
        name: Module name (typically __name__).

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)


# =============================================================================
# Timing Utilities
# =============================================================================


class Timer:
    """Context manager for timing operations.

    Example:
        >>> with Timer("Fraction extraction", logger):
        ...     process_records()
        # Logs: "Fraction extraction completed in 1.23s"
    """

    def __init__(self, description: str, logger: logging.Logger | None = None) -> None:
        """Initialize timer.

        Args:
            description: Description of the operation.
            logger: Logger for output (the bedforge logger if None).
        """
        self.description = description
        self.logger = logger or logging.getLogger("bedforge")
        self.start_time: float = 0
        self.elapsed: float = 0

    def __enter__(self) -> Timer:
        """Start timing."""
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        """Stop timing and log result."""
        self.elapsed = time.perf_counter() - self.start_time
        self.logger.info(f"{self.description} completed in {self.elapsed:.2f}s")
