"""Utility functions for bedforge.

Example:
    >>> from bedforge.utils import setup_logging, Timer
    >>> setup_logging(verbosity=2)
"""

from bedforge.utils.logging import Timer, get_logger, setup_logging

__all__ = [
    "Timer",
    "get_logger",
    "setup_logging",
]
