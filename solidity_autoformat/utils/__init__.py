"""Utility modules for shared functionality."""

from .constants import (
    COMMIT_MESSAGE,
    DEFAULT_FILE_SUFFIXES,
    DEFAULT_PRINT_WIDTH,
    DEFAULT_TAB_WIDTH,
    ZERO_SHA,
)

__all__ = [
    "ZERO_SHA",
    "DEFAULT_FILE_SUFFIXES",
    "DEFAULT_TAB_WIDTH",
    "DEFAULT_PRINT_WIDTH",
    "COMMIT_MESSAGE",
]
