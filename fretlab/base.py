"""Base classes and exceptions shared across fretlab.

Provides the resource-management ABCs used by timer drivers and click
sinks, and the exception types raised by the theory engine.
"""

from __future__ import annotations

from abc import ABCMeta, abstractmethod
from typing import Any


class Closeable(metaclass=ABCMeta):
    """Abstract base class for objects that need explicit resource cleanup."""

    @abstractmethod
    def close(self) -> None:
        """Close this to free resources and deny further use."""
        raise NotImplementedError()


class Resettable(metaclass=ABCMeta):
    """Abstract base class for objects that can be reset to their initial state."""

    @abstractmethod
    def reset(self) -> None:
        """Reset this to a known good state for further use."""
        raise NotImplementedError()


class MatchException(Exception):
    """Exception raised when pattern matching fails."""

    def __init__(self, value: Any) -> None:
        """Initialize a MatchException with the unmatched value.

        Args:
            value: The value that failed to match any pattern.
        """
        super().__init__(f"Failed to match value: {value}")


class FretboardRangeError(ValueError):
    """Raised when a string index or fret number is outside the fretboard.

    These are caller bugs: every call site iterates fixed, known-safe
    ranges, so out-of-range positions fail loudly instead of clamping.
    """
