"""
Exceptions raised by the retention classifier.
"""

from __future__ import annotations

from typing import Any


class RetentionError(Exception):
    """Base class for retention classification failures."""
    pass


class InvalidTimestampError(RetentionError, ValueError):
    """Raised when a candidate timestamp cannot be read as a calendar date."""

    def __init__(self, identifier: Any, timestamp: Any):
        self.identifier = identifier
        self.timestamp = timestamp
        super().__init__(
            f"Invalid timestamp for candidate {identifier!r}: {timestamp!r}"
        )


class CalendarComputationError(RetentionError, OverflowError):
    """Raised when a date falls outside the range the ISO calculator can handle."""
    pass
