"""
Retention policy value types.

A policy holds four day-count windows measured back from the moment of
classification. Each window feeds one retention reason; the windows are
independent of each other, so a daily window larger than the weekly one is
allowed.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class RetentionReason(Enum):
    """Reasons a candidate can be retained, in evaluation order."""

    MONTHLY = "Monthly"  # first candidate of a calendar month
    WEEKLY = "Weekly"  # first candidate of an ISO week
    DAILY = "Daily"  # first candidate of a calendar day
    INTRA_DAILY = "IntraDaily"  # every candidate inside the window


class OrderingPreference(Enum):
    """Which end of the timeline claims a shared bucket first."""

    PREFER_OLDEST = "prefer_oldest"
    PREFER_NEWEST = "prefer_newest"


@dataclass(frozen=True)
class RetentionPolicy:
    """
    Grandfather-father-son retention windows, in days.

    Attributes:
        monthly: Window for one-per-month retention (99999 keeps months forever)
        weekly: Window for one-per-ISO-week retention
        daily: Window for one-per-day retention
        intra_daily: Window inside which every candidate is retained

    Negative windows are accepted; they never match anything.
    """

    monthly: int = 99999
    weekly: int = 45
    daily: int = 21
    intra_daily: int = 3

    def __post_init__(self) -> None:
        """Validate window types."""
        for name, value in asdict(self).items():
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(
                    f"Retention window '{name}' must be an integer number of days, "
                    f"got {value!r}"
                )

    def window_for(self, reason: RetentionReason) -> int:
        """Return the window length in days that governs a retention reason."""
        return {
            RetentionReason.MONTHLY: self.monthly,
            RetentionReason.WEEKLY: self.weekly,
            RetentionReason.DAILY: self.daily,
            RetentionReason.INTRA_DAILY: self.intra_daily,
        }[reason]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)


DEFAULT_POLICY = RetentionPolicy(
    monthly=99999,
    weekly=45,
    daily=21,
    intra_daily=3,
)
