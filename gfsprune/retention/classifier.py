"""
Retention classifier.

Decides, for every candidate in a set, whether it is retained under a
RetentionPolicy and which reasons apply. Candidates are processed in
timestamp order; within each month, ISO week and day the first candidate
processed claims the bucket and later ones get no credit for it.

Usage:
    from gfsprune.retention import Candidate, RetentionPolicy, classify

    results = classify(
        RetentionPolicy(monthly=365, weekly=60, daily=14, intra_daily=2),
        OrderingPreference.PREFER_NEWEST,
        [Candidate("a.bak", datetime(2024, 3, 4, 12, 0))],
    )
    for candidate, decision in results:
        print(candidate.identifier, decision.retain, decision.reason_labels)
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, NamedTuple

from loguru import logger

from gfsprune.retention.calendar import iso_date_info, month_key, week_key
from gfsprune.retention.errors import InvalidTimestampError
from gfsprune.retention.policy import (
    OrderingPreference,
    RetentionPolicy,
    RetentionReason,
)


@dataclass(frozen=True)
class Candidate:
    """An artifact to classify: an opaque identifier and its timestamp."""

    identifier: Any
    timestamp: datetime | date | None


@dataclass(frozen=True)
class RetentionDecision:
    """Verdict for one candidate."""

    retain: bool
    reasons: tuple[RetentionReason, ...] = ()

    @property
    def reason_labels(self) -> list[str]:
        """Reason names as displayed in reports, e.g. ``["Weekly", "Daily"]``."""
        return [reason.value for reason in self.reasons]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"retain": self.retain, "reasons": self.reason_labels}


class Classification(NamedTuple):
    """A candidate paired with the decision made for it."""

    candidate: Candidate
    decision: RetentionDecision


@dataclass
class BucketRegistry:
    """
    Bucket keys claimed during a single classification pass.

    Month, week and day keys live in one namespace: a month key such as
    ``"2024-1"`` also blocks the identical ISO week key.
    """

    _claimed: set[str] = field(default_factory=set)

    def claim(self, key: str) -> bool:
        """Claim a bucket. Returns False if it was already taken."""
        if key in self._claimed:
            return False
        self._claimed.add(key)
        return True

    def __contains__(self, key: str) -> bool:
        return key in self._claimed

    def __len__(self) -> int:
        return len(self._claimed)


def _normalize_timestamp(candidate: Candidate) -> datetime:
    """Validate a candidate timestamp and return it as a naive local datetime."""
    ts = candidate.timestamp
    if isinstance(ts, datetime):
        if ts.tzinfo is not None:
            ts = ts.astimezone().replace(tzinfo=None)
        return ts
    if isinstance(ts, date):
        return datetime.combine(ts, time.min)
    raise InvalidTimestampError(candidate.identifier, ts)


def _cutoff(now: datetime, days: int) -> datetime:
    """
    Return ``now - days``.

    A window too large for datetime arithmetic has no lower bound; a negative
    one too large in magnitude admits nothing.
    """
    try:
        return now - timedelta(days=days)
    except OverflowError:
        return datetime.min if days > 0 else datetime.max


def classify(
    policy: RetentionPolicy,
    ordering: OrderingPreference,
    candidates: Iterable[Candidate],
    now: datetime | None = None,
) -> list[Classification]:
    """
    Classify candidates against a retention policy.

    Candidates are stably sorted by timestamp (newest first for
    PREFER_NEWEST, oldest first otherwise) and evaluated in that order.
    For each one the Monthly, Weekly and Daily checks fire when the timestamp
    is strictly newer than ``now - window`` and the month / ISO week / day
    bucket is still unclaimed; IntraDaily fires for every candidate inside
    its window.

    Args:
        policy: Retention windows
        ordering: Which end of the timeline claims shared buckets first
        candidates: Candidates to classify; consumed fully before sorting
        now: Reference instant, captured once (defaults to datetime.now())

    Returns:
        One Classification per candidate, in processing order

    Raises:
        InvalidTimestampError: If any candidate has a missing or non-date
            timestamp. No results are produced in that case.
        CalendarComputationError: If a timestamp is outside the range the
            ISO week calculation supports
    """
    # Validate everything before any bucket is claimed
    keyed = [(_normalize_timestamp(c), c) for c in candidates]

    now = now or datetime.now()
    if now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)

    keyed.sort(
        key=lambda item: item[0],
        reverse=ordering == OrderingPreference.PREFER_NEWEST,
    )

    cutoffs = {reason: _cutoff(now, policy.window_for(reason)) for reason in RetentionReason}
    monthly_cutoff = cutoffs[RetentionReason.MONTHLY]
    weekly_cutoff = cutoffs[RetentionReason.WEEKLY]
    daily_cutoff = cutoffs[RetentionReason.DAILY]
    intra_daily_cutoff = cutoffs[RetentionReason.INTRA_DAILY]

    registry = BucketRegistry()
    results = []

    for ts, candidate in keyed:
        info = iso_date_info(ts)
        reasons = []

        if ts > monthly_cutoff and registry.claim(month_key(ts)):
            reasons.append(RetentionReason.MONTHLY)
        if ts > weekly_cutoff and registry.claim(week_key(info)):
            reasons.append(RetentionReason.WEEKLY)
        if ts > daily_cutoff and registry.claim(info.day_key):
            reasons.append(RetentionReason.DAILY)
        if ts > intra_daily_cutoff:
            reasons.append(RetentionReason.INTRA_DAILY)

        decision = RetentionDecision(retain=bool(reasons), reasons=tuple(reasons))
        logger.debug(
            f"{candidate.identifier} @ {ts.isoformat()}: "
            f"{'keep' if decision.retain else 'discard'} {decision.reason_labels}"
        )
        results.append(Classification(candidate, decision))

    logger.debug(f"Classified {len(results)} candidates, {len(registry)} buckets claimed")
    return results


def summarize(classifications: Iterable[Classification]) -> dict[str, Any]:
    """
    Count retained and discarded candidates and how often each reason fired.

    Args:
        classifications: Output of classify()

    Returns:
        Dictionary with total, retained, discarded and per-reason counts
    """
    total = 0
    retained = 0
    reason_counts: Counter[str] = Counter()

    for _, decision in classifications:
        total += 1
        if decision.retain:
            retained += 1
        reason_counts.update(decision.reason_labels)

    return {
        "total": total,
        "retained": retained,
        "discarded": total - retained,
        "reasons": {reason.value: reason_counts[reason.value] for reason in RetentionReason},
    }
