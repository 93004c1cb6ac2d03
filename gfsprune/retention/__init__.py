"""
Grandfather-father-son retention classification.

Usage:
    from gfsprune.retention import (
        Candidate,
        OrderingPreference,
        RetentionPolicy,
        classify,
    )

    policy = RetentionPolicy(monthly=365, weekly=45, daily=21, intra_daily=3)
    for candidate, decision in classify(policy, OrderingPreference.PREFER_NEWEST, candidates):
        if not decision.retain:
            ...
"""

from gfsprune.retention.calendar import IsoDateInfo, iso_date_info, month_key, week_key
from gfsprune.retention.classifier import (
    BucketRegistry,
    Candidate,
    Classification,
    RetentionDecision,
    classify,
    summarize,
)
from gfsprune.retention.errors import (
    CalendarComputationError,
    InvalidTimestampError,
    RetentionError,
)
from gfsprune.retention.policy import (
    DEFAULT_POLICY,
    OrderingPreference,
    RetentionPolicy,
    RetentionReason,
)

__all__ = [
    "BucketRegistry",
    "CalendarComputationError",
    "Candidate",
    "Classification",
    "DEFAULT_POLICY",
    "InvalidTimestampError",
    "IsoDateInfo",
    "OrderingPreference",
    "RetentionDecision",
    "RetentionError",
    "RetentionPolicy",
    "RetentionReason",
    "classify",
    "iso_date_info",
    "month_key",
    "summarize",
    "week_key",
]
