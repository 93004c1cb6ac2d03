"""
ISO-8601 week dating for retention buckets.

Every candidate is bucketed by calendar day, calendar month and ISO week. The
ISO week-numbering year differs from the calendar year around New Year
(2018-12-31 belongs to week 1 of 2019, 2021-01-01 to week 53 of 2020), so the
week is computed from the Thursday of the candidate's week rather than from
the date itself.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import NamedTuple

from gfsprune.retention.errors import CalendarComputationError


class IsoDateInfo(NamedTuple):
    """ISO week coordinates plus the day bucket key of a date."""

    iso_year: int
    iso_week: int
    day_key: str


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def format_day_key(value: date | datetime) -> str:
    """Render a date as ``YYYY-MM-DD``."""
    d = _as_date(value)
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def iso_date_info(value: date | datetime) -> IsoDateInfo:
    """
    Compute the ISO week-numbering year, ISO week and day key of a date.

    The date is shifted to the Thursday of its ISO week (Monday=1 .. Sunday=7);
    that Thursday always lies in the ISO year the week belongs to, and its
    ordinal day within that year gives the week number.

    Args:
        value: Calendar date (a datetime is truncated to its date)

    Returns:
        IsoDateInfo for the date. ``day_key`` is built from the unshifted date.

    Raises:
        CalendarComputationError: If the Thursday shift leaves the supported
            date range (first or last days of year 1 / year 9999)
    """
    d = _as_date(value)
    iso_weekday = d.isoweekday()

    try:
        thursday = d + timedelta(days=4 - iso_weekday)
    except OverflowError as e:
        raise CalendarComputationError(
            f"Cannot compute ISO week for {d.isoformat()}: {e}"
        ) from e

    day_of_year = thursday.toordinal() - date(thursday.year, 1, 1).toordinal() + 1
    iso_week = 1 + (day_of_year - 1) // 7

    return IsoDateInfo(
        iso_year=thursday.year,
        iso_week=iso_week,
        day_key=format_day_key(d),
    )


def month_key(value: date | datetime) -> str:
    """Month bucket key, ``{year}-{month}`` with the month left unpadded."""
    return f"{value.year}-{value.month}"


def week_key(info: IsoDateInfo) -> str:
    """Week bucket key, ``{iso_year}-{iso_week}``."""
    return f"{info.iso_year}-{info.iso_week}"
