"""
Calendar-month helpers.

All month keys are plain ``date`` objects pinned to the first of the month.
Datetimes are truncated to their date part (after conversion to UTC when they
carry a timezone) so a month key never depends on the local timezone.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, datetime, timedelta, timezone


def as_date(value: date | datetime) -> date:
    """Date-only view of a date or datetime, UTC-anchored."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def month_start(value: date | datetime) -> date:
    d = as_date(value)
    return date(d.year, d.month, 1)


def add_months(month: date, count: int) -> date:
    """Shift a month key by ``count`` months (negative allowed)."""
    index = month.year * 12 + (month.month - 1) + count
    return date(index // 12, index % 12 + 1, 1)


def months_between(start: date, end: date) -> int:
    """Whole months from ``start``'s month to ``end``'s month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def iter_months(first: date, last: date) -> Iterator[date]:
    """Every month key from ``first`` to ``last``, both inclusive."""
    current = month_start(first)
    last = month_start(last)
    while current <= last:
        yield current
        current = add_months(current, 1)


def last_day_before(end: date) -> date:
    return end - timedelta(days=1)


def month_label(month: date) -> str:
    return f"{month.year}-{month.month:02d}"
