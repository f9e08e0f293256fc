"""
Monthly Aggregator — bucket ledger entries into calendar months.

Month keys are taken from the date-only transaction date, so a row dated
``2025-03-31`` always lands in March regardless of the host timezone.
Opening-balance entries seed the running balance and are left out of the
monthly income/expense flow.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from cashwatch.analyzers.periods import iter_months, last_day_before, month_start
from cashwatch.errors import ComputationError
from cashwatch.models.financial import Transaction

logger = logging.getLogger("cashwatch.analyzers.aggregator")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class MonthBucket:
    """Income and expense totals for one calendar month."""

    month: date  # first day of month
    income: Decimal = _ZERO
    expense: Decimal = _ZERO
    transaction_count: int = 0

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


def aggregate(
    transactions: Iterable[Transaction],
    start: date | None = None,
    end: date | None = None,
    *,
    fill_gaps: bool = True,
) -> list[MonthBucket]:
    """Group transactions into monthly buckets over ``[start, end)``.

    Args:
        transactions: Canonical ledger entries, in insertion order.
        start: First date included. Defaults to the earliest non-opening entry.
        end: First date excluded. Defaults to the day after the latest entry.
        fill_gaps: Emit a zero bucket for every month of the range that has
            no flow. When False only months with flow are returned.

    Returns:
        Buckets sorted ascending by month.

    Raises:
        ComputationError: ``end`` is before ``start``.
    """
    flows = [t for t in transactions if not t.is_opening]

    if start is None or end is None:
        if not flows:
            return []
        dates = [t.date for t in flows]
        start = start if start is not None else min(dates)
        end = end if end is not None else max(dates) + timedelta(days=1)

    if end < start:
        raise ComputationError(f"Range end {end} is before start {start}")
    if end == start:
        return []

    totals: dict[date, list] = {}
    for t in flows:
        if not (start <= t.date < end):
            continue
        key = month_start(t.date)
        slot = totals.setdefault(key, [_ZERO, _ZERO, 0])
        if t.is_income:
            slot[0] += t.amount
        else:
            slot[1] += t.amount
        slot[2] += 1

    if fill_gaps:
        months: Iterable[date] = iter_months(start, last_day_before(end))
    else:
        months = sorted(totals)

    buckets = [
        MonthBucket(month=m, income=totals[m][0], expense=totals[m][1], transaction_count=totals[m][2])
        if m in totals
        else MonthBucket(month=m)
        for m in months
    ]
    logger.debug("Aggregated %d transactions into %d monthly buckets", len(flows), len(buckets))
    return buckets


def merge_buckets(*series: Sequence[MonthBucket]) -> list[MonthBucket]:
    """Sum several bucket series month by month (e.g. across an account set)."""
    merged: dict[date, MonthBucket] = {}
    for buckets in series:
        for b in buckets:
            cur = merged.get(b.month)
            if cur is None:
                merged[b.month] = b
            else:
                merged[b.month] = MonthBucket(
                    month=b.month,
                    income=cur.income + b.income,
                    expense=cur.expense + b.expense,
                    transaction_count=cur.transaction_count + b.transaction_count,
                )
    return [merged[m] for m in sorted(merged)]
