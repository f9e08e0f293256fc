"""
Rolling Average Estimator — typical monthly income/expense from recent history.

Only months strictly before the evaluation month are used; the current
(incomplete) month never leaks into the average.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from cashwatch.analyzers.aggregator import MonthBucket
from cashwatch.analyzers.periods import month_start
from cashwatch.errors import ComputationError

logger = logging.getLogger("cashwatch.analyzers.estimator")


@dataclass(frozen=True)
class AverageModel:
    """Trailing-window averages ending just before ``as_of_month``."""

    window_months: int
    months_used: int
    as_of_month: date
    avg_income: Decimal
    avg_expense: Decimal

    @property
    def avg_net(self) -> Decimal:
        return self.avg_income - self.avg_expense


def estimate(buckets: Sequence[MonthBucket], window_months: int, as_of_month: date) -> AverageModel:
    """Average the most recent ``window_months`` buckets before ``as_of_month``.

    With fewer buckets than the window, the average is taken over those that
    exist; with none, every average is 0.

    Raises:
        ComputationError: ``window_months`` is less than 1.
    """
    if window_months < 1:
        raise ComputationError(f"Average window must be at least 1 month, got {window_months}")

    as_of = month_start(as_of_month)
    history = sorted((b for b in buckets if b.month < as_of), key=lambda b: b.month)
    window = history[-window_months:]

    divisor = max(1, len(window))
    income = sum((b.income for b in window), Decimal("0")) / divisor
    expense = sum((b.expense for b in window), Decimal("0")) / divisor

    logger.debug("Estimated averages over %d of %d requested months before %s", len(window), window_months, as_of)
    return AverageModel(
        window_months=window_months,
        months_used=len(window),
        as_of_month=as_of,
        avg_income=income,
        avg_expense=expense,
    )
