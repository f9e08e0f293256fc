"""
Forward Projector — flat extrapolation of the rolling average.

Each projected month assumes the same net (average net plus any what-if
deltas). Balances are computed as ``current + assumed_net * i`` with the
assumed figures held at ten decimal places; rounding to whole units happens
only at presentation.

Also provides a day-by-day projection over planned future ledger entries.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from decimal import Decimal

from cashwatch.analyzers.estimator import AverageModel
from cashwatch.analyzers.periods import add_months, month_start
from cashwatch.analyzers.risk import RiskLevel, RiskReason, classify
from cashwatch.config import RiskPolicy
from cashwatch.errors import ComputationError
from cashwatch.models.financial import Transaction, WhatIf, to_decimal

logger = logging.getLogger("cashwatch.analyzers.projector")

# ``current + net * i`` stays exact at this scale and equals the running sum.
_SCALE = Decimal("1e-10")


@dataclass(frozen=True)
class ProjectionRow:
    index: int  # months ahead, 1-based
    month: date
    assumed_net: Decimal
    projected_balance: Decimal


@dataclass(frozen=True)
class ProjectionResult:
    """Monthly projection plus its risk classification."""

    current_balance: Decimal
    assumed_income: Decimal
    assumed_expense: Decimal
    horizon_months: int
    rows: tuple[ProjectionRow, ...] = field(default_factory=tuple)
    shortfall_index: int | None = None
    shortfall_month: date | None = None
    level: RiskLevel | None = None
    reason: RiskReason | None = None
    message: str = ""

    @property
    def assumed_net(self) -> Decimal:
        return self.assumed_income - self.assumed_expense

    @property
    def runway_months(self) -> Decimal | None:
        """Months until the balance reaches zero at the assumed net; None when not shrinking."""
        if self.assumed_net >= 0:
            return None
        if self.current_balance <= 0:
            return Decimal("0")
        return self.current_balance / -self.assumed_net

    @property
    def final_balance(self) -> Decimal:
        return self.rows[-1].projected_balance if self.rows else self.current_balance


def project(
    current_balance: Decimal | int | float,
    model: AverageModel,
    horizon_months: int,
    what_if: WhatIf | None = None,
    *,
    start_month: date | None = None,
    policy: RiskPolicy | None = None,
) -> ProjectionResult:
    """Project the balance ``horizon_months`` ahead.

    Args:
        current_balance: Balance "now".
        model: Rolling averages to extrapolate.
        horizon_months: Number of months to project (>= 1).
        what_if: Optional monthly income/expense deltas.
        start_month: Month that row ``i`` is counted from. Defaults to
            ``model.as_of_month``, so row 1 is the month after it.
        policy: Risk thresholds used to classify the result.

    Raises:
        ComputationError: ``horizon_months`` is less than 1.
    """
    if horizon_months < 1:
        raise ComputationError(f"Projection horizon must be at least 1 month, got {horizon_months}")

    what_if = what_if or WhatIf()
    current = to_decimal(current_balance)
    base = month_start(start_month) if start_month is not None else model.as_of_month
    assumed_income = (model.avg_income + what_if.delta_income).quantize(_SCALE)
    assumed_expense = (model.avg_expense + what_if.delta_expense).quantize(_SCALE)
    assumed_net = assumed_income - assumed_expense

    rows: list[ProjectionRow] = []
    shortfall_index: int | None = None
    shortfall_month: date | None = None
    for i in range(1, horizon_months + 1):
        month = add_months(base, i)
        balance = current + assumed_net * i
        if shortfall_index is None and balance < 0:
            shortfall_index, shortfall_month = i, month
        rows.append(ProjectionRow(index=i, month=month, assumed_net=assumed_net, projected_balance=balance))

    result = ProjectionResult(
        current_balance=current,
        assumed_income=assumed_income,
        assumed_expense=assumed_expense,
        horizon_months=horizon_months,
        rows=tuple(rows),
        shortfall_index=shortfall_index,
        shortfall_month=shortfall_month,
    )
    assessment = classify(current, model, result, policy)
    logger.debug(
        "Projected %d months from %s: net %s, shortfall %s, level %s",
        horizon_months,
        base,
        assumed_net,
        shortfall_month,
        assessment.level.value,
    )
    return replace(result, level=assessment.level, reason=assessment.reason, message=assessment.message)


# ------------------------------------------------------------------ #
#  Daily projection over planned entries                              #
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class DailyRow:
    day: date
    income: Decimal
    expense: Decimal
    balance: Decimal

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


@dataclass(frozen=True)
class DailyProjection:
    start: date
    days: int
    current_balance: Decimal
    rows: tuple[DailyRow, ...] = field(default_factory=tuple)
    short_date: date | None = None  # first day the balance is negative


def project_daily(
    current_balance: Decimal | int | float,
    planned: Iterable[Transaction],
    start: date,
    days: int,
) -> DailyProjection:
    """Walk ``days`` days from ``start`` applying planned entries dated in ``[start, start + days)``.

    Days with nothing planned contribute zero.

    Raises:
        ComputationError: ``days`` is less than 1.
    """
    if days < 1:
        raise ComputationError(f"Daily projection needs at least 1 day, got {days}")

    end = start + timedelta(days=days)
    by_day: dict[date, list[Decimal]] = {}
    for t in planned:
        if t.is_opening or not (start <= t.date < end):
            continue
        slot = by_day.setdefault(t.date, [Decimal("0"), Decimal("0")])
        slot[0 if t.is_income else 1] += t.amount

    balance = to_decimal(current_balance)
    short_date: date | None = None
    rows: list[DailyRow] = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        income, expense = by_day.get(day, (Decimal("0"), Decimal("0")))
        balance += income - expense
        if short_date is None and balance < 0:
            short_date = day
        rows.append(DailyRow(day=day, income=income, expense=expense, balance=balance))

    return DailyProjection(
        start=start,
        days=days,
        current_balance=to_decimal(current_balance),
        rows=tuple(rows),
        short_date=short_date,
    )
