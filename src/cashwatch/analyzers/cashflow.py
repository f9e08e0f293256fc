"""
Cash Flow Forecaster — the full pipeline over one ledger snapshot.

Runs, in order:
1. **Normalize** raw rows into canonical transactions.
2. **Aggregate** them into gap-free monthly buckets.
3. **Build balances** from the opening balance.
4. **Estimate** rolling-average income/expense before the evaluation month.
5. **Project** the balance forward and detect the first shortfall month.
6. **Classify** the result as safe / warn / danger.

Pure: no I/O, no shared state. The same inputs always give the same forecast.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any

from cashwatch.analyzers.aggregator import MonthBucket, aggregate
from cashwatch.analyzers.balances import BalanceSeries, build_balances, opening_balance
from cashwatch.analyzers.estimator import AverageModel, estimate
from cashwatch.analyzers.normalizer import (
    DEFAULT_OPENING_CATEGORIES,
    NormalizationReport,
    OnError,
    normalize_all,
)
from cashwatch.analyzers.periods import add_months, month_label, month_start
from cashwatch.analyzers.projector import ProjectionResult, project
from cashwatch.config import RiskPolicy
from cashwatch.models.financial import Scenario, Transaction, WhatIf, to_decimal

logger = logging.getLogger("cashwatch.analyzers.cashflow")


@dataclass
class CashFlowForecast:
    """Complete cash flow analysis and forecast."""

    as_of: date
    ledger: NormalizationReport
    buckets: list[MonthBucket] = field(default_factory=list)
    balances: BalanceSeries = field(default_factory=BalanceSeries)
    model: AverageModel | None = None
    projection: ProjectionResult | None = None
    summary: str = ""

    @property
    def current_balance(self) -> Decimal:
        return self.projection.current_balance if self.projection else self.balances.closing_balance


class CashFlowForecaster:
    """Project future cash position from a ledger snapshot."""

    WINDOW_MONTHS = 6
    HORIZON_MONTHS = 12

    @classmethod
    def analyze(
        cls,
        records: Iterable[Mapping[str, Any] | Transaction],
        current_balance: Decimal | int | float | None = None,
        *,
        as_of: date | None = None,
        start: date | None = None,
        end: date | None = None,
        window_months: int = WINDOW_MONTHS,
        horizon_months: int = HORIZON_MONTHS,
        what_if: WhatIf | None = None,
        scenario: Scenario | None = None,
        policy: RiskPolicy | None = None,
        on_error: OnError = "raise",
        opening_categories: Iterable[str] = DEFAULT_OPENING_CATEGORIES,
    ) -> CashFlowForecast:
        """Run the forecasting pipeline.

        Args:
            records: Raw ledger rows or Transactions (actual and planned).
            current_balance: Balance "now". Defaults to the opening balance
                plus every flow dated on or before ``as_of``.
            as_of: Evaluation date; its month is treated as incomplete.
                Defaults to today.
            start: First date aggregated, never earlier than the first entry.
                Defaults to the earliest entry.
            end: First date excluded. Defaults to the later of the day after
                the latest entry and the start of the month after ``as_of``.
            window_months: Trailing months averaged (>= 1).
            horizon_months: Months projected ahead (>= 1).
            what_if: Monthly income/expense deltas.
            scenario: Named what-if set; replaces ``what_if`` and
                ``horizon_months`` with its own assumed figures.
            policy: Risk thresholds.
            on_error: ``"raise"`` aborts on the first bad record, ``"skip"``
                logs and drops it.
            opening_categories: Category names marking opening-balance rows.

        Returns:
            CashFlowForecast with buckets, balances, averages and projection.
        """
        if scenario is not None and what_if is not None:
            raise ValueError("Pass either what_if or scenario, not both")
        as_of = as_of or date.today()
        as_of_month = month_start(as_of)

        ledger = normalize_all(records, on_error=on_error, opening_categories=opening_categories)
        transactions = ledger.transactions
        flows = [t for t in transactions if not t.is_opening]

        if end is None:
            end = add_months(as_of_month, 1)
            if flows:
                latest = max(t.date for t in flows)
                end = max(end, latest + timedelta(days=1))
        # History never starts before the first entry; empty months before the
        # business existed would otherwise dilute the rolling average.
        first = min((t.date for t in flows), default=as_of_month)
        start = first if start is None else max(start, first)
        if start > end:
            start = end

        buckets = aggregate(transactions, start, end, fill_gaps=True)
        # Flows before the range are carried into the seed so balances stay true.
        carried = sum((t.signed_amount for t in flows if t.date < start), Decimal("0"))
        balances = build_balances(buckets, opening_balance(transactions) + carried)
        model = estimate(buckets, window_months, as_of_month)

        if scenario is not None:
            what_if = scenario.to_what_if(model)
            horizon_months = scenario.horizon_months

        if current_balance is None:
            # Entries dated after ``as_of`` are planned; they are in the history, not in the account.
            current = opening_balance(transactions) + sum(
                (t.signed_amount for t in flows if t.date <= as_of), Decimal("0")
            )
        else:
            current = to_decimal(current_balance)
        projection = project(
            current,
            model,
            horizon_months,
            what_if,
            start_month=as_of_month,
            policy=policy,
        )

        logger.info(
            "Forecast as of %s: %d months history, level=%s, shortfall=%s",
            as_of,
            len(buckets),
            projection.level.value if projection.level else None,
            projection.shortfall_month,
        )

        forecast = CashFlowForecast(
            as_of=as_of,
            ledger=ledger,
            buckets=buckets,
            balances=balances,
            model=model,
            projection=projection,
        )
        forecast.summary = cls._build_summary(forecast)
        return forecast

    @staticmethod
    def _build_summary(forecast: CashFlowForecast) -> str:
        model = forecast.model
        projection = forecast.projection
        assert model is not None and projection is not None

        lines = [
            f"Cash Flow Forecast ({len(forecast.buckets)} months history → {projection.horizon_months} months projection):",
            f"  Current balance: {projection.current_balance:,.0f}",
            f"  Avg monthly income ({model.months_used} mo): {model.avg_income:,.0f}",
            f"  Avg monthly expense ({model.months_used} mo): {model.avg_expense:,.0f}",
            f"  Assumed monthly net: {projection.assumed_net:,.0f}",
        ]

        runway = projection.runway_months
        if runway is None:
            lines.append("  Runway: Cash positive (income covers expenses)")
        else:
            lines.append(f"  Runway: {runway:.1f} months")

        lines.append(f"  Projected balance ({month_label(projection.rows[-1].month)}): {projection.final_balance:,.0f}")
        if projection.shortfall_month:
            lines.append(f"  Shortfall month: {month_label(projection.shortfall_month)}")
        lines.append(f"  Risk: {projection.level.value.upper() if projection.level else '?'} — {projection.message}")

        if forecast.ledger.rejected:
            lines.append(f"  Skipped records: {len(forecast.ledger.rejected)}")
        if forecast.ledger.flagged:
            lines.append(f"  Records with missing amounts: {len(forecast.ledger.flagged)}")

        return "\n".join(lines)
