"""Tests for monthly aggregation and running balances."""

from datetime import date
from decimal import Decimal

import pytest

from cashwatch.analyzers.aggregator import MonthBucket, aggregate, merge_buckets
from cashwatch.analyzers.balances import build_balances, opening_balance
from cashwatch.analyzers.normalizer import normalize_all
from cashwatch.errors import ComputationError


def _txns(rows: list[dict]) -> list:
    return normalize_all(rows).transactions


LEDGER = [
    {"date": "2025-01-01", "type": "in", "amount": 100_000, "category": "初期値"},
    {"date": "2025-01-10", "type": "in", "amount": 50_000},
    {"date": "2025-01-20", "type": "out", "amount": 30_000},
    {"date": "2025-01-31", "type": "out", "amount": 0},
    {"date": "2025-02-01", "type": "in", "amount": 10_000},
    {"date": "2025-02-14", "type": "out", "amount": 60_000},
    {"date": "2025-04-03", "type": "in", "amount": 5_000},
]


class TestAggregate:
    def test_buckets_by_month(self) -> None:
        buckets = aggregate(_txns(LEDGER), date(2025, 1, 1), date(2025, 5, 1))

        assert [b.month for b in buckets] == [date(2025, m, 1) for m in (1, 2, 3, 4)]
        jan, feb, mar, apr = buckets
        assert (jan.income, jan.expense, jan.transaction_count) == (Decimal("50000"), Decimal("30000"), 3)
        assert feb.net == Decimal("-50000")
        assert mar == MonthBucket(month=date(2025, 3, 1))
        assert apr.income == Decimal("5000")

    def test_opening_entries_excluded(self) -> None:
        buckets = aggregate(_txns(LEDGER), date(2025, 1, 1), date(2025, 2, 1))
        assert buckets[0].income == Decimal("50000")

    def test_end_is_exclusive(self) -> None:
        buckets = aggregate(_txns(LEDGER), date(2025, 1, 1), date(2025, 2, 1))
        assert len(buckets) == 1
        assert buckets[0].month == date(2025, 1, 1)

    def test_empty_range_fills_zero_buckets(self) -> None:
        buckets = aggregate([], date(2025, 1, 1), date(2025, 4, 1))
        assert len(buckets) == 3
        assert all(b.income == 0 and b.expense == 0 for b in buckets)

    def test_start_equals_end(self) -> None:
        assert aggregate(_txns(LEDGER), date(2025, 1, 1), date(2025, 1, 1)) == []

    def test_end_before_start(self) -> None:
        with pytest.raises(ComputationError):
            aggregate(_txns(LEDGER), date(2025, 3, 1), date(2025, 1, 1))

    def test_without_gap_filling(self) -> None:
        buckets = aggregate(_txns(LEDGER), date(2025, 1, 1), date(2025, 5, 1), fill_gaps=False)
        assert [b.month.month for b in buckets] == [1, 2, 4]

    def test_default_range_spans_ledger(self) -> None:
        buckets = aggregate(_txns(LEDGER))
        assert buckets[0].month == date(2025, 1, 1)
        assert buckets[-1].month == date(2025, 4, 1)

    def test_net_sum_matches_ledger(self) -> None:
        txns = _txns(LEDGER)
        buckets = aggregate(txns, date(2025, 1, 1), date(2025, 5, 1))
        flows = sum((t.signed_amount for t in txns if not t.is_opening), Decimal("0"))
        assert sum((b.net for b in buckets), Decimal("0")) == flows

    def test_net_sum_matches_in_range_flows_only(self) -> None:
        txns = _txns(LEDGER)
        start, end = date(2025, 1, 15), date(2025, 2, 14)
        buckets = aggregate(txns, start, end)

        in_range = sum(
            (t.signed_amount for t in txns if not t.is_opening and start <= t.date < end),
            Decimal("0"),
        )
        # 01-10 is before start, 02-14 falls on end and 04-03 is after it
        assert in_range == Decimal("-20000")
        assert sum((b.net for b in buckets), Decimal("0")) == in_range
        assert [b.month for b in buckets] == [date(2025, 1, 1), date(2025, 2, 1)]

    def test_idempotent(self) -> None:
        txns = _txns(LEDGER)
        assert aggregate(txns, date(2025, 1, 1), date(2025, 5, 1)) == aggregate(
            txns, date(2025, 1, 1), date(2025, 5, 1)
        )

    def test_merge_buckets(self) -> None:
        a = [MonthBucket(date(2025, 1, 1), Decimal("10"), Decimal("5"), 2)]
        b = [
            MonthBucket(date(2025, 1, 1), Decimal("1"), Decimal("1"), 1),
            MonthBucket(date(2025, 2, 1), Decimal("3"), Decimal("0"), 1),
        ]
        merged = merge_buckets(a, b)
        assert merged[0] == MonthBucket(date(2025, 1, 1), Decimal("11"), Decimal("6"), 3)
        assert merged[1].month == date(2025, 2, 1)


class TestBalances:
    def test_running_balance(self) -> None:
        buckets = [
            MonthBucket(date(2025, 1, 1), income=Decimal("20000")),
            MonthBucket(date(2025, 2, 1), expense=Decimal("50000")),
        ]
        series = build_balances(buckets, 100_000)
        assert [p.balance for p in series.points] == [Decimal("120000"), Decimal("70000")]
        assert series.closing_balance == Decimal("70000")

    def test_one_point_per_bucket(self) -> None:
        buckets = aggregate([], date(2025, 1, 1), date(2025, 7, 1))
        series = build_balances(buckets, 1)
        assert len(series) == len(buckets) == 6
        assert set(series.as_dict().values()) == {Decimal("1")}

    def test_empty_series_closes_at_opening(self) -> None:
        series = build_balances([], Decimal("42"))
        assert series.closing_balance == Decimal("42")

    def test_opening_balance(self) -> None:
        txns = _txns(
            LEDGER
            + [{"date": "2025-01-01", "type": "out", "amount": 2_000, "category": "opening balance"}]
        )
        assert opening_balance(txns) == Decimal("98000")
