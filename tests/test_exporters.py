"""Tests for the Markdown exporter and the monthly balance cache."""

from datetime import date
from decimal import Decimal

import pytest

from cashwatch.analyzers.aggregator import MonthBucket
from cashwatch.analyzers.balances import build_balances
from cashwatch.analyzers.cashflow import CashFlowForecast, CashFlowForecaster
from cashwatch.analyzers.normalizer import NormalizationReport
from cashwatch.cache import MonthlyBalanceCache
from cashwatch.exporters.markdown import money, render_markdown


def _forecast(on_error: str = "raise") -> CashFlowForecast:
    rows = [
        {"date": "2025-01-01", "type": "in", "amount": 500_000, "category": "初期値"},
        {"date": "2025-01-15", "type": "in", "amount": 100_000},
        {"date": "2025-01-20", "type": "out", "amount": 150_000},
        {"date": "2025-02-15", "type": "in", "amount": 100_000},
        {"date": "2025-02-20", "type": "out", "amount": 150_000},
    ]
    if on_error == "skip":
        rows.append({"date": "someday", "type": "in", "amount": 1})
    return CashFlowForecaster.analyze(rows, as_of=date(2025, 3, 5), on_error=on_error)


class TestMoney:
    def test_rounds_half_up(self) -> None:
        assert money(Decimal("1234.5")) == "1,235"
        assert money(Decimal("-1234.5")) == "-1,235"
        assert money(Decimal("999.49"), "JPY") == "999 JPY"


class TestMarkdownExport:
    def test_renders_sections(self) -> None:
        md = render_markdown(_forecast(), currency="JPY")

        assert "# Cash Flow Forecast" in md
        assert "*As of: 2025-03-05*" in md
        assert "## Summary" in md
        assert "| **Current balance** | 400,000 JPY |" in md
        assert "## History" in md
        assert "| 2025-01 | 100,000 | 150,000 | -50,000 | 450,000 |" in md
        assert "## Projection" in md
        assert "## Skipped records" not in md

    def test_marks_shortfall_row(self) -> None:
        md = render_markdown(_forecast())
        # 400k at -50k/month: zero in month 8, short in month 9
        assert "| 9 | 2025-12 | -50,000 | -50,000 ⚠️ |" in md
        assert "| **Shortfall month** | 2025-12 |" in md

    def test_lists_skipped_records(self) -> None:
        md = render_markdown(_forecast(on_error="skip"), title="Q1")
        assert md.startswith("# Q1")
        assert "## Skipped records" in md
        assert "- Record 5: date: not a calendar date" in md

    def test_requires_projection(self) -> None:
        with pytest.raises(ValueError):
            render_markdown(CashFlowForecast(as_of=date(2025, 1, 1), ledger=NormalizationReport()))


class TestMonthlyBalanceCache:
    def test_refresh_is_last_write_wins(self) -> None:
        cache = MonthlyBalanceCache()
        buckets = [MonthBucket(date(2025, 1, 1), Decimal("10"), Decimal("4"))]

        assert cache.refresh("1", buckets, build_balances(buckets, 100)) == 1
        cache.refresh("1", buckets, build_balances(buckets, 200))

        assert len(cache) == 1
        assert cache.get("1", date(2025, 1, 1)).balance == Decimal("206")
        assert cache.get("1", date(2025, 1, 1)).net == Decimal("6")

    def test_length_mismatch(self) -> None:
        cache = MonthlyBalanceCache()
        buckets = [MonthBucket(date(2025, 1, 1))]
        with pytest.raises(ValueError):
            cache.refresh("1", buckets, build_balances([], 0))

    def test_invalidate_one_account(self) -> None:
        cache = MonthlyBalanceCache()
        buckets = [MonthBucket(date(2025, 1, 1))]
        cache.refresh("1", buckets, build_balances(buckets))
        cache.refresh("2", buckets, build_balances(buckets))

        cache.invalidate("1")
        assert cache.rows("1") == []
        assert len(cache.rows("2")) == 1
