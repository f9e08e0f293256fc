"""
Materialised monthly balances.

An optional view over the ledger: rows are recomputed from transactions and
upserted, never edited by hand. Refreshing the same (account, month) twice,
or from two concurrent evaluations, converges on the same value because it
is a pure function of the ledger; the last write wins.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from cashwatch.analyzers.aggregator import MonthBucket
from cashwatch.analyzers.balances import BalanceSeries

logger = logging.getLogger("cashwatch.cache")


@dataclass(frozen=True)
class CachedMonth:
    account_id: str
    month: date
    income: Decimal
    expense: Decimal
    balance: Decimal

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


class MonthlyBalanceCache:
    """In-process store of per-account monthly income, expense and balance."""

    def __init__(self) -> None:
        self._rows: dict[tuple[str, date], CachedMonth] = {}

    def __len__(self) -> int:
        return len(self._rows)

    def upsert(self, row: CachedMonth) -> None:
        self._rows[(row.account_id, row.month)] = row

    def refresh(self, account_id: str, buckets: Sequence[MonthBucket], balances: BalanceSeries) -> int:
        """Recompute and upsert one row per bucket. Returns the number of rows written."""
        if len(buckets) != len(balances):
            raise ValueError("buckets and balances must be the same length")
        for bucket, point in zip(buckets, balances.points):
            self.upsert(
                CachedMonth(
                    account_id=str(account_id),
                    month=bucket.month,
                    income=bucket.income,
                    expense=bucket.expense,
                    balance=point.balance,
                )
            )
        logger.debug("Refreshed %d cached months for account %s", len(buckets), account_id)
        return len(buckets)

    def get(self, account_id: str, month: date) -> CachedMonth | None:
        return self._rows.get((str(account_id), month))

    def rows(self, account_id: str) -> list[CachedMonth]:
        key = str(account_id)
        return sorted((r for r in self._rows.values() if r.account_id == key), key=lambda r: r.month)

    def buckets(self, account_id: str) -> list[MonthBucket]:
        """Cached rows as buckets, ready for the estimator."""
        return [MonthBucket(month=r.month, income=r.income, expense=r.expense) for r in self.rows(account_id)]

    def invalidate(self, account_id: str | None = None) -> None:
        if account_id is None:
            self._rows.clear()
            return
        key = str(account_id)
        for k in [k for k in self._rows if k[0] == key]:
            del self._rows[k]
