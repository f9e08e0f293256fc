"""
Running Balance Builder — fold monthly nets into cumulative balances.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from cashwatch.analyzers.aggregator import MonthBucket
from cashwatch.models.financial import Transaction, to_decimal


@dataclass(frozen=True)
class BalancePoint:
    month: date
    balance: Decimal


@dataclass(frozen=True)
class BalanceSeries:
    """Month-end balances seeded by the opening balance."""

    opening: Decimal = Decimal("0")
    points: tuple[BalancePoint, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.points)

    @property
    def closing_balance(self) -> Decimal:
        return self.points[-1].balance if self.points else self.opening

    def as_dict(self) -> dict[date, Decimal]:
        return {p.month: p.balance for p in self.points}


def opening_balance(transactions: Iterable[Transaction]) -> Decimal:
    """Signed sum of all opening-balance entries."""
    return sum((t.signed_amount for t in transactions if t.is_opening), Decimal("0"))


def build_balances(buckets: Sequence[MonthBucket], opening: Decimal | int | float = 0) -> BalanceSeries:
    """``balance[0] = opening + net[0]``; each later month adds its own net.

    Exactly one point per bucket, in the buckets' order.
    """
    opening = to_decimal(opening)
    running = opening
    points: list[BalancePoint] = []
    for b in buckets:
        running += b.net
        points.append(BalancePoint(month=b.month, balance=running))
    return BalanceSeries(opening=opening, points=tuple(points))
