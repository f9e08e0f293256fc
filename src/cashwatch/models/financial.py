"""
Financial data models — ledger transactions, cash accounts, what-if parameters.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from cashwatch.analyzers.estimator import AverageModel


class Direction(str, Enum):
    """Which way the money moves."""

    IN = "in"
    OUT = "out"


class TransactionSource(str, Enum):
    """Where a ledger entry came from."""

    MANUAL = "manual"
    IMPORTED = "imported"
    OPENING = "opening"


class Transaction(BaseModel):
    """A single canonical ledger entry.

    ``amount`` is always non-negative; the sign comes from ``direction``.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    date: date
    direction: Direction
    amount: Decimal = Field(ge=0)
    account_id: str | None = None
    category_id: str | None = None
    category_name: str | None = None
    source: TransactionSource = TransactionSource.MANUAL
    description: str = ""
    amount_flagged: bool = False  # amount was missing/non-finite and coerced to 0

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.direction == Direction.IN else -self.amount

    @property
    def is_opening(self) -> bool:
        return self.source == TransactionSource.OPENING

    @property
    def is_income(self) -> bool:
        return self.direction == Direction.IN

    @property
    def is_expense(self) -> bool:
        return self.direction == Direction.OUT


class Account(BaseModel):
    """A cash account as reported by the ledger store."""

    id: str
    name: str = ""
    current_balance: Decimal = Decimal("0")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: object) -> object:
        return str(v) if isinstance(v, int) else v


class WhatIf(BaseModel):
    """Hypothetical monthly adjustments applied on top of the rolling average."""

    model_config = ConfigDict(frozen=True)

    delta_income: Decimal = Decimal("0")
    delta_expense: Decimal = Decimal("0")

    @property
    def delta_net(self) -> Decimal:
        return self.delta_income - self.delta_expense


class Scenario(BaseModel):
    """A named what-if parameter set kept in the scenario store."""

    name: str
    assumed_income: Decimal = Decimal("0")
    assumed_expense: Decimal = Decimal("0")
    horizon_months: int = 12

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("scenario name is empty")
        return v

    @field_validator("assumed_income", "assumed_expense")
    @classmethod
    def _floor_amount(cls, v: Decimal) -> Decimal:
        return max(Decimal("0"), Decimal(int(v)))

    @field_validator("horizon_months")
    @classmethod
    def _floor_horizon(cls, v: int) -> int:
        return max(1, int(v))

    def to_what_if(self, model: AverageModel) -> WhatIf:
        """Deltas that turn the model's averages into this scenario's assumed figures."""
        return WhatIf(
            delta_income=self.assumed_income - model.avg_income,
            delta_expense=self.assumed_expense - model.avg_expense,
        )


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Decimal from a number, going through ``str`` for floats to avoid binary noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)
