"""Data models."""
from cashwatch.models.financial import (
    Account,
    Direction,
    Scenario,
    Transaction,
    TransactionSource,
    WhatIf,
)

__all__ = [
    "Account",
    "Direction",
    "Scenario",
    "Transaction",
    "TransactionSource",
    "WhatIf",
]
