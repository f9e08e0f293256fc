"""
Error taxonomy shared by every stage of the forecasting pipeline.

- ``ValidationError`` — malformed ledger input, rejected at the normalizer.
- ``NotFoundError`` — unknown account or scenario, raised before any computation.
- ``ComputationError`` — invalid parameters (window, horizon, range) at a component boundary.
"""

from __future__ import annotations

from typing import Any


class CashWatchError(Exception):
    """Base class for all CashWatch errors."""


class ValidationError(CashWatchError):
    """A raw ledger record could not be turned into a Transaction."""

    def __init__(self, field: str, reason: str, *, index: int | None = None, value: Any = None) -> None:
        self.field = field
        self.reason = reason
        self.index = index
        self.value = value
        where = f"record {index}: " if index is not None else ""
        super().__init__(f"{where}{field}: {reason}")


class NotFoundError(CashWatchError):
    """A referenced account or scenario does not exist."""

    def __init__(self, kind: str, key: Any) -> None:
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")


class ComputationError(CashWatchError):
    """Invalid parameters passed to an estimator or projector."""
