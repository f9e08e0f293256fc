"""
CashWatch — cash-flow projection and shortfall warnings for small businesses.

Ledger in, monthly balances and a safe / warn / danger outlook out.
"""

__version__ = "0.3.0"
__all__ = ["CashFlowForecaster", "CashWatch", "CashWatchConfig"]

from cashwatch.analyzers.cashflow import CashFlowForecaster  # noqa: E402
from cashwatch.config import CashWatchConfig  # noqa: E402
from cashwatch.pilot import CashWatch  # noqa: E402
