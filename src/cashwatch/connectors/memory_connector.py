"""
Memory Connector — serve a ledger that is already loaded.

Useful when the caller has fetched (and paginated) the ledger elsewhere and
hands CashWatch the complete result, and in tests.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from cashwatch.connectors.base import ALL_ACCOUNTS, BaseConnector, build_accounts, filter_records
from cashwatch.errors import NotFoundError
from cashwatch.models.financial import Account


class MemoryConnector(BaseConnector):
    """Ledger rows and accounts held in memory.

    Usage::

        connector = MemoryConnector(
            records=[{"date": "2025-01-10", "section": "in", "amount": 1000, "cash_account_id": 1}],
            accounts=[{"id": "1", "name": "Main", "current_balance": 500_000}],
        )
    """

    name = "memory"
    description = "Ledger rows supplied in memory"

    def __init__(
        self,
        credentials: dict[str, Any] | None = None,
        records: Iterable[Mapping[str, Any]] | None = None,
        accounts: Iterable[Account | Mapping[str, Any]] | None = None,
        **options: Any,
    ) -> None:
        super().__init__(credentials, **options)
        self.records = [dict(r) for r in (records or options.get("records") or [])]
        self.accounts = build_accounts(accounts or options.get("accounts") or [])

    async def fetch_transactions(
        self,
        account_id: str = ALL_ACCOUNTS,
        start: date | None = None,
        end: date | None = None,
    ) -> list[dict[str, Any]]:
        return filter_records(self.records, account_id, start, end)

    async def fetch_account(self, account_id: str) -> Account:
        try:
            return self.accounts[str(account_id)]
        except KeyError:
            raise NotFoundError("account", account_id) from None

    async def list_accounts(self) -> list[Account]:
        return list(self.accounts.values())

    async def validate_credentials(self) -> bool:
        return True
