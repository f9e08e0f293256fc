"""
Base connector — abstract interface to the external ledger store.

Connectors are the only place CashWatch performs I/O. They return raw ledger
rows (field names as the source spells them) and account records; turning
rows into canonical transactions is the normalizer's job.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from cashwatch.analyzers.normalizer import peek, peek_date
from cashwatch.models.financial import Account

ALL_ACCOUNTS = "all"


class BaseConnector(ABC):
    """Abstract base class for all ledger connectors.

    To create a new connector, subclass this and implement:
    - `name`: Unique connector identifier.
    - `fetch_transactions()`: Raw ledger rows for an account (or ``"all"``).
    - `fetch_account()`: Account record, raising ``NotFoundError`` if unknown.
    - `validate_credentials()`: Check the source is reachable.

    Example::

        class MyBankConnector(BaseConnector):
            name = "my_bank"

            async def fetch_transactions(self, account_id, start=None, end=None):
                ...

            async def fetch_account(self, account_id):
                ...

            async def validate_credentials(self) -> bool:
                ...
    """

    name: str = "base"
    description: str = "Base connector"

    def __init__(self, credentials: dict[str, Any] | None = None, **options: Any) -> None:
        self.credentials = credentials or {}
        self.options = options

    @abstractmethod
    async def fetch_transactions(
        self,
        account_id: str = ALL_ACCOUNTS,
        start: date | None = None,
        end: date | None = None,
    ) -> list[dict[str, Any]]:
        """Return every raw ledger row for ``account_id`` dated in ``[start, end)``.

        Pagination is the connector's concern; the result is the full set.
        """
        ...

    @abstractmethod
    async def fetch_account(self, account_id: str) -> Account:
        """Return the account, raising NotFoundError when it does not exist."""
        ...

    async def list_accounts(self) -> list[Account]:
        """All accounts known to the source."""
        return []

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Validate that credentials are correct and the source is accessible."""
        ...

    async def health_check(self) -> dict[str, Any]:
        """Check connector health and connectivity."""
        try:
            valid = await self.validate_credentials()
            return {"connector": self.name, "healthy": valid, "error": None}
        except Exception as e:
            return {"connector": self.name, "healthy": False, "error": str(e)}


def filter_records(
    records: Iterable[Mapping[str, Any]],
    account_id: str = ALL_ACCOUNTS,
    start: date | None = None,
    end: date | None = None,
) -> list[dict[str, Any]]:
    """Select raw rows by account and date range.

    Rows whose date cannot be read are kept so the normalizer can report them.
    """
    selected: list[dict[str, Any]] = []
    for raw in records:
        if account_id != ALL_ACCOUNTS:
            row_account = peek(raw, "account_id")
            if row_account is None or _id_str(row_account) != str(account_id):
                continue
        d = peek_date(raw)
        if d is not None and ((start is not None and d < start) or (end is not None and d >= end)):
            continue
        selected.append(dict(raw))
    return selected


def build_accounts(entries: Iterable[Account | Mapping[str, Any]]) -> dict[str, Account]:
    """Index account records (models or plain dicts) by id."""
    accounts: dict[str, Account] = {}
    for entry in entries:
        account = entry if isinstance(entry, Account) else Account.model_validate(dict(entry))
        accounts[account.id] = account
    return accounts


def _id_str(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()
