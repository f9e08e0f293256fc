"""
CSV Connector — read a ledger from CSV files.

This is the simplest connector and the easiest way to get started.
Any CSV with a date column, an amount column and (optionally) a
direction column works; the normalizer resolves the field spellings.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Any

import pandas as pd

from cashwatch.analyzers.normalizer import peek
from cashwatch.connectors.base import ALL_ACCOUNTS, BaseConnector, build_accounts, filter_records
from cashwatch.errors import NotFoundError
from cashwatch.models.financial import Account

logger = logging.getLogger("cashwatch.connectors.csv")


class CSVConnector(BaseConnector):
    """Read ledger rows from a CSV file.

    Usage::

        connector = CSVConnector(file_path="ledger.csv", accounts_file="accounts.csv")
        rows = await connector.fetch_transactions("1")

    Accounts come from ``accounts_file`` (columns ``id, name, current_balance``),
    an ``accounts`` option (list of dicts), or a single ``account_id`` /
    ``current_balance`` option pair. Rows without an account column are
    attributed to ``account_id`` when one is configured.
    """

    name = "csv"
    description = "Read a cash ledger from CSV files"

    def __init__(
        self,
        credentials: dict[str, Any] | None = None,
        file_path: str | None = None,
        **options: Any,
    ) -> None:
        super().__init__(credentials, **options)
        # file_path can come from: direct param, options, or credentials
        creds = credentials or {}
        self.file_path = (
            file_path
            or options.get("file_path")
            or creds.get("file_path", "")
        )
        self.encoding = options.get("encoding", "utf-8")
        self.delimiter = options.get("delimiter", ",")
        self.accounts_file = options.get("accounts_file")
        self.default_account = options.get("account_id")
        self._accounts: dict[str, Account] | None = None

    async def fetch_transactions(
        self,
        account_id: str = ALL_ACCOUNTS,
        start: date | None = None,
        end: date | None = None,
    ) -> list[dict[str, Any]]:
        """Read the file and return the rows for ``account_id`` in ``[start, end)``."""
        path = Path(self.file_path)
        if not path.exists():
            raise FileNotFoundError(f"CSV file not found: {self.file_path}")

        records = self._read_records(path)
        if self.default_account is not None:
            for r in records:
                if peek(r, "account_id") is None:
                    r["account_id"] = str(self.default_account)

        selected = filter_records(records, account_id, start, end)
        logger.info("Read %d ledger rows from %s (%d selected)", len(records), path.name, len(selected))
        return selected

    async def fetch_account(self, account_id: str) -> Account:
        accounts = self._load_accounts()
        try:
            return accounts[str(account_id)]
        except KeyError:
            raise NotFoundError("account", account_id) from None

    async def list_accounts(self) -> list[Account]:
        return list(self._load_accounts().values())

    async def validate_credentials(self) -> bool:
        """Check if the CSV file exists and is readable."""
        path = Path(self.file_path)
        return path.exists() and path.is_file()

    def _read_records(self, path: Path) -> list[dict[str, Any]]:
        # Everything as text: the normalizer handles zero padding and grouping commas.
        df = pd.read_csv(
            path,
            encoding=self.encoding,
            delimiter=self.delimiter,
            dtype=str,
            keep_default_na=False,
        )
        df.columns = df.columns.str.strip()
        return df.to_dict(orient="records")

    def _load_accounts(self) -> dict[str, Account]:
        if self._accounts is not None:
            return self._accounts

        entries: list[dict[str, Any]] = list(self.options.get("accounts") or [])
        if self.accounts_file:
            path = Path(self.accounts_file)
            if not path.exists():
                raise FileNotFoundError(f"Accounts file not found: {self.accounts_file}")
            df = pd.read_csv(path, encoding=self.encoding, dtype=str, keep_default_na=False)
            df.columns = df.columns.str.strip().str.lower()
            entries.extend(df.to_dict(orient="records"))
        if not entries and self.default_account is not None:
            entries.append(
                {
                    "id": str(self.default_account),
                    "name": self.options.get("account_name", ""),
                    "current_balance": self.options.get("current_balance", 0),
                }
            )

        self._accounts = build_accounts(entries)
        return self._accounts
