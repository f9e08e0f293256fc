"""
SQL Connector — read the ledger from any SQL database.

Works with PostgreSQL, MySQL, SQLite, SQL Server, etc. via SQLAlchemy.
Expects a cash-flow table (``cash_flows``) and an account table
(``cash_accounts``); both names are configurable.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any

import pandas as pd
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from cashwatch.connectors.base import ALL_ACCOUNTS, BaseConnector
from cashwatch.errors import CashWatchError, NotFoundError
from cashwatch.models.financial import Account

logger = logging.getLogger("cashwatch.connectors.sql")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SQLConnector(BaseConnector):
    """Read ledger rows from a SQL database.

    Uses SQLAlchemy for broad database compatibility.

    Usage::

        connector = SQLConnector(
            credentials={"connection_string": "postgresql://..."},
            flows_table="cash_flows",
        )
        rows = await connector.fetch_transactions("3", start=date(2025, 1, 1))
    """

    name = "sql"
    description = "Read a cash ledger from SQL databases"

    def __init__(
        self,
        credentials: dict[str, Any] | None = None,
        **options: Any,
    ) -> None:
        super().__init__(credentials, **options)
        self.connection_string = (credentials or {}).get("connection_string", "")
        self.flows_table = _identifier(options.get("flows_table", "cash_flows"))
        self.accounts_table = _identifier(options.get("accounts_table", "cash_accounts"))
        self.account_column = _identifier(options.get("account_column", "cash_account_id"))
        self._engine: Engine | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = create_engine(self.connection_string)
        return self._engine

    async def fetch_transactions(
        self,
        account_id: str = ALL_ACCOUNTS,
        start: date | None = None,
        end: date | None = None,
    ) -> list[dict[str, Any]]:
        """Select the cash-flow rows for ``account_id`` in ``[start, end)``."""
        clauses: list[str] = []
        params: dict[str, Any] = {}
        if account_id != ALL_ACCOUNTS:
            clauses.append(f"{self.account_column} = :account_id")
            params["account_id"] = account_id
        if start is not None:
            clauses.append("date >= :start")
            params["start"] = start.isoformat()
        if end is not None:
            clauses.append("date < :end")
            params["end"] = end.isoformat()

        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        query = f"SELECT * FROM {self.flows_table}{where} ORDER BY date"

        with self.engine.connect() as conn:
            df = pd.read_sql(text(query), conn, params=params)

        df.columns = df.columns.str.strip()
        records = df.astype(object).where(df.notna(), None).to_dict(orient="records")
        logger.info("Pulled %d ledger rows from %s", len(records), self.flows_table)
        return records

    async def fetch_account(self, account_id: str) -> Account:
        query = f"SELECT id, name, current_balance FROM {self.accounts_table} WHERE id = :id"
        with self.engine.connect() as conn:
            row = conn.execute(text(query), {"id": account_id}).mappings().first()
        if row is None:
            raise NotFoundError("account", account_id)
        return _account(row)

    async def list_accounts(self) -> list[Account]:
        query = f"SELECT id, name, current_balance FROM {self.accounts_table} ORDER BY id"
        with self.engine.connect() as conn:
            rows = conn.execute(text(query)).mappings().all()
        return [_account(r) for r in rows]

    async def validate_credentials(self) -> bool:
        """Test database connectivity."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False


def _identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise CashWatchError(f"Invalid SQL identifier: {name!r}")
    return name


def _account(row: Any) -> Account:
    return Account(
        id=str(row["id"]),
        name=row["name"] or "",
        current_balance=str(row["current_balance"] or 0),
    )
