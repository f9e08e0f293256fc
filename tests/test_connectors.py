"""Tests for ledger connectors and the connector registry."""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import create_engine, text

from cashwatch.analyzers.normalizer import normalize_all
from cashwatch.config import CashWatchConfig, ConnectorConfig
from cashwatch.connectors.csv_connector import CSVConnector
from cashwatch.connectors.memory_connector import MemoryConnector
from cashwatch.connectors.registry import ConnectorRegistry
from cashwatch.connectors.sql_connector import SQLConnector
from cashwatch.connectors.zengin_connector import ZenginConnector, parse_zengin_date
from cashwatch.errors import CashWatchError, NotFoundError
from cashwatch.models.financial import Direction, TransactionSource

SAMPLE_CSV = """date,section,amount,category,description
2025-01-01,in,"100,000",初期値,Opening
2025-01-15,in,"120,000",Sales,January sales
2025-01-25,out,"80,000",Rent,Office rent
2025-02-15,in,"90,000",Sales,February sales
"""


@pytest.fixture
def csv_file(tmp_path: Path) -> str:
    file = tmp_path / "ledger.csv"
    file.write_text(SAMPLE_CSV, encoding="utf-8")
    return str(file)


def _zengin_line(record_type: str, when: str = "", kubun: str = "", amount: str = "", memo: str = "") -> str:
    cells = [""] * 16
    cells[0] = record_type
    cells[2] = when
    cells[4] = kubun
    cells[6] = amount
    cells[14] = memo
    return ",".join(cells)


@pytest.fixture
def zengin_file(tmp_path: Path) -> str:
    lines = [
        _zengin_line("1", memo="ﾗｸﾃﾝｷﾞﾝｺｳ"),
        _zengin_line("2", "070310", "1", "000000120000", "ｶ)ﾔﾏﾀﾞｼｮｳｼﾞ"),
        _zengin_line("2", "070325", "2", "000000045000", "ﾔﾁﾝ"),
        _zengin_line("8"),
    ]
    file = tmp_path / "rakuten.csv"
    file.write_bytes("\n".join(lines).encode("shift_jis"))
    return str(file)


class TestMemoryConnector:
    RECORDS = [
        {"date": "2025-01-10", "section": "in", "amount": 1000, "cash_account_id": 1},
        {"date": "2025-02-10", "section": "out", "amount": 400, "cash_account_id": 1},
        {"date": "2025-02-11", "section": "out", "amount": 50, "cash_account_id": 2},
        {"date": "garbage", "section": "out", "amount": 50, "cash_account_id": 1},
    ]

    @pytest.mark.asyncio
    async def test_filters_by_account_and_range(self) -> None:
        connector = MemoryConnector(records=self.RECORDS)

        assert len(await connector.fetch_transactions()) == 4
        assert len(await connector.fetch_transactions("2")) == 1
        # undated rows are kept for the normalizer to reject
        selected = await connector.fetch_transactions("1", start=date(2025, 2, 1), end=date(2025, 3, 1))
        assert [r["date"] for r in selected] == ["2025-02-10", "garbage"]

    @pytest.mark.asyncio
    async def test_accounts(self) -> None:
        connector = MemoryConnector(accounts=[{"id": 1, "name": "Main", "current_balance": 500_000}])

        account = await connector.fetch_account("1")
        assert account.name == "Main"
        assert account.current_balance == Decimal("500000")
        assert len(await connector.list_accounts()) == 1
        with pytest.raises(NotFoundError):
            await connector.fetch_account("99")

    @pytest.mark.asyncio
    async def test_health_check(self) -> None:
        health = await MemoryConnector().health_check()
        assert health == {"connector": "memory", "healthy": True, "error": None}


class TestCSVConnector:
    @pytest.mark.asyncio
    async def test_read_rows(self, csv_file: str) -> None:
        connector = CSVConnector(file_path=csv_file)
        rows = await connector.fetch_transactions()

        assert len(rows) == 4
        report = normalize_all(rows)
        assert report.transactions[0].is_opening
        assert report.transactions[1].amount == Decimal("120000")
        assert report.transactions[2].direction == Direction.OUT

    @pytest.mark.asyncio
    async def test_default_account(self, csv_file: str) -> None:
        connector = CSVConnector(file_path=csv_file, account_id="1", current_balance=650_000)

        assert len(await connector.fetch_transactions("1")) == 4
        assert await connector.fetch_transactions("2") == []
        account = await connector.fetch_account("1")
        assert account.current_balance == Decimal("650000")
        with pytest.raises(NotFoundError):
            await connector.fetch_account("2")

    @pytest.mark.asyncio
    async def test_date_range(self, csv_file: str) -> None:
        connector = CSVConnector(file_path=csv_file)
        rows = await connector.fetch_transactions(start=date(2025, 1, 10), end=date(2025, 2, 1))
        assert [r["description"] for r in rows] == ["January sales", "Office rent"]

    @pytest.mark.asyncio
    async def test_accounts_file(self, csv_file: str, tmp_path: Path) -> None:
        accounts = tmp_path / "accounts.csv"
        accounts.write_text("id,name,current_balance\n1,Main,500000\n2,Savings,2000000\n")
        connector = CSVConnector(file_path=csv_file, accounts_file=str(accounts))

        listed = await connector.list_accounts()
        assert [a.id for a in listed] == ["1", "2"]
        assert (await connector.fetch_account("2")).current_balance == Decimal("2000000")

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path: Path) -> None:
        connector = CSVConnector(file_path=str(tmp_path / "missing.csv"))
        with pytest.raises(FileNotFoundError):
            await connector.fetch_transactions()
        assert await connector.validate_credentials() is False


class TestZenginConnector:
    def test_parse_date(self) -> None:
        assert parse_zengin_date("070315") == "2025-03-15"
        assert parse_zengin_date("991231") == "2099-12-31"
        assert parse_zengin_date("000101") is None
        assert parse_zengin_date("071301") is None
        assert parse_zengin_date("2025-03-15") is None

    @pytest.mark.asyncio
    async def test_detail_records_only(self, zengin_file: str) -> None:
        connector = ZenginConnector(file_path=zengin_file, account_id="1")
        rows = await connector.fetch_transactions("1")

        assert len(rows) == 2
        report = normalize_all(rows)
        deposit, withdrawal = report.transactions
        assert deposit.date == date(2025, 3, 10)
        assert deposit.direction == Direction.IN
        assert deposit.amount == Decimal("120000")
        assert deposit.source == TransactionSource.IMPORTED
        assert deposit.account_id == "1"
        assert withdrawal.direction == Direction.OUT
        assert withdrawal.description == "ﾔﾁﾝ"

    @pytest.mark.asyncio
    async def test_unknown_code_is_rejected_downstream(self, tmp_path: Path) -> None:
        file = tmp_path / "odd.csv"
        file.write_bytes(_zengin_line("2", "070310", "9", "000000001000", "?").encode("shift_jis"))
        rows = await ZenginConnector(file_path=str(file)).fetch_transactions()

        report = normalize_all(rows, on_error="skip")
        assert report.transactions == []
        assert report.rejected[0][1].field == "direction"


class TestSQLConnector:
    @pytest.fixture
    def connection_string(self, tmp_path: Path) -> str:
        url = f"sqlite:///{tmp_path / 'ledger.db'}"
        engine = create_engine(url)
        with engine.begin() as conn:
            conn.execute(
                text(
                    "CREATE TABLE cash_flows (id INTEGER, date TEXT, section TEXT, amount INTEGER, "
                    "cash_account_id INTEGER, category TEXT, description TEXT)"
                )
            )
            conn.execute(text("CREATE TABLE cash_accounts (id INTEGER, name TEXT, current_balance INTEGER)"))
            conn.execute(
                text(
                    "INSERT INTO cash_flows VALUES "
                    "(1, '2025-01-01', 'in', 100000, 1, '初期値', NULL),"
                    "(2, '2025-01-20', 'in', 20000, 1, 'Sales', 'Invoice 12'),"
                    "(3, '2025-02-20', 'out', 50000, 1, 'Rent', NULL),"
                    "(4, '2025-02-21', 'out', 999, 2, 'Misc', NULL)"
                )
            )
            conn.execute(text("INSERT INTO cash_accounts VALUES (1, 'Main', 70000), (2, 'Petty', 1000)"))
        engine.dispose()
        return url

    @pytest.mark.asyncio
    async def test_fetch_transactions(self, connection_string: str) -> None:
        connector = SQLConnector(credentials={"connection_string": connection_string})

        rows = await connector.fetch_transactions("1")
        assert [r["id"] for r in rows] == [1, 2, 3]
        assert rows[0]["description"] is None

        ranged = await connector.fetch_transactions("1", start=date(2025, 1, 2), end=date(2025, 2, 20))
        assert [r["id"] for r in ranged] == [2]

        report = normalize_all(await connector.fetch_transactions())
        assert len(report.transactions) == 4
        assert report.transactions[0].is_opening
        assert report.transactions[3].account_id == "2"

    @pytest.mark.asyncio
    async def test_accounts(self, connection_string: str) -> None:
        connector = SQLConnector(credentials={"connection_string": connection_string})

        account = await connector.fetch_account("1")
        assert account.name == "Main"
        assert account.current_balance == Decimal("70000")
        assert [a.id for a in await connector.list_accounts()] == ["1", "2"]
        with pytest.raises(NotFoundError):
            await connector.fetch_account("3")
        assert await connector.validate_credentials() is True

    def test_rejects_unsafe_table_name(self) -> None:
        with pytest.raises(CashWatchError):
            SQLConnector(credentials={"connection_string": "sqlite://"}, flows_table="flows; DROP TABLE x")


class TestConnectorRegistry:
    def test_auto_discover(self, csv_file: str) -> None:
        config = CashWatchConfig(
            connectors=[
                ConnectorConfig(type="csv", options={"file_path": csv_file}),
                ConnectorConfig(type="memory", enabled=False),
            ]
        )
        registry = ConnectorRegistry()
        registry.auto_discover(config)

        assert len(registry) == 1
        assert isinstance(registry.primary, CSVConnector)
        assert registry.get("csv") is registry.primary
        assert registry.get("memory") is None

    def test_plugin_path(self) -> None:
        config = CashWatchConfig(
            connectors=[ConnectorConfig(type="cashwatch.connectors.memory_connector.MemoryConnector")]
        )
        registry = ConnectorRegistry()
        registry.auto_discover(config)
        assert isinstance(registry.primary, MemoryConnector)

    def test_unknown_type_is_skipped(self) -> None:
        config = CashWatchConfig(connectors=[ConnectorConfig(type="nowhere.Missing")])
        registry = ConnectorRegistry()
        registry.auto_discover(config)
        assert registry.primary is None
