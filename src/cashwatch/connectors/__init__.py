"""Connectors package — ledger store integrations."""
from cashwatch.connectors.base import ALL_ACCOUNTS, BaseConnector
from cashwatch.connectors.csv_connector import CSVConnector
from cashwatch.connectors.memory_connector import MemoryConnector
from cashwatch.connectors.sql_connector import SQLConnector
from cashwatch.connectors.zengin_connector import ZenginConnector

__all__ = [
    "ALL_ACCOUNTS",
    "BaseConnector",
    "CSVConnector",
    "MemoryConnector",
    "SQLConnector",
    "ZenginConnector",
]
