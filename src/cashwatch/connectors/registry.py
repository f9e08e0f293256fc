"""
Connector Registry — discovers and manages ledger connectors.

Supports auto-discovery from config and manual registration of custom connectors.
"""

from __future__ import annotations

import importlib
import logging

from cashwatch.config import CashWatchConfig, ConnectorConfig
from cashwatch.connectors.base import BaseConnector

logger = logging.getLogger("cashwatch.connectors.registry")

# Built-in connector type mapping
_BUILTIN_CONNECTORS: dict[str, str] = {
    "memory": "cashwatch.connectors.memory_connector.MemoryConnector",
    "csv": "cashwatch.connectors.csv_connector.CSVConnector",
    "zengin": "cashwatch.connectors.zengin_connector.ZenginConnector",
    "sql": "cashwatch.connectors.sql_connector.SQLConnector",
}


class ConnectorRegistry:
    """Manages all active ledger connectors.

    Supports:
    - Auto-discovery from config file.
    - Manual registration of custom connectors.
    - Plugin-style connector loading (dotted class path as ``type``).
    """

    def __init__(self) -> None:
        self._connectors: dict[str, BaseConnector] = {}

    def __len__(self) -> int:
        return len(self._connectors)

    @property
    def active_connectors(self) -> list[BaseConnector]:
        """Return all active connectors."""
        return list(self._connectors.values())

    @property
    def primary(self) -> BaseConnector | None:
        """The first registered connector, used as the ledger source."""
        return next(iter(self._connectors.values()), None)

    def register(self, connector: BaseConnector) -> None:
        """Register a connector instance."""
        self._connectors[connector.name] = connector
        logger.info("Registered connector: %s", connector.name)

    def get(self, name: str) -> BaseConnector | None:
        """Get a connector by name."""
        return self._connectors.get(name)

    def auto_discover(self, config: CashWatchConfig) -> None:
        """Auto-discover and register connectors from config."""
        for conn_config in config.connectors:
            if not conn_config.enabled:
                continue
            connector = self._create_connector(conn_config)
            if connector:
                self.register(connector)

    def _create_connector(self, config: ConnectorConfig) -> BaseConnector | None:
        """Instantiate a connector from config."""
        connector_path = _BUILTIN_CONNECTORS.get(config.type)
        if not connector_path:
            # Try loading as a fully qualified class path (plugin support)
            connector_path = config.type

        try:
            module_path, class_name = connector_path.rsplit(".", 1)
            module = importlib.import_module(module_path)
            connector_cls = getattr(module, class_name)
        except (ImportError, AttributeError, ValueError) as e:
            logger.error("Cannot load connector '%s': %s", config.type, e)
            return None
        return connector_cls(credentials=config.credentials, **config.options)
