"""
CashWatch — Main orchestrator.

The CashWatch class wires a ledger connector to the pure forecasting
pipeline. It is the only layer that awaits I/O; everything it computes is a
deterministic function of the fetched ledger snapshot and the parameters.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any

from cashwatch.analyzers.cashflow import CashFlowForecast, CashFlowForecaster
from cashwatch.analyzers.normalizer import normalize_all
from cashwatch.analyzers.periods import add_months, month_start
from cashwatch.analyzers.projector import DailyProjection, project_daily
from cashwatch.cache import MonthlyBalanceCache
from cashwatch.config import CashWatchConfig
from cashwatch.connectors.base import ALL_ACCOUNTS, BaseConnector
from cashwatch.connectors.registry import ConnectorRegistry
from cashwatch.errors import CashWatchError
from cashwatch.models.financial import Scenario, WhatIf

logger = logging.getLogger("cashwatch")


@dataclass
class CashWatch:
    """Top-level orchestrator.

    Usage::

        from cashwatch import CashWatch

        watch = CashWatch.from_config("cashwatch.yaml")
        forecast = await watch.forecast("1")
        print(forecast.projection.level, forecast.projection.shortfall_month)

    The ledger source is injected (``connector``) or built from the first
    connector in the config. Forecasts are memoised per instance.
    """

    config: CashWatchConfig = field(default_factory=CashWatchConfig)
    connector: BaseConnector | None = None
    balance_cache: MonthlyBalanceCache = field(default_factory=MonthlyBalanceCache)
    _forecasts: dict[tuple[Any, ...], CashFlowForecast] = field(default_factory=dict, init=False, repr=False)

    @classmethod
    def from_config(cls, config_path: str | None = None, **overrides: Any) -> CashWatch:
        """Create a CashWatch instance from a config file or keyword arguments."""
        config = CashWatchConfig.load(config_path, **overrides)
        instance = cls(config=config)
        instance._setup()
        return instance

    def _setup(self) -> None:
        """Resolve the ledger connector from config when none was injected."""
        if self.connector is not None:
            return
        registry = ConnectorRegistry()
        registry.auto_discover(self.config)
        self.connector = registry.primary
        logger.info("CashWatch initialized with %d connectors", len(registry))

    def _source(self) -> BaseConnector:
        if self.connector is None:
            self._setup()
        if self.connector is None:
            raise CashWatchError("No ledger connector configured")
        return self.connector

    async def forecast(
        self,
        account_id: str = ALL_ACCOUNTS,
        *,
        as_of: date | None = None,
        window_months: int | None = None,
        horizon_months: int | None = None,
        what_if: WhatIf | None = None,
        scenario: Scenario | None = None,
    ) -> CashFlowForecast:
        """Forecast one account, or the whole account set with ``"all"``.

        The account's recorded ``current_balance`` anchors the projection.
        For ``"all"`` the balances of every listed account are summed; with no
        accounts listed the ledger's own closing balance is used.

        Raises:
            NotFoundError: Unknown account; nothing is computed.
        """
        source = self._source()
        account_id = str(account_id)
        as_of = as_of or date.today()
        window = self.config.forecast.window_months if window_months is None else window_months
        horizon = self.config.forecast.horizon_months if horizon_months is None else horizon_months
        start = add_months(month_start(as_of), -self.config.forecast.history_months)

        scenario_key = scenario.model_dump_json() if scenario else None
        key = (account_id, as_of, start, window, horizon, what_if, scenario_key)
        cached = self._forecasts.get(key)
        if cached is not None:
            return cached

        current: Decimal | None
        if account_id == ALL_ACCOUNTS:
            accounts = await source.list_accounts()
            current = sum((a.current_balance for a in accounts), Decimal("0")) if accounts else None
        else:
            account = await source.fetch_account(account_id)
            current = account.current_balance

        # Full history: opening entries and flows before ``start`` seed the balance.
        records = await source.fetch_transactions(account_id)

        forecast = CashFlowForecaster.analyze(
            records,
            current,
            as_of=as_of,
            start=start,
            window_months=window,
            horizon_months=horizon,
            what_if=what_if,
            scenario=scenario,
            policy=self.config.risk,
            on_error=self.config.ledger.on_invalid,
            opening_categories=self.config.ledger.opening_categories,
        )
        self.balance_cache.refresh(account_id, forecast.buckets, forecast.balances)
        self._forecasts[key] = forecast
        return forecast

    async def forecast_accounts(
        self,
        account_ids: list[str] | None = None,
        **kwargs: Any,
    ) -> dict[str, CashFlowForecast]:
        """Forecast several accounts concurrently (every listed account by default)."""
        if account_ids is None:
            account_ids = [a.id for a in await self._source().list_accounts()]
        results = await asyncio.gather(*(self.forecast(a, **kwargs) for a in account_ids))
        return dict(zip(account_ids, results))

    async def daily(self, account_id: str, start: date, days: int = 30) -> DailyProjection:
        """Day-by-day balance over planned entries in ``[start, start + days)``."""
        source = self._source()
        account = await source.fetch_account(str(account_id))
        records = await source.fetch_transactions(str(account_id), start, start + timedelta(days=days))
        ledger = normalize_all(
            records,
            on_error=self.config.ledger.on_invalid,
            opening_categories=self.config.ledger.opening_categories,
        )
        return project_daily(account.current_balance, ledger.transactions, start, days)

    def forecast_sync(self, account_id: str = ALL_ACCOUNTS, **kwargs: Any) -> CashFlowForecast:
        """Synchronous wrapper around :meth:`forecast`."""
        return asyncio.run(self.forecast(account_id, **kwargs))

    def clear_cache(self) -> None:
        self._forecasts.clear()
        self.balance_cache.invalidate()
