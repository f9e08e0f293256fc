"""
CashWatch configuration management.

Supports loading from YAML files, environment variables, and keyword overrides.
"""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field


class ConnectorConfig(BaseModel):
    """Configuration for a single ledger connector."""

    type: str = Field(description="Connector type: memory, csv, zengin, sql, or a dotted class path")
    enabled: bool = True
    credentials: dict[str, Any] = Field(default_factory=dict)
    options: dict[str, Any] = Field(default_factory=dict)


class LedgerConfig(BaseModel):
    """How raw ledger rows are interpreted."""

    opening_categories: list[str] = Field(
        default_factory=lambda: ["初期値", "opening balance", "initial value"],
        description="Category names that mark opening-balance entries",
    )
    on_invalid: Literal["raise", "skip"] = Field(
        default="raise",
        description="Abort on the first malformed record, or skip and log it",
    )


class ForecastConfig(BaseModel):
    """Rolling-average and projection parameters."""

    window_months: int = Field(default=6, ge=1, description="Trailing months averaged")
    horizon_months: int = Field(default=12, ge=1, description="Months projected ahead")
    history_months: int = Field(default=24, ge=1, description="Months of ledger history fetched")


class RiskPolicy(BaseModel):
    """Thresholds for the safe / warn / danger classification."""

    danger_months: int = Field(default=3, ge=1, description="A shortfall within this many months is danger")
    reserve_multiple: Decimal = Field(
        default=Decimal("3"),
        ge=0,
        description="Warn when balance is below this many months of expense",
    )
    minimum_balance: Decimal = Field(
        default=Decimal("300000"),
        ge=0,
        description="Warn when balance is below this floor (0 disables)",
    )


class CashWatchConfig(BaseModel):
    """Root configuration for CashWatch."""

    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    forecast: ForecastConfig = Field(default_factory=ForecastConfig)
    risk: RiskPolicy = Field(default_factory=RiskPolicy)
    connectors: list[ConnectorConfig] = Field(default_factory=list)

    # Output settings
    currency: str = Field(default="JPY")
    scenarios_path: str = Field(default="./cashwatch_scenarios.yaml")

    @classmethod
    def load(cls, config_path: str | None = None, **overrides: Any) -> CashWatchConfig:
        """Load configuration from file, env vars, and overrides.

        Priority: overrides > env vars > config file > defaults.
        """
        data: dict[str, Any] = {}

        # 1. Load from YAML file if provided
        if config_path:
            path = Path(config_path)
            if path.exists():
                with open(path, encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}

        # 2. Override from environment variables
        env_window = os.environ.get("CASHWATCH_WINDOW_MONTHS")
        env_horizon = os.environ.get("CASHWATCH_HORIZON_MONTHS")
        env_minimum = os.environ.get("CASHWATCH_MINIMUM_BALANCE")
        env_on_invalid = os.environ.get("CASHWATCH_ON_INVALID")
        env_currency = os.environ.get("CASHWATCH_CURRENCY")

        if env_window or env_horizon:
            forecast = data.get("forecast", {})
            if env_window:
                forecast["window_months"] = int(env_window)
            if env_horizon:
                forecast["horizon_months"] = int(env_horizon)
            data["forecast"] = forecast

        if env_minimum:
            risk = data.get("risk", {})
            risk["minimum_balance"] = env_minimum
            data["risk"] = risk

        if env_on_invalid:
            ledger = data.get("ledger", {})
            ledger["on_invalid"] = env_on_invalid.lower()
            data["ledger"] = ledger

        if env_currency:
            data["currency"] = env_currency

        # 3. Apply keyword overrides
        data.update(overrides)

        return cls.model_validate(data)
