"""Tests for configuration management."""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from cashwatch.config import CashWatchConfig


class TestConfig:
    def test_default_config(self) -> None:
        config = CashWatchConfig()
        assert config.forecast.window_months == 6
        assert config.forecast.horizon_months == 12
        assert config.risk.danger_months == 3
        assert config.risk.reserve_multiple == Decimal("3")
        assert config.risk.minimum_balance == Decimal("300000")
        assert config.ledger.on_invalid == "raise"
        assert "初期値" in config.ledger.opening_categories
        assert config.currency == "JPY"

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        yaml_content = {
            "forecast": {"window_months": 3, "horizon_months": 18},
            "risk": {"minimum_balance": 0},
            "connectors": [{"type": "csv", "options": {"file_path": "ledger.csv"}}],
        }
        config_file = tmp_path / "cashwatch.yaml"
        config_file.write_text(yaml.dump(yaml_content))

        config = CashWatchConfig.load(str(config_file))
        assert config.forecast.window_months == 3
        assert config.forecast.horizon_months == 18
        assert config.risk.minimum_balance == 0
        assert len(config.connectors) == 1
        assert config.connectors[0].options["file_path"] == "ledger.csv"

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        config = CashWatchConfig.load(str(tmp_path / "nope.yaml"))
        assert config.forecast.window_months == 6

    def test_load_with_overrides(self) -> None:
        config = CashWatchConfig.load(None, currency="USD", ledger={"on_invalid": "skip"})
        assert config.currency == "USD"
        assert config.ledger.on_invalid == "skip"

    def test_env_var_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CASHWATCH_WINDOW_MONTHS", "4")
        monkeypatch.setenv("CASHWATCH_HORIZON_MONTHS", "24")
        monkeypatch.setenv("CASHWATCH_MINIMUM_BALANCE", "1000000")
        monkeypatch.setenv("CASHWATCH_ON_INVALID", "SKIP")
        monkeypatch.setenv("CASHWATCH_CURRENCY", "EUR")

        config = CashWatchConfig.load()
        assert config.forecast.window_months == 4
        assert config.forecast.horizon_months == 24
        assert config.risk.minimum_balance == Decimal("1000000")
        assert config.ledger.on_invalid == "skip"
        assert config.currency == "EUR"

    def test_overrides_beat_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CASHWATCH_CURRENCY", "EUR")
        config = CashWatchConfig.load(currency="GBP")
        assert config.currency == "GBP"

    def test_invalid_window_rejected(self) -> None:
        with pytest.raises(ValueError):
            CashWatchConfig.load(forecast={"window_months": 0})
