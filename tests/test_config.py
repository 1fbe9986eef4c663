from decimal import Decimal

import pytest
from pydantic import ValidationError

from bybitbot.core.errors import ConfigError
from bybitbot.utils import config as config_mod
from bybitbot.utils.config import REQUIRED_ENV, load_config

YAML = """
trading:
  symbol: ETHUSDT
  order_qty: "0.5"
  protective:
    take_profit_offset: 30
    stop_loss_offset: 15
telegram:
  poll_timeout_sec: 5
"""


@pytest.fixture
def env(monkeypatch):
    monkeypatch.setattr(config_mod, "load_dotenv", lambda: None)
    monkeypatch.setenv("BYBIT_API_KEY", "k")
    monkeypatch.setenv("BYBIT_API_SECRET", "s")
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "t")
    monkeypatch.setenv("TELEGRAM_USER_ID", "4242")


def test_load_yaml_and_secrets(env, tmp_path):
    p = tmp_path / "config.yaml"
    p.write_text(YAML, encoding="utf-8")
    cfg = load_config(str(p))
    assert cfg.trading.symbol == "ETHUSDT"
    assert cfg.trading.order_qty == Decimal("0.5")
    assert cfg.trading.protective.take_profit_offset == Decimal("30")
    assert cfg.telegram.allowed_user_id == "4242"
    assert cfg.telegram.poll_timeout_sec == 5
    assert cfg.bybit.api_key == "k"
    assert cfg.bybit.testnet is True


def test_defaults_without_yaml(env):
    cfg = load_config()
    assert cfg.trading.symbol == "BTCUSDT"
    assert cfg.trading.order_qty == Decimal("0.01")
    assert cfg.trading.protective.take_profit_offset == Decimal("20")
    assert cfg.trading.protective.stop_loss_offset == Decimal("10")


def test_missing_secrets_listed(monkeypatch):
    monkeypatch.setattr(config_mod, "load_dotenv", lambda: None)
    for name in REQUIRED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BYBIT_API_KEY", "k")
    with pytest.raises(ConfigError) as err:
        load_config()
    assert "TELEGRAM_USER_ID" in str(err.value)
    assert "BYBIT_API_SECRET" in str(err.value)
    assert "BYBIT_API_KEY" not in str(err.value)


def test_config_is_immutable(env):
    cfg = load_config()
    with pytest.raises(ValidationError):
        cfg.trading.symbol = "XRPUSDT"


def test_non_positive_offsets_rejected(env, tmp_path):
    p = tmp_path / "bad.yaml"
    p.write_text("trading:\n  protective:\n    stop_loss_offset: 0\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_config(str(p))
