from decimal import Decimal
from typing import Any, Dict, Optional
import os

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from dotenv import load_dotenv

from ..core.errors import ConfigError

REQUIRED_ENV = ("BYBIT_API_KEY", "BYBIT_API_SECRET", "TELEGRAM_BOT_TOKEN", "TELEGRAM_USER_ID")


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class BybitConfig(_Frozen):
    api_key: str = ""
    api_secret: str = ""
    testnet: bool = True
    base_url: Optional[str] = None
    timeout: int = 10
    max_retries: int = 2
    recv_window: int = 5000


class ProtectiveConfig(_Frozen):
    # absolute price offsets, not percentages
    take_profit_offset: Decimal = Decimal("20")
    stop_loss_offset: Decimal = Decimal("10")

    @field_validator("take_profit_offset", "stop_loss_offset")
    @classmethod
    def _positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("offset must be positive")
        return v


class TradingConfig(_Frozen):
    symbol: str = "BTCUSDT"
    order_qty: Decimal = Decimal("0.01")
    category: str = "linear"
    balance_asset: str = "USDT"
    account_type: str = "UNIFIED"
    protective: ProtectiveConfig = ProtectiveConfig()

    @field_validator("order_qty")
    @classmethod
    def _qty_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("order_qty must be positive")
        return v


class TelegramConfig(_Frozen):
    bot_token: str = ""
    allowed_user_id: str = ""
    api_base: str = "https://api.telegram.org"
    poll_timeout_sec: int = 30

    @field_validator("allowed_user_id", mode="before")
    @classmethod
    def _as_str(cls, v: Any) -> str:
        # ids are compared as strings; yaml may hand us an int
        return str(v).strip()


class LoggingConfig(_Frozen):
    log_dir: str = "logs"
    file_name: str = "bot.log"
    level: str = "INFO"
    rotation: str = "10 MB"


class Config(_Frozen):
    bybit: BybitConfig = BybitConfig()
    trading: TradingConfig = TradingConfig()
    telegram: TelegramConfig = TelegramConfig()
    logging: LoggingConfig = LoggingConfig()


def _apply_env(data: Dict[str, Any]) -> Dict[str, Any]:
    missing = [name for name in REQUIRED_ENV if not os.getenv(name)]
    if missing:
        raise ConfigError(f"missing environment variables: {', '.join(missing)}")
    bybit = dict(data.get("bybit") or {})
    bybit["api_key"] = os.environ["BYBIT_API_KEY"]
    bybit["api_secret"] = os.environ["BYBIT_API_SECRET"]
    telegram = dict(data.get("telegram") or {})
    telegram["bot_token"] = os.environ["TELEGRAM_BOT_TOKEN"]
    telegram["allowed_user_id"] = os.environ["TELEGRAM_USER_ID"]
    return {**data, "bybit": bybit, "telegram": telegram}


def load_config(path: Optional[str] = None) -> Config:
    """Read YAML (optional) and merge secrets from the environment / .env."""
    load_dotenv()
    data: Dict[str, Any] = {}
    if path:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    return Config(**_apply_env(data))
