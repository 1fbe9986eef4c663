from decimal import Decimal
from typing import Any, Dict, Iterator

from loguru import logger

from ..core.errors import BalanceUnavailable, ExchangeError
from ..core.exchange_base import ExchangeBase
from ..core.numbers import to_decimal


class BalanceReader:
    """Wallet balance of one asset. A missing asset is a zero balance, not an error."""

    def __init__(self, client: ExchangeBase, account_type: str = "UNIFIED"):
        self.client = client
        self.account_type = account_type

    def get_balance(self, asset: str) -> Decimal:
        try:
            result = self.client.get_wallet_balance(self.account_type, asset)
        except ExchangeError as exc:
            logger.error("Balance read failed for {}: {}", asset, exc)
            raise BalanceUnavailable(asset, str(exc)) from exc

        for row in _coin_rows(result):
            if str(row.get("coin", "")).upper() != asset.upper():
                continue
            raw = row.get("walletBalance")
            if raw is None or raw == "":
                balance = Decimal("0")
            else:
                balance = to_decimal(raw)
                if balance is None:
                    logger.error("Balance read failed for {}: bad walletBalance {!r}", asset, raw)
                    raise BalanceUnavailable(asset, "malformed walletBalance")
            logger.info("Balance {}: {}", asset, balance)
            return balance

        logger.info("Balance {}: no entry, reporting 0", asset)
        return Decimal("0")


def _coin_rows(result: Any) -> Iterator[Dict[str, Any]]:
    # Unified accounts nest coins under each account: list[i].coin[j].
    # A flat list of {coin, walletBalance} rows is accepted as well.
    rows = result.get("list") if isinstance(result, dict) else None
    for entry in rows or []:
        if not isinstance(entry, dict):
            continue
        nested = entry.get("coin")
        if isinstance(nested, list):
            for coin in nested:
                if isinstance(coin, dict):
                    yield coin
        elif "walletBalance" in entry:
            yield entry
