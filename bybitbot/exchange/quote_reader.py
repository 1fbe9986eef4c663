from decimal import Decimal

from loguru import logger

from ..core.errors import ExchangeError, QuoteUnavailable
from ..core.exchange_base import ExchangeBase
from ..core.numbers import to_decimal


class QuoteReader:
    """Last traded price from the ticker endpoint. Never falls back to a default."""

    def __init__(self, client: ExchangeBase, category: str = "linear"):
        self.client = client
        self.category = category

    def get_price(self, symbol: str) -> Decimal:
        try:
            result = self.client.get_tickers(self.category, symbol)
        except ExchangeError as exc:
            logger.error("Price read failed for {}: {}", symbol, exc)
            raise QuoteUnavailable(symbol, str(exc)) from exc

        rows = result.get("list") if isinstance(result, dict) else None
        if not rows or not isinstance(rows[0], dict):
            logger.error("Price read failed for {}: empty ticker list", symbol)
            raise QuoteUnavailable(symbol, "empty ticker list")

        price = to_decimal(rows[0].get("lastPrice"))
        if price is None or price <= 0:
            logger.error("Price read failed for {}: bad lastPrice {!r}", symbol, rows[0].get("lastPrice"))
            raise QuoteUnavailable(symbol, "malformed lastPrice")

        logger.info("Price for {}: {}", symbol, price)
        return price
