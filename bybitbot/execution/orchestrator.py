from decimal import Decimal
from typing import Optional, Union

from loguru import logger

from ..account.position_inspector import PositionInspector
from ..core.errors import ExchangeError, InvalidOrder, OrderRejected
from ..core.exchange_base import ExchangeBase
from ..core.order import Flat, NothingToClose, OrderIntent, OrderResult, Side
from ..exchange.quote_reader import QuoteReader
from ..risk.protective import compute_protective_levels
from ..utils.config import ProtectiveConfig


class OrderOrchestrator:
    """
    Turns an operator intent into exactly one market order.

    open():  fresh quote -> TP/SL from fixed offsets -> market order.
    close(): fresh position -> reduce-only market order on the opposite side
             for the full size, or NothingToClose when flat.

    Nothing is cached between calls and nothing is retried: a failed quote or
    position read aborts before submission, a rejected order surfaces as
    OrderRejected.
    """

    def __init__(
        self,
        client: ExchangeBase,
        quotes: QuoteReader,
        positions: PositionInspector,
        protective: ProtectiveConfig,
        category: str = "linear",
    ):
        self.client = client
        self.quotes = quotes
        self.positions = positions
        self.protective = protective
        self.category = category

    def open(self, side: Side, symbol: str, qty: Decimal) -> OrderResult:
        qty = _positive_qty(qty)
        price = self.quotes.get_price(symbol)
        levels = compute_protective_levels(side, price, self.protective)
        intent = OrderIntent(
            symbol=symbol,
            side=side,
            qty=qty,
            category=self.category,
            protective=levels,
            reduce_only=False,
        )
        result = self._submit(intent, price=price)
        logger.info(
            "Opened position: {} {} qty={} at {} (tp={}, sl={})",
            side.value, symbol, qty, price, levels.take_profit, levels.stop_loss,
        )
        return result

    def close(self, symbol: str) -> Union[OrderResult, NothingToClose]:
        position = self.positions.get_position(symbol)
        if isinstance(position, Flat):
            logger.info("Nothing to close for {}", symbol)
            return NothingToClose(symbol)
        intent = OrderIntent(
            symbol=symbol,
            side=position.side.opposite(),
            qty=position.size,
            category=self.category,
            reduce_only=True,
        )
        result = self._submit(intent)
        logger.info("Closed position: {} side={} size={}", symbol, position.side.value, position.size)
        return result

    def _submit(self, intent: OrderIntent, price: Optional[Decimal] = None) -> OrderResult:
        body = intent.to_request()
        try:
            raw = self.client.submit_order(body)
        except ExchangeError as exc:
            logger.error("Order rejected {} {} qty={}: {}", intent.side.value, intent.symbol, intent.qty, exc)
            raise OrderRejected(intent.symbol, str(exc)) from exc
        raw = raw if isinstance(raw, dict) else {}
        return OrderResult(
            intent=intent,
            order_id=str(raw.get("orderId", "")),
            order_link_id=str(raw.get("orderLinkId", "")),
            price=price,
            raw=dict(raw),
        )


def _positive_qty(qty) -> Decimal:
    try:
        q = Decimal(str(qty))
    except ArithmeticError as exc:
        raise InvalidOrder(f"bad quantity {qty!r}") from exc
    if not q.is_finite() or q <= 0:
        raise InvalidOrder(f"quantity must be positive, got {qty!r}")
    return q
