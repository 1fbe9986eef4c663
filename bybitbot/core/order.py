from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Union


class Side(str, Enum):
    BUY = "Buy"  # long entry
    SELL = "Sell"  # short entry

    def opposite(self) -> "Side":
        return Side.SELL if self is Side.BUY else Side.BUY

    @classmethod
    def parse(cls, value: str) -> "Side":
        for side in cls:
            if side.value.lower() == str(value).strip().lower():
                return side
        raise ValueError(f"unknown side {value!r}")


@dataclass(frozen=True)
class Flat:
    symbol: str
    size: Decimal = Decimal("0")


@dataclass(frozen=True)
class OpenPosition:
    symbol: str
    side: Side
    size: Decimal  # always > 0


Position = Union[Flat, OpenPosition]


@dataclass(frozen=True)
class ProtectiveLevels:
    take_profit: Decimal
    stop_loss: Decimal


@dataclass(frozen=True)
class OrderIntent:
    symbol: str
    side: Side
    qty: Decimal
    category: str = "linear"
    order_type: str = "Market"
    protective: Optional[ProtectiveLevels] = None
    reduce_only: bool = False

    def to_request(self) -> Dict[str, Any]:
        """Body for POST /v5/order/create; decimals are sent as strings."""
        body: Dict[str, Any] = {
            "category": self.category,
            "symbol": self.symbol,
            "side": self.side.value,
            "orderType": self.order_type,
            "qty": _fmt(self.qty),
        }
        if self.protective is not None:
            body["takeProfit"] = _fmt(self.protective.take_profit)
            body["stopLoss"] = _fmt(self.protective.stop_loss)
        if self.reduce_only:
            body["reduceOnly"] = True
        return body


@dataclass(frozen=True)
class OrderResult:
    intent: OrderIntent
    order_id: str = ""
    order_link_id: str = ""
    price: Optional[Decimal] = None  # quote the levels were built from (opens only)
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NothingToClose:
    symbol: str


def _fmt(value: Decimal) -> str:
    # plain notation, no exponent ("5E+4" -> "50000")
    return format(value, "f")
