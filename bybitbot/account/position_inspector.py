from typing import Any, Dict, List

from loguru import logger

from ..core.errors import ExchangeError, PositionReadFailed, UnsupportedPositionMode
from ..core.exchange_base import ExchangeBase
from ..core.numbers import to_decimal
from ..core.order import Flat, OpenPosition, Position, Side

# one-way mode reports positionIdx 0; 1 and 2 are the buy and sell legs of hedge mode
HEDGE_POSITION_IDX = (1, 2, "1", "2")


class PositionInspector:
    """
    Reads the live position for a symbol and normalizes it.

    Bybit reports "no position" either as an empty list or as an entry with
    size "0" (and side ""). Both come out as Flat; callers never see raw rows.
    One-way mode only: any hedge-mode row (positionIdx 1 or 2), open or not,
    and any second open leg raise UnsupportedPositionMode instead of picking one.
    """

    def __init__(self, client: ExchangeBase, category: str = "linear"):
        self.client = client
        self.category = category

    def get_position(self, symbol: str) -> Position:
        try:
            result = self.client.get_position_info(self.category, symbol)
        except ExchangeError as exc:
            logger.error("Position read failed for {}: {}", symbol, exc)
            raise PositionReadFailed(symbol, str(exc)) from exc

        rows = result.get("list") if isinstance(result, dict) else None
        open_legs: List[OpenPosition] = []
        for row in rows or []:
            if not isinstance(row, dict):
                continue
            if row.get("symbol") not in (None, "", symbol):
                continue
            if row.get("positionIdx") in HEDGE_POSITION_IDX:
                logger.error("Position read failed for {}: positionIdx {} (hedge mode)", symbol, row.get("positionIdx"))
                raise UnsupportedPositionMode(symbol, "hedge-mode accounts are not supported")
            leg = self._parse_row(symbol, row)
            if leg is not None:
                open_legs.append(leg)

        if not open_legs:
            logger.info("No open position for {}", symbol)
            return Flat(symbol)
        if len(open_legs) > 1:
            logger.error("Position read failed for {}: {} open legs (hedge mode)", symbol, len(open_legs))
            raise UnsupportedPositionMode(symbol, "hedge-mode accounts are not supported")

        pos = open_legs[0]
        logger.info("Position {}: {} {}", symbol, pos.side.value, pos.size)
        return pos

    @staticmethod
    def _parse_row(symbol: str, row: Dict[str, Any]):
        size = to_decimal(row.get("size"))
        if size is None:
            raise PositionReadFailed(symbol, f"malformed size {row.get('size')!r}")
        if size == 0:
            return None
        if size < 0:
            raise PositionReadFailed(symbol, f"negative size {size}")
        try:
            side = Side.parse(row.get("side", ""))
        except ValueError as exc:
            raise PositionReadFailed(symbol, f"unknown side {row.get('side')!r}") from exc
        return OpenPosition(symbol=symbol, side=side, size=size)
