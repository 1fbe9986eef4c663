from decimal import Decimal

from ..core.errors import InvalidOrder
from ..core.order import ProtectiveLevels, Side
from ..utils.config import ProtectiveConfig


def compute_protective_levels(side: Side, price: Decimal, cfg: ProtectiveConfig) -> ProtectiveLevels:
    """TP/SL at fixed absolute offsets from the entry quote.

    long:  tp = price + tp_offset, sl = price - sl_offset
    short: tp = price - tp_offset, sl = price + sl_offset
    """
    if price <= 0:
        raise InvalidOrder(f"cannot derive protective levels from price {price}")
    if side is Side.BUY:
        levels = ProtectiveLevels(
            take_profit=price + cfg.take_profit_offset,
            stop_loss=price - cfg.stop_loss_offset,
        )
    else:
        levels = ProtectiveLevels(
            take_profit=price - cfg.take_profit_offset,
            stop_loss=price + cfg.stop_loss_offset,
        )
    # offsets wider than the price itself would put a level at or below zero
    if levels.take_profit <= 0 or levels.stop_loss <= 0:
        raise InvalidOrder(f"offsets too wide for price {price}: {levels}")
    return levels
