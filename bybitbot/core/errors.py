from typing import Optional


class BotError(Exception):
    """Base class for every failure the bot reports back to the operator."""


class ConfigError(BotError):
    pass


class ExchangeError(BotError):
    """Exchange answered with a non-zero retCode."""

    def __init__(self, message: str, ret_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.ret_code = ret_code

    def __str__(self) -> str:
        if self.ret_code is None:
            return self.message
        return f"[{self.ret_code}] {self.message}"


class ExchangeTransportError(ExchangeError):
    """Network failure, timeout or non-JSON/HTTP error before a retCode was seen."""


class Unauthorized(BotError):
    def __init__(self, requester_id: str):
        super().__init__(f"unauthorized requester {requester_id}")
        self.requester_id = requester_id


class QuoteUnavailable(BotError):
    def __init__(self, symbol: str, detail: str):
        super().__init__(f"price for {symbol} unavailable: {detail}")
        self.symbol = symbol
        self.detail = detail


class BalanceUnavailable(BotError):
    def __init__(self, asset: str, detail: str):
        super().__init__(f"balance for {asset} unavailable: {detail}")
        self.asset = asset
        self.detail = detail


class PositionReadFailed(BotError):
    def __init__(self, symbol: str, detail: str):
        super().__init__(f"position for {symbol} unreadable: {detail}")
        self.symbol = symbol
        self.detail = detail


class UnsupportedPositionMode(PositionReadFailed):
    """More than one open leg for a symbol (hedge mode)."""


class InvalidOrder(BotError):
    pass


class OrderRejected(BotError):
    def __init__(self, symbol: str, reason: str):
        super().__init__(f"order on {symbol} rejected: {reason}")
        self.symbol = symbol
        self.reason = reason
