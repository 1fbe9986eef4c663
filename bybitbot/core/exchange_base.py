from abc import ABC, abstractmethod
from typing import Any, Dict


class ExchangeBase(ABC):
    """REST surface the bot needs. Every method returns the `result` object of a
    successful response and raises ExchangeError otherwise."""

    @abstractmethod
    def get_tickers(self, category: str, symbol: str) -> Dict[str, Any]:
        """Return {"list": [{"symbol", "lastPrice", ...}]}"""
        raise NotImplementedError

    @abstractmethod
    def get_wallet_balance(self, account_type: str, coin: str) -> Dict[str, Any]:
        """Return {"list": [{"coin": [{"coin", "walletBalance"}]}]}"""
        raise NotImplementedError

    @abstractmethod
    def get_position_info(self, category: str, symbol: str) -> Dict[str, Any]:
        """Return {"list": [{"side", "size", "positionIdx"}]}"""
        raise NotImplementedError

    @abstractmethod
    def submit_order(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Send one order. Must never be retried by the implementation."""
        raise NotImplementedError
