from dataclasses import dataclass
from enum import Enum
from typing import Optional

from loguru import logger

from ..account.balance_reader import BalanceReader
from ..core.errors import (
    BalanceUnavailable,
    BotError,
    InvalidOrder,
    OrderRejected,
    PositionReadFailed,
    QuoteUnavailable,
    Unauthorized,
    UnsupportedPositionMode,
)
from ..core.order import NothingToClose, OrderResult, Side
from ..exchange.quote_reader import QuoteReader
from ..execution.orchestrator import OrderOrchestrator
from ..risk.access_gate import AccessGate
from ..utils.config import TradingConfig

DENIED_REPLY = "Access denied. You are not authorized."


class Command(str, Enum):
    PRICE = "price"
    BALANCE = "balance"
    BUY = "buy"
    SELL = "sell"
    CLOSE = "close"
    TEST = "test"
    HELP = "help"


HELP_TEXT = (
    "Commands:\n"
    "/price - last price\n"
    "/balance - wallet balance\n"
    "/buy - open long with TP/SL\n"
    "/sell - open short with TP/SL\n"
    "/close - close the open position\n"
    "/test - connectivity check"
)

# fixed operator-facing text per failure; exchange payloads only go to the log
FAILURE_REPLIES = {
    Command.PRICE: "Failed to get price.",
    Command.BALANCE: "Failed to get balance.",
    Command.BUY: "Failed to open Long.",
    Command.SELL: "Failed to open Short.",
    Command.CLOSE: "Failed to close position.",
    Command.TEST: "Test failed.",
}


@dataclass(frozen=True)
class CommandResult:
    ok: bool
    reply: str
    error: Optional[str] = None  # error kind name when ok is False


def parse_command(text: str) -> Optional[Command]:
    """'/buy', 'buy', '/buy@SomeBot extra' -> Command.BUY; anything else -> None."""
    if not text or not text.strip():
        return None
    word = text.strip().split()[0].lstrip("/").split("@")[0].lower()
    try:
        return Command(word)
    except ValueError:
        return None


class CommandDispatcher:
    def __init__(
        self,
        gate: AccessGate,
        quotes: QuoteReader,
        balances: BalanceReader,
        orchestrator: OrderOrchestrator,
        trading: TradingConfig,
    ):
        self.gate = gate
        self.quotes = quotes
        self.balances = balances
        self.orchestrator = orchestrator
        self.trading = trading

    def screen(self, requester_id) -> Optional[CommandResult]:
        """Denial result for a sender the gate rejects, None for the operator."""
        if self.gate.authorize(requester_id):
            return None
        return CommandResult(ok=False, reply=DENIED_REPLY, error=Unauthorized.__name__)

    def handle(self, requester_id, text: str) -> CommandResult:
        # gate first, for every input including unknown and diagnostic commands
        denied = self.screen(requester_id)
        if denied is not None:
            return denied

        cmd = parse_command(text)
        if cmd is None or cmd is Command.HELP:
            return CommandResult(ok=True, reply=HELP_TEXT)

        symbol = self.trading.symbol
        try:
            reply = self._run(cmd, symbol)
        except BotError as exc:
            logger.error("Command {} failed (symbol={}): {}", cmd.value, symbol, exc)
            return CommandResult(ok=False, reply=_failure_reply(cmd, exc), error=type(exc).__name__)
        return CommandResult(ok=True, reply=reply)

    def _run(self, cmd: Command, symbol: str) -> str:
        if cmd is Command.PRICE:
            return f"Current price {symbol}: {self.quotes.get_price(symbol)}"
        if cmd is Command.TEST:
            price = self.quotes.get_price(symbol)
            logger.info("Test command completed")
            return f"Test: price {symbol} = {price}"
        if cmd is Command.BALANCE:
            asset = self.trading.balance_asset
            return f"Balance {asset}: {self.balances.get_balance(asset)}"
        if cmd in (Command.BUY, Command.SELL):
            side = Side.BUY if cmd is Command.BUY else Side.SELL
            result = self.orchestrator.open(side, symbol, self.trading.order_qty)
            return _format_open(result)
        if cmd is Command.CLOSE:
            outcome = self.orchestrator.close(symbol)
            if isinstance(outcome, NothingToClose):
                return f"No open position on {symbol}."
            return _format_close(outcome)
        raise ValueError(f"unhandled command {cmd}")


def _failure_reply(cmd: Command, exc: BotError) -> str:
    base = FAILURE_REPLIES.get(cmd, "Command failed.")
    if isinstance(exc, QuoteUnavailable):
        return f"{base} Price unavailable."
    if isinstance(exc, UnsupportedPositionMode):
        return f"{base} Hedge-mode positions are not supported."
    if isinstance(exc, PositionReadFailed):
        return f"{base} Could not read position."
    if isinstance(exc, BalanceUnavailable):
        return base
    if isinstance(exc, OrderRejected):
        return f"{base} Order rejected by exchange."
    if isinstance(exc, InvalidOrder):
        return f"{base} Invalid order parameters."
    return base


def _format_open(result: OrderResult) -> str:
    intent = result.intent
    label = "Long" if intent.side is Side.BUY else "Short"
    lines = [
        f"Opened {label} on {intent.symbol}: qty {intent.to_request()['qty']} at ~{result.price}",
    ]
    if intent.protective is not None:
        lines.append(f"TP {intent.protective.take_profit} / SL {intent.protective.stop_loss}")
    if result.order_id:
        lines.append(f"Order ID: {result.order_id}")
    return "\n".join(lines)


def _format_close(result: OrderResult) -> str:
    intent = result.intent
    line = f"Closed position on {intent.symbol}: {intent.side.value} {intent.to_request()['qty']} (reduce-only)"
    if result.order_id:
        line += f"\nOrder ID: {result.order_id}"
    return line
