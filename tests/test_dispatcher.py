from decimal import Decimal

import pytest

from bybitbot.account.balance_reader import BalanceReader
from bybitbot.account.position_inspector import PositionInspector
from bybitbot.commands.dispatcher import DENIED_REPLY, Command, CommandDispatcher, HELP_TEXT, parse_command
from bybitbot.core.errors import ExchangeError
from bybitbot.exchange.quote_reader import QuoteReader
from bybitbot.execution.orchestrator import OrderOrchestrator
from bybitbot.risk.access_gate import AccessGate
from bybitbot.utils.config import TradingConfig
from tests.stubs import StubExchange

OPERATOR = "777"


def make(ex):
    trading = TradingConfig()
    quotes = QuoteReader(ex)
    return CommandDispatcher(
        gate=AccessGate(OPERATOR),
        quotes=quotes,
        balances=BalanceReader(ex),
        orchestrator=OrderOrchestrator(ex, quotes, PositionInspector(ex), trading.protective),
        trading=trading,
    )


@pytest.mark.parametrize(
    "text,cmd",
    [
        ("/buy", Command.BUY),
        ("sell", Command.SELL),
        ("/Close@MyBot", Command.CLOSE),
        ("  /price now", Command.PRICE),
        ("/log", None),
        ("", None),
    ],
)
def test_parse_command(text, cmd):
    assert parse_command(text) is cmd


@pytest.mark.parametrize("text", ["/price", "/balance", "/buy", "/sell", "/close", "/test", "/help", "hello"])
def test_unauthorized_sender_triggers_no_exchange_calls(text, log_records):
    ex = StubExchange()
    res = make(ex).handle("123", text)
    assert res.ok is False
    assert res.reply == DENIED_REPLY
    assert res.error == "Unauthorized"
    assert ex.calls == []
    assert any(r["level"].name == "WARNING" and "123" in r["message"] for r in log_records)


def test_price_reply():
    res = make(StubExchange()).handle(OPERATOR, "/price")
    assert res.ok
    assert res.reply == "Current price BTCUSDT: 50000"


def test_balance_reply():
    ex = StubExchange(wallet={"list": [{"coin": [{"coin": "USDT", "walletBalance": "99.5"}]}]})
    res = make(ex).handle(int(OPERATOR), "/balance")
    assert res.ok
    assert res.reply == "Balance USDT: 99.5"


def test_buy_uses_configured_symbol_and_qty():
    ex = StubExchange()
    res = make(ex).handle(OPERATOR, "/buy")
    assert res.ok
    assert ex.orders[0]["symbol"] == "BTCUSDT"
    assert ex.orders[0]["qty"] == "0.01"
    assert ex.orders[0]["takeProfit"] == "50020"
    assert "Opened Long on BTCUSDT" in res.reply
    assert "abc-1" in res.reply


def test_close_with_nothing_open():
    ex = StubExchange()
    res = make(ex).handle(OPERATOR, "/close")
    assert res.ok
    assert res.reply == "No open position on BTCUSDT."
    assert ex.orders == []


def test_rejection_reply_hides_exchange_payload(log_records):
    ex = StubExchange(order=ExchangeError("ab not enough for new order", ret_code=110007))
    res = make(ex).handle(OPERATOR, "/sell")
    assert res.ok is False
    assert res.error == "OrderRejected"
    assert "not enough" not in res.reply
    assert res.reply.startswith("Failed to open Short.")
    errors = [r["message"] for r in log_records if r["level"].name == "ERROR"]
    assert any("not enough" in m for m in errors)


def test_price_failure_reply():
    ex = StubExchange(tickers={"list": []})
    res = make(ex).handle(OPERATOR, "/test")
    assert res.ok is False
    assert res.error == "QuoteUnavailable"
    assert ex.orders == []


def test_failures_do_not_leak_into_next_command():
    ex = StubExchange(tickers={"list": []})
    d = make(ex)
    assert d.handle(OPERATOR, "/price").ok is False
    ex.tickers = {"list": [{"symbol": "BTCUSDT", "lastPrice": "1"}]}
    assert d.handle(OPERATOR, "/price").ok is True


def test_unknown_command_gets_help():
    ex = StubExchange()
    res = make(ex).handle(OPERATOR, "what?")
    assert res.ok and res.reply == HELP_TEXT
    assert ex.calls == []


def test_order_qty_from_config_is_decimal():
    assert TradingConfig(order_qty="0.5").order_qty == Decimal("0.5")


def test_screen_denies_strangers_and_passes_operator(log_records):
    ex = StubExchange()
    d = make(ex)
    assert d.screen(OPERATOR) is None
    denied = d.screen("1")
    assert denied.reply == DENIED_REPLY and denied.error == "Unauthorized"
    assert ex.calls == []
    assert any(r["level"].name == "WARNING" and "1" in r["message"] for r in log_records)
