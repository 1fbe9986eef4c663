import argparse

from bybitbot.account.balance_reader import BalanceReader
from bybitbot.account.position_inspector import PositionInspector
from bybitbot.commands.dispatcher import CommandDispatcher
from bybitbot.commands.telegram_poller import TelegramPoller
from bybitbot.core.bybit_exchange import BybitExchange
from bybitbot.exchange.quote_reader import QuoteReader
from bybitbot.execution.orchestrator import OrderOrchestrator
from bybitbot.risk.access_gate import AccessGate
from bybitbot.utils.config import Config, load_config
from bybitbot.utils.logger import setup_logger


def build_dispatcher(cfg: Config, client) -> CommandDispatcher:
    trading = cfg.trading
    quotes = QuoteReader(client, trading.category)
    positions = PositionInspector(client, trading.category)
    orchestrator = OrderOrchestrator(client, quotes, positions, trading.protective, trading.category)
    return CommandDispatcher(
        gate=AccessGate(cfg.telegram.allowed_user_id),
        quotes=quotes,
        balances=BalanceReader(client, trading.account_type),
        orchestrator=orchestrator,
        trading=trading,
    )


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--config", default=None, help="YAML config; secrets always come from the environment")
    args = parser.parse_args()

    cfg = load_config(args.config)
    logger = setup_logger(cfg.logging)
    logger.info(
        "Loaded config: symbol={} qty={} testnet={}",
        cfg.trading.symbol, cfg.trading.order_qty, cfg.bybit.testnet,
    )

    client = BybitExchange(
        api_key=cfg.bybit.api_key,
        api_secret=cfg.bybit.api_secret,
        base_url=cfg.bybit.base_url,
        timeout=cfg.bybit.timeout,
        max_retries=cfg.bybit.max_retries,
        recv_window=cfg.bybit.recv_window,
        testnet=cfg.bybit.testnet,
    )
    poller = TelegramPoller(
        bot_token=cfg.telegram.bot_token,
        dispatcher=build_dispatcher(cfg, client),
        api_base=cfg.telegram.api_base,
        poll_timeout_sec=cfg.telegram.poll_timeout_sec,
    )
    poller.run_forever()


if __name__ == "__main__":
    main()
