#!/usr/bin/env python3
"""
PVD Bot CLI: live | status
Usage:
  python main.py live [--config config.yaml] [--symbols BTCUSDT,ETHUSDT]
  python main.py status [--config config.yaml] [--symbols BTCUSDT]
"""

from __future__ import annotations
import argparse
import logging
import signal
import sys
from pathlib import Path

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pvd_bot.analytics.metrics import format_stats
from pvd_bot.core.config import load_config, parse_symbols
from pvd_bot.core.logger import setup_logging
from pvd_bot.execution.binance_futures import BinanceFuturesClient
from pvd_bot.live.monitor import MultiInstrumentMonitor, resolve_symbols
from pvd_bot.live.trader import InstrumentTrader, describe_status
from pvd_bot.utils.telegram import TelegramNotifier


def _prepare(config_path: Path | None, symbols: str | None):
    config = load_config(config_path, ROOT)
    if symbols:
        config = config.replace(symbols=parse_symbols(symbols))
    setup_logging(config.log_level, config.log_dir, config.log_file)
    logger = logging.getLogger("pvd_bot")
    if not config.binance_api_key or not config.binance_api_secret:
        logger.error("Missing BINANCE_API_KEY or BINANCE_API_SECRET in .env")
        return config, None
    client = BinanceFuturesClient(
        config.binance_api_key,
        config.binance_api_secret,
        testnet=config.use_testnet,
    )
    return config, client


def run_live(config_path: Path | None, symbols: str | None) -> int:
    """Run every configured instrument until SIGINT / SIGTERM."""
    config, client = _prepare(config_path, symbols)
    if client is None:
        return 1
    logger = logging.getLogger("pvd_bot")
    notifier = TelegramNotifier(config.telegram_bot_token, config.telegram_chat_id)
    monitor = MultiInstrumentMonitor(client, config, notifier)
    if not monitor.symbols:
        logger.error("No symbols to trade")
        return 1

    def _shutdown(signum, _frame):
        logger.info("Signal %s received, stopping", signum)
        monitor.request_stop()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    monitor.setup()
    monitor.start()
    monitor.wait()
    monitor.stop()

    print("\n--- Session Results ---")
    for symbol, stats in monitor.stats().items():
        print(f"\n[{symbol}]")
        print(format_stats(stats, config.quote_asset))
    notifier.notify("PVD bot stopped.")
    return 0


def run_status(config_path: Path | None, symbols: str | None) -> int:
    """Evaluate the latest closed bar of each symbol and print it. Places no orders."""
    config, client = _prepare(config_path, symbols)
    if client is None:
        return 1
    balance = client.get_account_balance(config.quote_asset)
    for symbol in resolve_symbols(client, config):
        trader = InstrumentTrader(symbol, client, config, trade=False)
        trader.strategy.verbose = True
        if trader.run_bar_cycle() is None:
            print(f"=== {symbol}: not enough closed bars ===")
            continue
        print(describe_status(trader, balance))
        print()
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Pattern / Volume / Delta scalping bot")
    parser.add_argument("mode", choices=["live", "status"], help="Trade live or print the current status")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--symbols", type=str, default=None, help="Comma-separated symbols (overrides config)")
    args = parser.parse_args()
    if args.mode == "status":
        return run_status(args.config, args.symbols)
    return run_live(args.config, args.symbols)


if __name__ == "__main__":
    sys.exit(main())
