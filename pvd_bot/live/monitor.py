"""
Multi-instrument monitor: one trader thread per symbol, shared stop event.
"""

from __future__ import annotations
import logging
import threading
from typing import Dict, List, Optional

from pvd_bot.analytics.metrics import TradeStats
from pvd_bot.core.config import Config
from pvd_bot.execution.base import ExecutionClient
from pvd_bot.live.trader import InstrumentTrader
from pvd_bot.utils.telegram import TelegramNotifier

logger = logging.getLogger("pvd_bot.live")


def resolve_symbols(client: ExecutionClient, config: Config) -> List[str]:
    """Configured symbols, or the exchange's perpetuals for the quote asset (capped)."""
    if config.symbols:
        return list(config.symbols)
    listed = client.list_perpetual_symbols(config.quote_asset)
    return listed[: config.max_trading_symbols]


class MultiInstrumentMonitor:
    """Starts and stops an InstrumentTrader per symbol. Traders share nothing but the client."""

    def __init__(
        self,
        client: ExecutionClient,
        config: Config,
        notifier: Optional[TelegramNotifier] = None,
        symbols: Optional[List[str]] = None,
    ):
        self.client = client
        self.config = config
        self.notifier = notifier or TelegramNotifier(config.telegram_bot_token, config.telegram_chat_id)
        self.symbols = symbols or resolve_symbols(client, config)
        self.traders: Dict[str, InstrumentTrader] = {}
        self._threads: List[threading.Thread] = []
        self._stop = threading.Event()

    def setup(self) -> None:
        for symbol in self.symbols:
            self.client.set_leverage(symbol, self.config.leverage)
            self.traders[symbol] = InstrumentTrader(symbol, self.client, self.config, self.notifier)
        logger.info("Monitoring %d symbols: %s", len(self.traders), ", ".join(self.traders))

    def start(self) -> None:
        if not self.traders:
            self.setup()
        for symbol, trader in self.traders.items():
            t = threading.Thread(target=trader.run, args=(self._stop,), name=f"trader-{symbol}", daemon=True)
            t.start()
            self._threads.append(t)
        self.notifier.notify(
            f"PVD bot started | {', '.join(self.traders)} | testnet={self.config.use_testnet} "
            f"| leverage={self.config.leverage}x"
        )

    def stop(self, timeout: float = 30.0) -> None:
        """Signal every trader and wait for the in-flight cycles to finish."""
        self._stop.set()
        for t in self._threads:
            t.join(timeout)
            if t.is_alive():
                logger.warning("Thread %s did not stop within %.0fs", t.name, timeout)
        self._threads.clear()
        logger.info("Monitor stopped")

    def wait(self, poll_seconds: float = 1.0) -> None:
        while not self.stopped:
            self._stop.wait(poll_seconds)

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def request_stop(self) -> None:
        self._stop.set()

    def stats(self) -> Dict[str, TradeStats]:
        return {symbol: trader.positions.stats() for symbol, trader in self.traders.items()}
