"""
Per-instrument live trader.

One InstrumentTrader is the only writer of its strategy histories and
positions. ``run`` interleaves two cadences on a single thread: a bar cycle
once per closed bar (fusion, then lifecycle, then entry) and a health check
every few seconds (lifecycle only, against the latest price).
"""

from __future__ import annotations
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

from pvd_bot.core.config import Config
from pvd_bot.core.types import Bar, DeltaSample, EntrySignal, ExitReason, MarketSnapshot
from pvd_bot.execution.base import ExecutionClient
from pvd_bot.indicators.calculator import MIN_BARS, build_snapshots
from pvd_bot.position.manager import ExitSignal, PositionManager, estimate_trading_fee
from pvd_bot.risk.manager import RiskManager, protective_prices
from pvd_bot.signals.delta import CandleDeltaEstimator, DeltaEstimator, TradeDeltaEstimator
from pvd_bot.strategies.pattern_volume_delta import FusionResult, PatternVolumeDeltaStrategy
from pvd_bot.utils.telegram import TelegramNotifier
from pvd_bot.utils.timeframes import interval_seconds

EMA_PERIODS = (8, 30, 55, 144, 169)
TRADE_FETCH_LIMIT = 500


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def make_delta_estimator(config: Config) -> DeltaEstimator:
    if config.delta_source == "trades":
        return TradeDeltaEstimator(config.delta_lookback_ticks, config.delta_window_seconds or None)
    return CandleDeltaEstimator()


class InstrumentTrader:
    """Evaluation context of one symbol: strategy, positions, sizing."""

    def __init__(
        self,
        symbol: str,
        client: ExecutionClient,
        config: Config,
        notifier: Optional[TelegramNotifier] = None,
        clock: Callable[[], datetime] = _utcnow,
        trade: bool = True,
    ):
        self.symbol = symbol
        self.client = client
        self.config = config
        self.notifier = notifier or TelegramNotifier()
        self.clock = clock
        self.trade = trade
        self.logger = logging.getLogger(f"pvd_bot.live.{symbol}")
        self.strategy = PatternVolumeDeltaStrategy.from_config(config)
        self.delta_estimator = make_delta_estimator(config)
        self.positions = PositionManager(
            symbol,
            max_open_positions=config.max_concurrent_positions,
            trailing_enabled=config.trailing_enabled,
            trailing_pct=config.trailing_pct,
            trailing_activation=config.trailing_activation,
            max_hold_bars=config.max_hold_bars,
        )
        self.risk = RiskManager(
            leverage=config.leverage,
            max_position_pct=config.max_position_pct,
            min_notional=config.min_notional,
            symbol_info=client.get_symbol_info(symbol),
        )
        self.ema_periods = tuple(sorted(set(EMA_PERIODS + (config.ema_long,))))
        self.history_bars = config.history_bars
        if config.use_trend_filter and self.history_bars < config.ema_long + MIN_BARS:
            self.history_bars = config.ema_long + MIN_BARS
            self.logger.warning(
                "history_bars=%d too short for EMA%d, fetching %d bars",
                config.history_bars, config.ema_long, self.history_bars,
            )
        self.last_bar_end: Optional[datetime] = None
        self.last_result: Optional[FusionResult] = None
        self.last_delta: Optional[DeltaSample] = None
        self.last_price: Optional[float] = None

    # --- bar cycle -------------------------------------------------------

    def _closed_bars(self) -> List[Bar]:
        bars = self.client.get_recent_bars(self.symbol, self.config.timeframe, self.history_bars)
        now = self.clock()
        closed = [b for b in bars if b.end_time <= now]
        valid = [b for b in closed if b.is_valid()]
        if len(valid) != len(closed):
            self.logger.warning("Dropped %d invalid bars", len(closed) - len(valid))
        return valid

    def _bar_delta(self, bar: Bar, live: bool) -> Optional[DeltaSample]:
        if not self.delta_estimator.uses_trades:
            return self.delta_estimator.estimate(bar)
        if not live:
            # No tick history for past bars
            return None
        trades = self.client.get_recent_trades(self.symbol, TRADE_FETCH_LIMIT)
        quote = self.client.get_book_ticker(self.symbol)
        return self.delta_estimator.estimate(bar, trades, quote)

    def run_bar_cycle(self) -> Optional[FusionResult]:
        """Process closed bars newer than the last one seen. Returns the latest fusion result."""
        bars = self._closed_bars()
        snapshots = build_snapshots(bars, ema_periods=self.ema_periods)
        fresh = [s for s in snapshots if self.last_bar_end is None or s.bar.end_time > self.last_bar_end]
        if not fresh:
            self.logger.debug("No new closed bar")
            return None

        if self.last_bar_end is None:
            # Warm-up: history only, no trading on stale bars
            for s in fresh[:-1]:
                self.strategy.append(s, self._bar_delta(s.bar, live=False))
            fresh = fresh[-1:]

        result = None
        for i, snapshot in enumerate(fresh):
            live = i == len(fresh) - 1
            result = self._on_closed_bar(snapshot, live)
        return result

    def _on_closed_bar(self, snapshot: MarketSnapshot, live: bool) -> FusionResult:
        bar = snapshot.bar
        delta = self._bar_delta(bar, live)
        result = self.strategy.on_bar(snapshot, delta)
        self.last_bar_end = bar.end_time
        self.last_result = result
        self.last_delta = delta
        self.last_price = bar.close

        self._handle_exits(self.positions.on_price(bar.close, bar_closed=True))

        if live and self.trade and result.passed:
            self._enter(result.signal, bar.close)
        return result

    def _enter(self, signal: EntrySignal, price: float) -> None:
        side = signal.side
        if side is None:
            return
        if not self.positions.can_open():
            self.logger.info("Position already open, ignoring %s signal", signal.value)
            return
        balance = self.client.get_account_balance(self.config.quote_asset)
        sizing = self.risk.size_position(balance, price)
        if not sizing.allowed:
            self.logger.warning("Entry skipped (%s): %s", signal.value, sizing.reason)
            return
        stop_loss, take_profit = protective_prices(side, price, self.config.stop_loss_pct, self.config.take_profit_pct)
        order = self.client.place_order(self.symbol, side, sizing.quantity, stop_loss, take_profit)
        if not order.success:
            self.logger.error("Entry order failed %s %s: %s", side.name, self.symbol, order.message)
            return
        if order.message:
            self.logger.warning("Entry %s %s: %s", side.name, self.symbol, order.message)
        entry = order.avg_price or price
        if order.avg_price:
            stop_loss, take_profit = protective_prices(side, entry, self.config.stop_loss_pct, self.config.take_profit_pct)
        position = self.positions.open(
            order.order_id or f"{self.symbol}-{int(time.time() * 1000)}",
            side, entry, order.quantity or sizing.quantity, stop_loss, take_profit, self.clock(),
        )
        self.notifier.entry(self.symbol, side, position.quantity, entry, stop_loss, take_profit, position.position_id)

    # --- lifecycle -------------------------------------------------------

    def _handle_exits(self, exits: List[ExitSignal]) -> None:
        if not exits:
            return
        if not self.config.local_exits:
            # Exchange-side SL/TP orders own the exit; reconciliation closes locally
            return
        for ex in exits:
            order = self.client.close_position(self.symbol)
            if not order.success:
                self.logger.error("Close order failed for %s: %s", ex.position_id, order.message)
                continue
            self._close_local(ex.position_id, order.avg_price or ex.price, ex.reason)

    def _close_local(self, position_id: str, exit_price: float, reason: ExitReason) -> None:
        position = self.positions.get(position_id)
        if position is None or not position.is_open:
            return
        fee = estimate_trading_fee(position, exit_price, self.config.fee_bps)
        closed = self.positions.close(position_id, exit_price, reason, trading_fee=fee, exit_time=self.clock())
        self.notifier.exit(closed)

    def run_health_check(self) -> None:
        """Re-evaluate open positions against the latest price; reconcile with the exchange."""
        if not self.positions.open_positions:
            return
        price = self.client.get_last_price(self.symbol)
        self.last_price = price
        self._handle_exits(self.positions.on_price(price, bar_closed=False))
        if self.positions.open_positions and self.client.get_open_position(self.symbol) is None:
            for p in self.positions.open_positions:
                self.logger.info("Position %s closed on exchange side", p.position_id)
                self._close_local(p.position_id, price, ExitReason.EXCHANGE)

    # --- loop ------------------------------------------------------------

    def run(self, stop_event: threading.Event) -> None:
        """Run both cadences until ``stop_event`` is set; the current cycle always finishes."""
        bar_seconds = interval_seconds(self.config.timeframe)
        health_seconds = max(1.0, self.config.health_check_seconds)
        next_bar = 0.0
        next_health = time.monotonic() + health_seconds
        self.logger.info("Trader started: %s %s", self.symbol, self.config.timeframe)
        while not stop_event.is_set():
            now = time.monotonic()
            if now >= next_bar:
                self._guarded(self.run_bar_cycle)
                next_bar = now + self._seconds_to_next_close(bar_seconds)
            if now >= next_health:
                self._guarded(self.run_health_check)
                next_health = now + health_seconds
            stop_event.wait(max(0.0, min(next_bar, next_health) - time.monotonic()))
        self.logger.info("Trader stopped: %s", self.symbol)

    def _seconds_to_next_close(self, bar_seconds: int) -> float:
        # A little past the boundary so the exchange has the bar closed
        ts = self.clock().timestamp()
        return bar_seconds - (ts % bar_seconds) + 1.0

    def _guarded(self, fn: Callable[[], object]) -> None:
        try:
            fn()
        except Exception as e:
            self.logger.exception("Cycle error in %s: %s", fn.__name__, e)


def describe_status(trader: InstrumentTrader, balance: Optional[float] = None) -> str:
    """Human-readable status block for the latest evaluated bar."""
    lines = [f"=== {trader.symbol} {trader.config.timeframe} ==="]
    if trader.strategy.history:
        snap = trader.strategy.history[-1]
        bar, ind = snap.bar, snap.indicators
        lines.append(
            f"Bar {bar.end_time:%Y-%m-%d %H:%M} O={bar.open:.4f} H={bar.high:.4f} "
            f"L={bar.low:.4f} C={bar.close:.4f} V={bar.volume:.2f}"
        )
        lines.append(
            f"EMA8={ind.ema_value(8):.4f} EMA{trader.config.ema_long}={ind.ema_value(trader.config.ema_long):.4f} "
            f"MACD={ind.macd:.4f}/{ind.macd_signal:.4f} hist={ind.macd_histogram:.4f} RSI={ind.rsi:.2f}"
        )
    pattern = trader.strategy.current_pattern()
    lines.append(f"Pattern: {pattern.name} dir={pattern.direction.name if pattern.direction else 'NONE'} "
                 f"conf={pattern.confidence:.2f}")
    if trader.last_delta is not None:
        d = trader.last_delta
        threshold = trader.strategy.delta_filter.threshold()
        lines.append(
            f"Delta: {d.value:.2f} buy={d.buy_volume:.2f} sell={d.sell_volume:.2f} "
            f"threshold={'n/a' if threshold is None else f'{threshold:.2f}'}"
        )
    if trader.last_result is not None:
        r = trader.last_result
        lines.append(f"Signal: {r.signal.value}" + (f" (rejected: {r.reason})" if r.reason else ""))
    for p in trader.positions.open_positions:
        upnl = "" if trader.last_price is None else f" uPnL={p.unrealized_pnl(trader.last_price):.4f}"
        lines.append(
            f"Open {p.side.name} qty={p.quantity} entry={p.entry_price:.4f} SL={p.stop_loss_price:.4f} "
            f"TP={p.take_profit_price:.4f} trail={'on' if p.trailing_enabled else 'off'} "
            f"{p.trailing_stop_price:.4f} bars={p.bars_held}{upnl}"
        )
    if balance is not None:
        lines.append(f"Balance: {balance:.4f} {trader.config.quote_asset}")
    return "\n".join(lines)
