"""
Order-flow delta: estimators and the significance filter.

Both estimators report delta in raw base-asset volume units, so the dynamic
and absolute thresholds share one scale.

- CandleDeltaEstimator: OHLCV-only heuristic, used when no trade data exists.
- TradeDeltaEstimator: signed trade volume, buy aggressor at/above the ask,
  sell aggressor at/below the bid, over the last N ticks or seconds up to
  the bar close.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from collections import deque
from datetime import timedelta
from typing import Deque, List, Optional, Sequence

from pvd_bot.core.types import Bar, DeltaSample, Quote, SignalSide, TradeTick
from pvd_bot.signals.base import FilterResult

CLOSE_LOCATION_WEIGHT = 0.3


class DeltaEstimator(ABC):
    """Per-bar buy/sell aggression estimate. Swappable without touching the strategy."""

    uses_trades = False

    @abstractmethod
    def estimate(
        self,
        bar: Bar,
        trades: Sequence[TradeTick] = (),
        quote: Optional[Quote] = None,
    ) -> DeltaSample:
        pass


class CandleDeltaEstimator(DeltaEstimator):
    """
    Split bar volume by where the close sits in the range, biased by candle color:
    up candle buy share = 0.5 + 0.3 * (close - low) / range. Flat range splits 50/50.
    """

    def estimate(
        self,
        bar: Bar,
        trades: Sequence[TradeTick] = (),
        quote: Optional[Quote] = None,
    ) -> DeltaSample:
        if bar.range <= 0:
            half = bar.volume * 0.5
            return DeltaSample(value=0.0, buy_volume=half, sell_volume=half)
        location = (bar.close - bar.low) / bar.range
        skew = location * CLOSE_LOCATION_WEIGHT
        if bar.close > bar.open:
            buy = bar.volume * (0.5 + skew)
            sell = bar.volume * (0.5 - skew)
        else:
            buy = bar.volume * (0.5 - skew)
            sell = bar.volume * (0.5 + skew)
        return DeltaSample(value=buy - sell, buy_volume=buy, sell_volume=sell)


class TradeDeltaEstimator(DeltaEstimator):
    """Sum signed trade volume over a trailing window of ticks (and optionally seconds)."""

    uses_trades = True

    def __init__(self, lookback_ticks: int = 40, window_seconds: Optional[float] = None):
        self.lookback_ticks = lookback_ticks
        self.window_seconds = window_seconds

    def window(self, trades: Sequence[TradeTick]) -> Sequence[TradeTick]:
        selected = list(trades)
        if self.window_seconds:
            if selected:
                cutoff = selected[-1].time - timedelta(seconds=self.window_seconds)
                selected = [t for t in selected if t.time >= cutoff]
        if self.lookback_ticks > 0:
            selected = selected[-self.lookback_ticks:]
        return selected

    def bar_trades(self, bar: Bar, trades: Sequence[TradeTick]) -> List[TradeTick]:
        """Trades up to the bar close; without a seconds window, also not before its open."""
        selected = [t for t in trades if t.time <= bar.end_time]
        if not self.window_seconds:
            selected = [t for t in selected if t.time >= bar.start_time]
        return selected

    def estimate(
        self,
        bar: Bar,
        trades: Sequence[TradeTick] = (),
        quote: Optional[Quote] = None,
    ) -> DeltaSample:
        if quote is None:
            return DeltaSample(value=0.0, buy_volume=0.0, sell_volume=0.0)
        buy = 0.0
        sell = 0.0
        for t in self.window(self.bar_trades(bar, trades)):
            if t.price >= quote.ask:
                buy += t.quantity
            elif t.price <= quote.bid:
                sell += t.quantity
        return DeltaSample(value=buy - sell, buy_volume=buy, sell_volume=sell)


class DeltaFilter:
    """
    Holds the bounded delta history and checks the current sample against
    a dynamic (mean |delta| x multiplier) or absolute threshold.
    """

    def __init__(
        self,
        mode: str = "dynamic",
        dynamic_multiplier: float = 0.8,
        absolute_threshold: float = 100.0,
        min_samples: int = 10,
        history_size: int = 100,
    ):
        if mode not in ("dynamic", "absolute"):
            raise ValueError(f"Unsupported delta threshold mode: {mode}")
        self.mode = mode
        self.dynamic_multiplier = dynamic_multiplier
        self.absolute_threshold = absolute_threshold
        self.min_samples = min_samples
        self.history: Deque[DeltaSample] = deque(maxlen=history_size)

    def record(self, sample: DeltaSample) -> None:
        self.history.append(sample)

    @property
    def latest(self) -> Optional[DeltaSample]:
        return self.history[-1] if self.history else None

    def threshold(self) -> Optional[float]:
        """Current threshold, or None while the dynamic history is too short."""
        if self.mode == "absolute":
            return self.absolute_threshold
        if len(self.history) < self.min_samples:
            return None
        mean_abs = sum(abs(s.value) for s in self.history) / len(self.history)
        return mean_abs * self.dynamic_multiplier

    def check(self, sample: DeltaSample, direction: SignalSide) -> FilterResult:
        threshold = self.threshold()
        if threshold is None:
            return FilterResult(
                False,
                f"delta: history {len(self.history)}/{self.min_samples} samples",
                sample.value,
            )
        if direction is SignalSide.LONG and sample.value >= threshold:
            return FilterResult(True, "", sample.value, threshold)
        if direction is SignalSide.SHORT and sample.value <= -threshold:
            return FilterResult(True, "", sample.value, threshold)
        return FilterResult(
            False,
            f"delta {sample.value:.2f} vs threshold {threshold:.2f} against {direction.name}",
            sample.value,
            threshold,
        )
