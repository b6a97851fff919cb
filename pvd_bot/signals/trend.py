"""Trend filter: only trade in the direction of the long EMA."""

from __future__ import annotations

from pvd_bot.core.types import MarketSnapshot, SignalSide
from pvd_bot.signals.base import FilterResult


class TrendFilter:
    def __init__(self, ema_period: int = 30):
        self.ema_period = ema_period

    def check(self, snapshot: MarketSnapshot, direction: SignalSide) -> FilterResult:
        ema = snapshot.indicators.ema_value(self.ema_period)
        close = snapshot.bar.close
        if ema <= 0:
            return FilterResult(False, f"trend: EMA{self.ema_period} unavailable", close, ema)
        if direction is SignalSide.LONG and close > ema:
            return FilterResult(True, "", close, ema)
        if direction is SignalSide.SHORT and close < ema:
            return FilterResult(True, "", close, ema)
        return FilterResult(
            False,
            f"trend: price {close:.4f} vs EMA{self.ema_period} {ema:.4f} against {direction.name}",
            close,
            ema,
        )
