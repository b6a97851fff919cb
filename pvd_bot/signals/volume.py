"""
Volume filter: current bar volume against the trailing average of prior bars.
"""

from __future__ import annotations
from typing import Sequence

from pvd_bot.core.types import Bar
from pvd_bot.signals.base import FilterResult


class VolumeFilter:
    """Passes when current volume >= average(prior ``lookback`` bars) * ``multiplier``."""

    def __init__(self, lookback: int = 20, multiplier: float = 1.25):
        self.lookback = lookback
        self.multiplier = multiplier

    def average(self, prior_bars: Sequence[Bar]) -> float:
        window = prior_bars[-self.lookback:] if self.lookback > 0 else prior_bars
        if not window:
            return 0.0
        return sum(b.volume for b in window) / len(window)

    def check(self, current: Bar, prior_bars: Sequence[Bar]) -> FilterResult:
        if len(prior_bars) < 1:
            return FilterResult(False, "volume: no prior bars", current.volume)
        threshold = self.average(prior_bars) * self.multiplier
        if current.volume >= threshold:
            return FilterResult(True, "", current.volume, threshold)
        return FilterResult(
            False,
            f"volume {current.volume:.2f} < threshold {threshold:.2f} (avg x {self.multiplier:.2f})",
            current.volume,
            threshold,
        )
