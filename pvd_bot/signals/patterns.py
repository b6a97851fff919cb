"""
Candlestick pattern detector.

Patterns are tried in a fixed order and the first one with a direction wins:
engulfing, hammer / inverted hammer, inside bar, breakout, momentum candle.
Inside bar is classified but never carries a direction.
"""

from __future__ import annotations
from typing import Sequence

from pvd_bot.core.types import Bar, PatternKind, PatternResult, SignalSide, NO_PATTERN

ENGULFING_CONFIDENCE = 0.8
HAMMER_CONFIDENCE = 0.7
BREAKOUT_CONFIDENCE = 0.75
MOMENTUM_CONFIDENCE = 0.7
SMALL_BODY_RATIO = 0.3


class PatternDetector:
    """Stateless; the caller supplies the bars to compare."""

    def __init__(self, h_ratio: float = 2.0, b_lookback: int = 5, m_ratio: float = 0.7):
        self.h_ratio = h_ratio
        self.b_lookback = b_lookback
        self.m_ratio = m_ratio

    def detect(self, current: Bar, previous: Bar, prior_bars: Sequence[Bar] = ()) -> PatternResult:
        """
        Classify ``current`` against ``previous``. ``prior_bars`` are the closed
        bars before ``current`` (oldest first) used for breakout detection.
        """
        if current.range <= 0:
            return NO_PATTERN
        for result in (
            self.engulfing(current, previous),
            self.hammer(current),
            self.inside_bar(current, previous),
            self.breakout(current, prior_bars),
            self.momentum(current),
        ):
            if result.actionable:
                return result
        return NO_PATTERN

    def classify(self, current: Bar, previous: Bar, prior_bars: Sequence[Bar] = ()) -> PatternResult:
        """Like detect, but reports a non-actionable inside bar instead of None."""
        result = self.detect(current, previous, prior_bars)
        if result.actionable:
            return result
        inside = self.inside_bar(current, previous)
        return inside if inside.kind is PatternKind.INSIDE_BAR else result

    def engulfing(self, current: Bar, previous: Bar) -> PatternResult:
        if current.body <= previous.body:
            return NO_PATTERN
        if current.is_bullish and previous.is_bearish:
            if current.open < previous.close and current.close > previous.open:
                return PatternResult(PatternKind.ENGULFING, SignalSide.LONG, ENGULFING_CONFIDENCE, "Bullish Engulfing")
        if current.is_bearish and previous.is_bullish:
            if current.open > previous.close and current.close < previous.open:
                return PatternResult(PatternKind.ENGULFING, SignalSide.SHORT, ENGULFING_CONFIDENCE, "Bearish Engulfing")
        return NO_PATTERN

    def hammer(self, candle: Bar) -> PatternResult:
        """Hammer and inverted hammer; both read as bullish reversals."""
        total = candle.range
        if total <= 0:
            return NO_PATTERN
        body = candle.body
        if body >= total * SMALL_BODY_RATIO or candle.close <= candle.midpoint:
            return NO_PATTERN
        if candle.lower_shadow >= body * self.h_ratio:
            return PatternResult(PatternKind.HAMMER, SignalSide.LONG, HAMMER_CONFIDENCE, "Hammer")
        if candle.upper_shadow >= body * self.h_ratio:
            return PatternResult(PatternKind.INVERTED_HAMMER, SignalSide.LONG, HAMMER_CONFIDENCE, "Inverted Hammer")
        return NO_PATTERN

    def inside_bar(self, current: Bar, previous: Bar) -> PatternResult:
        if current.high < previous.high and current.low > previous.low:
            return PatternResult(PatternKind.INSIDE_BAR, None, 0.0, "Inside Bar")
        return NO_PATTERN

    def breakout(self, current: Bar, prior_bars: Sequence[Bar]) -> PatternResult:
        if self.b_lookback <= 0 or len(prior_bars) < self.b_lookback or current.volume <= 0:
            return NO_PATTERN
        window = prior_bars[-self.b_lookback:]
        highest = max(b.high for b in window)
        lowest = min(b.low for b in window)
        if current.close > highest:
            return PatternResult(PatternKind.BREAKOUT, SignalSide.LONG, BREAKOUT_CONFIDENCE, "Breakout")
        if current.close < lowest:
            return PatternResult(PatternKind.BREAKOUT, SignalSide.SHORT, BREAKOUT_CONFIDENCE, "Breakout")
        return NO_PATTERN

    def momentum(self, candle: Bar) -> PatternResult:
        total = candle.range
        if total <= 0 or candle.volume <= 0 or candle.body < total * self.m_ratio:
            return NO_PATTERN
        if candle.is_bullish:
            return PatternResult(PatternKind.MOMENTUM, SignalSide.LONG, MOMENTUM_CONFIDENCE, "Momentum Candle")
        if candle.is_bearish:
            return PatternResult(PatternKind.MOMENTUM, SignalSide.SHORT, MOMENTUM_CONFIDENCE, "Momentum Candle")
        return NO_PATTERN
