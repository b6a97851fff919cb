"""
Pattern + Volume + Delta strategy for 1m bars.

Filters run in a fixed order and the first failure ends the evaluation:
pattern -> volume -> delta -> trend (optional). The failure reason is kept
in ``last_rejection`` for status output only.
"""

from __future__ import annotations
import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, TYPE_CHECKING

from pvd_bot.core.types import (
    Bar,
    DeltaSample,
    EntrySignal,
    MarketSnapshot,
    PatternResult,
    NO_PATTERN,
)
from pvd_bot.signals.delta import DeltaFilter
from pvd_bot.signals.patterns import PatternDetector
from pvd_bot.signals.trend import TrendFilter
from pvd_bot.signals.volume import VolumeFilter
from pvd_bot.strategies.base import BaseStrategy

if TYPE_CHECKING:
    from pvd_bot.core.config import Config

logger = logging.getLogger("pvd_bot.strategy")

SNAPSHOT_HISTORY = 200
DELTA_HISTORY = 100


@dataclass(frozen=True)
class FusionResult:
    signal: EntrySignal
    pattern: PatternResult = NO_PATTERN
    delta: Optional[DeltaSample] = None
    reason: str = ""

    @property
    def passed(self) -> bool:
        return self.signal is not EntrySignal.NONE


class PatternVolumeDeltaStrategy(BaseStrategy):
    """Fuses pattern, volume, delta and trend checks into one entry signal."""

    def __init__(
        self,
        pattern_detector: Optional[PatternDetector] = None,
        volume_filter: Optional[VolumeFilter] = None,
        delta_filter: Optional[DeltaFilter] = None,
        trend_filter: Optional[TrendFilter] = None,
        history_size: int = SNAPSHOT_HISTORY,
        verbose: bool = False,
    ):
        self.pattern_detector = pattern_detector or PatternDetector()
        self.volume_filter = volume_filter or VolumeFilter()
        self.delta_filter = delta_filter or DeltaFilter(history_size=DELTA_HISTORY)
        self.trend_filter = trend_filter
        self.history: Deque[MarketSnapshot] = deque(maxlen=history_size)
        self.verbose = verbose
        self.last_rejection: str = ""
        self.current_delta: Optional[DeltaSample] = None

    @classmethod
    def from_config(cls, config: "Config") -> "PatternVolumeDeltaStrategy":
        return cls(
            pattern_detector=PatternDetector(config.h_ratio, config.b_lookback, config.m_ratio),
            volume_filter=VolumeFilter(config.v_lookback, config.v_mult),
            delta_filter=DeltaFilter(
                mode=config.delta_thresh_mode,
                dynamic_multiplier=config.delta_dyn_mult,
                absolute_threshold=config.delta_thresh_abs,
                history_size=DELTA_HISTORY,
            ),
            trend_filter=TrendFilter(config.ema_long) if config.use_trend_filter else None,
            verbose=config.verbose_filters,
        )

    def append(self, snapshot: MarketSnapshot, delta: Optional[DeltaSample]) -> None:
        self.history.append(snapshot)
        # Delta of the latest bar only; a bar without a sample gets none
        self.current_delta = delta
        if delta is not None:
            self.delta_filter.record(delta)

    def _prior_bars(self) -> List[Bar]:
        return [s.bar for s in list(self.history)[:-1]]

    def current_pattern(self) -> PatternResult:
        """Classification of the latest bar, inside bars included."""
        if len(self.history) < 2:
            return NO_PATTERN
        current, previous = self.history[-1], self.history[-2]
        return self.pattern_detector.classify(current.bar, previous.bar, self._prior_bars())

    def _reject(self, reason: str, pattern: PatternResult = NO_PATTERN, delta: Optional[DeltaSample] = None) -> FusionResult:
        self.last_rejection = reason
        logger.log(logging.INFO if self.verbose else logging.DEBUG, "Filter rejected: %s", reason)
        return FusionResult(EntrySignal.NONE, pattern, delta, reason)

    def evaluate(self) -> FusionResult:
        if len(self.history) < 2:
            return self._reject(f"history {len(self.history)}/2 bars")
        current = self.history[-1]
        previous = self.history[-2]
        prior = self._prior_bars()

        pattern = self.pattern_detector.detect(current.bar, previous.bar, prior)
        if not pattern.actionable:
            return self._reject("pattern: none detected", pattern)
        direction = pattern.direction

        volume = self.volume_filter.check(current.bar, prior)
        if not volume:
            return self._reject(volume.reason, pattern)

        delta = self.current_delta
        if delta is None:
            return self._reject("delta: no sample", pattern)
        delta_check = self.delta_filter.check(delta, direction)
        if not delta_check:
            return self._reject(delta_check.reason, pattern, delta)

        if self.trend_filter is not None:
            trend = self.trend_filter.check(current, direction)
            if not trend:
                return self._reject(trend.reason, pattern, delta)

        self.last_rejection = ""
        signal = EntrySignal.for_side(direction)
        logger.info(
            "Entry signal %s | %s conf=%.2f | vol=%.2f | delta=%.2f",
            signal.value, pattern.name, pattern.confidence, current.bar.volume, delta.value,
        )
        return FusionResult(signal, pattern, delta, "")
