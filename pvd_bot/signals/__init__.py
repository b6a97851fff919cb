"""Signals: pattern detector and the volume / delta / trend filters."""

from pvd_bot.signals.base import FilterResult
from pvd_bot.signals.patterns import PatternDetector
from pvd_bot.signals.volume import VolumeFilter
from pvd_bot.signals.delta import (
    DeltaEstimator,
    CandleDeltaEstimator,
    TradeDeltaEstimator,
    DeltaFilter,
)
from pvd_bot.signals.trend import TrendFilter

__all__ = [
    "FilterResult",
    "PatternDetector",
    "VolumeFilter",
    "DeltaEstimator",
    "CandleDeltaEstimator",
    "TradeDeltaEstimator",
    "DeltaFilter",
    "TrendFilter",
]
