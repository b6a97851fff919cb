"""Core: config, types, logging."""

from pvd_bot.core.config import load_config, Config
from pvd_bot.core.types import (
    Bar,
    IndicatorSet,
    MarketSnapshot,
    SignalSide,
    EntrySignal,
    PatternKind,
    PatternResult,
    DeltaSample,
    Position,
    PositionStatus,
    ExitReason,
)
from pvd_bot.core.logger import setup_logging

__all__ = [
    "load_config",
    "Config",
    "Bar",
    "IndicatorSet",
    "MarketSnapshot",
    "SignalSide",
    "EntrySignal",
    "PatternKind",
    "PatternResult",
    "DeltaSample",
    "Position",
    "PositionStatus",
    "ExitReason",
    "setup_logging",
]
