"""Strategies: base interface and the pattern/volume/delta fusion."""

from pvd_bot.strategies.base import BaseStrategy
from pvd_bot.strategies.pattern_volume_delta import PatternVolumeDeltaStrategy, FusionResult

__all__ = ["BaseStrategy", "PatternVolumeDeltaStrategy", "FusionResult"]
