"""Indicators: EMA / MACD / RSI snapshots from closed bars."""

from pvd_bot.indicators.calculator import compute_indicators, build_snapshots, MIN_BARS

__all__ = ["compute_indicators", "build_snapshots", "MIN_BARS"]
