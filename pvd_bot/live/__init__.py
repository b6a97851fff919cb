"""Live trading: per-instrument trader and multi-instrument monitor."""

from pvd_bot.live.trader import InstrumentTrader, describe_status, make_delta_estimator
from pvd_bot.live.monitor import MultiInstrumentMonitor, resolve_symbols

__all__ = [
    "InstrumentTrader",
    "describe_status",
    "make_delta_estimator",
    "MultiInstrumentMonitor",
    "resolve_symbols",
]
