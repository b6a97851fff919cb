"""Position lifecycle: entry tracking, trailing stop, exits, realized PnL."""

from pvd_bot.position.manager import (
    PositionManager,
    PositionError,
    ExitSignal,
    estimate_trading_fee,
)

__all__ = ["PositionManager", "PositionError", "ExitSignal", "estimate_trading_fee"]
