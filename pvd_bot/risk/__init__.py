"""Risk management: position sizing and protective prices."""

from pvd_bot.risk.manager import RiskManager, SizingResult, protective_prices

__all__ = ["RiskManager", "SizingResult", "protective_prices"]
