"""Analytics: closed-position statistics."""

from pvd_bot.analytics.metrics import (
    TradeStats,
    summarize,
    format_stats,
    win_rate,
    profit_factor,
    expectancy,
    max_drawdown,
)

__all__ = [
    "TradeStats",
    "summarize",
    "format_stats",
    "win_rate",
    "profit_factor",
    "expectancy",
    "max_drawdown",
]
