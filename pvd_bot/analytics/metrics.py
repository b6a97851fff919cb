"""
Trade statistics over closed positions: win rate, average win/loss,
profit factor, expectancy and max drawdown of the cumulative PnL curve.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from pvd_bot.core.types import Position


@dataclass
class TradeStats:
    """Aggregate statistics for one instrument (or several, merged)."""
    total_trades: int
    closed_trades: int
    open_trades: int
    total_pnl: float
    win_rate: float
    avg_win: float
    avg_loss: float
    profit_factor: float
    expectancy: float
    max_drawdown: float


def win_rate(pnls: Sequence[float]) -> float:
    """Fraction of trades with positive PnL."""
    if not pnls:
        return 0.0
    return sum(1 for p in pnls if p > 0) / len(pnls)


def profit_factor(pnls: Sequence[float]) -> float:
    """Gross profit / gross loss. inf when there are wins and no losses."""
    wins = sum(p for p in pnls if p > 0)
    losses = sum(-p for p in pnls if p < 0)
    if losses <= 0:
        return float("inf") if wins > 0 else 0.0
    return wins / losses


def expectancy(pnls: Sequence[float]) -> float:
    if not pnls:
        return 0.0
    return sum(pnls) / len(pnls)


def max_drawdown(pnls: Sequence[float]) -> float:
    """Largest peak-to-trough fall of cumulative PnL, in quote currency (<= 0)."""
    if not pnls:
        return 0.0
    equity = np.concatenate(([0.0], np.cumsum(np.asarray(pnls, dtype=float))))
    peak = np.maximum.accumulate(equity)
    return float(np.min(equity - peak))


def summarize(closed: Sequence["Position"], open_count: int = 0) -> TradeStats:
    pnls: List[float] = [p.pnl for p in closed]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]
    return TradeStats(
        total_trades=len(pnls) + open_count,
        closed_trades=len(pnls),
        open_trades=open_count,
        total_pnl=sum(pnls),
        win_rate=win_rate(pnls),
        avg_win=sum(wins) / len(wins) if wins else 0.0,
        avg_loss=sum(losses) / len(losses) if losses else 0.0,
        profit_factor=profit_factor(pnls),
        expectancy=expectancy(pnls),
        max_drawdown=max_drawdown(pnls),
    )


def format_stats(stats: TradeStats, quote_asset: str = "USDT") -> str:
    return "\n".join([
        f"Total trades: {stats.total_trades} (closed: {stats.closed_trades}, open: {stats.open_trades})",
        f"Total PnL: {stats.total_pnl:.4f} {quote_asset}",
        f"Win rate: {stats.win_rate * 100:.2f}%",
        f"Average win: {stats.avg_win:.4f} {quote_asset}",
        f"Average loss: {stats.avg_loss:.4f} {quote_asset}",
        f"Profit factor: {stats.profit_factor:.2f}",
        f"Expectancy: {stats.expectancy:.4f} {quote_asset}/trade",
        f"Max drawdown: {stats.max_drawdown:.4f} {quote_asset}",
    ])
