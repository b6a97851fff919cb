"""
Position lifecycle: OPEN -> CLOSED, never reopened.

On each price update an open position advances its bar count and price
extremes, arms the trailing stop once half of the take-profit distance is
reached, ratchets it in the position's favor only, and is checked for exits in
priority order: take profit, trailing stop, static stop loss, timeout.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pvd_bot.analytics.metrics import TradeStats, summarize
from pvd_bot.core.types import ExitReason, Position, PositionStatus, SignalSide

logger = logging.getLogger("pvd_bot.position")


class PositionError(ValueError):
    """Unknown, duplicate or already closed position id."""


@dataclass(frozen=True)
class ExitSignal:
    position_id: str
    reason: ExitReason
    price: float


def estimate_trading_fee(position: Position, exit_price: float, fee_bps: float) -> float:
    """Entry plus exit notional at ``fee_bps``."""
    return (position.entry_price + exit_price) * position.quantity * fee_bps / 10000.0


class PositionManager:
    """Owns the positions of one instrument. Only its owning trader mutates it."""

    def __init__(
        self,
        symbol: str,
        max_open_positions: int = 1,
        trailing_enabled: bool = True,
        trailing_pct: float = 0.2,
        trailing_activation: float = 0.5,
        max_hold_bars: int = 12,
    ):
        self.symbol = symbol
        self.max_open_positions = max_open_positions
        self.trailing_enabled = trailing_enabled
        self.trailing_fraction = trailing_pct / 100.0
        self.trailing_activation = trailing_activation
        self.max_hold_bars = max_hold_bars
        self._open: Dict[str, Position] = {}
        self._closed: List[Position] = []
        self.total_pnl: float = 0.0

    @property
    def open_positions(self) -> List[Position]:
        return list(self._open.values())

    @property
    def closed_positions(self) -> List[Position]:
        return list(self._closed)

    def get(self, position_id: str) -> Optional[Position]:
        if position_id in self._open:
            return self._open[position_id]
        for p in self._closed:
            if p.position_id == position_id:
                return p
        return None

    def can_open(self) -> bool:
        return len(self._open) < self.max_open_positions

    def open(
        self,
        position_id: str,
        side: SignalSide,
        entry_price: float,
        quantity: float,
        stop_loss: float,
        take_profit: float,
        entry_time: Optional[datetime] = None,
    ) -> Position:
        """Track a position the exchange has already confirmed."""
        if self.get(position_id) is not None:
            raise PositionError(f"position {position_id} already exists")
        if quantity <= 0 or entry_price <= 0:
            raise PositionError(f"invalid position {position_id}: qty={quantity} entry={entry_price}")
        position = Position(
            position_id=position_id,
            symbol=self.symbol,
            side=side,
            entry_price=entry_price,
            quantity=quantity,
            stop_loss_price=stop_loss,
            take_profit_price=take_profit,
            trailing_stop_price=stop_loss,
            trailing_pct=self.trailing_fraction,
            max_hold_bars=self.max_hold_bars,
            entry_time=entry_time or datetime.now(timezone.utc),
            highest_price=entry_price,
            lowest_price=entry_price,
        )
        self._open[position_id] = position
        logger.info(
            "Opened %s %s id=%s qty=%.8f entry=%.6f SL=%.6f TP=%.6f",
            side.name, self.symbol, position_id, quantity, entry_price, stop_loss, take_profit,
        )
        return position

    def _advance(self, p: Position, price: float, bar_closed: bool) -> None:
        if bar_closed:
            p.bars_held += 1
        p.highest_price = max(p.highest_price, price)
        p.lowest_price = min(p.lowest_price, price)
        if not self.trailing_enabled:
            return

        if not p.trailing_enabled:
            profit = (price - p.entry_price) / p.entry_price * p.side.sign
            target = (p.take_profit_price - p.entry_price) / p.entry_price * p.side.sign
            if profit >= target * self.trailing_activation:
                p.trailing_enabled = True
                p.trailing_stop_price = price * (1 - p.trailing_pct * p.side.sign)
                logger.info(
                    "Trailing stop armed %s id=%s at %.6f (price %.6f)",
                    self.symbol, p.position_id, p.trailing_stop_price, price,
                )
                return

        if p.trailing_enabled:
            candidate = price * (1 - p.trailing_pct * p.side.sign)
            if p.side is SignalSide.LONG and candidate > p.trailing_stop_price:
                p.trailing_stop_price = candidate
            elif p.side is SignalSide.SHORT and candidate < p.trailing_stop_price:
                p.trailing_stop_price = candidate

    @staticmethod
    def _exit_reason(p: Position, price: float) -> Optional[ExitReason]:
        if p.side is SignalSide.LONG:
            if price >= p.take_profit_price:
                return ExitReason.TAKE_PROFIT
            if p.trailing_enabled and price <= p.trailing_stop_price:
                return ExitReason.TRAILING_STOP
            if price <= p.stop_loss_price:
                return ExitReason.STOP_LOSS
        else:
            if price <= p.take_profit_price:
                return ExitReason.TAKE_PROFIT
            if p.trailing_enabled and price >= p.trailing_stop_price:
                return ExitReason.TRAILING_STOP
            if price >= p.stop_loss_price:
                return ExitReason.STOP_LOSS
        if p.bars_held >= p.max_hold_bars:
            return ExitReason.TIMEOUT
        return None

    def on_price(self, price: float, bar_closed: bool = True) -> List[ExitSignal]:
        """
        Advance every open position to ``price`` and return the exits it triggers.
        Positions stay open until ``close`` is called with the fill.
        ``bar_closed`` is False for intra-bar health checks, which do not count bars.
        """
        exits: List[ExitSignal] = []
        for p in list(self._open.values()):
            self._advance(p, price, bar_closed)
            reason = self._exit_reason(p, price)
            if reason is not None:
                logger.info(
                    "Exit triggered %s id=%s reason=%s price=%.6f bars=%d",
                    self.symbol, p.position_id, reason.value, price, p.bars_held,
                )
                exits.append(ExitSignal(p.position_id, reason, price))
        return exits

    def close(
        self,
        position_id: str,
        exit_price: float,
        reason: ExitReason,
        trading_fee: float = 0.0,
        funding_fee: float = 0.0,
        exit_time: Optional[datetime] = None,
    ) -> Position:
        p = self._open.pop(position_id, None)
        if p is None:
            raise PositionError(f"position {position_id} is not open")
        p.status = PositionStatus.CLOSED
        p.exit_price = exit_price
        p.exit_time = exit_time or datetime.now(timezone.utc)
        p.exit_reason = reason
        p.trading_fee = trading_fee
        p.funding_fee = funding_fee
        p.pnl = (exit_price - p.entry_price) * p.quantity * p.side.sign - trading_fee - funding_fee
        p.pnl_pct = p.pnl / p.notional * 100.0 if p.notional else 0.0
        self._closed.append(p)
        self.total_pnl += p.pnl
        logger.info(
            "Closed %s %s id=%s reason=%s exit=%.6f pnl=%.4f (%.2f%%) fees=%.4f",
            p.side.name, self.symbol, position_id, reason.value, exit_price, p.pnl, p.pnl_pct, p.fees,
        )
        return p

    def stats(self) -> TradeStats:
        return summarize(self._closed, open_count=len(self._open))
