"""
Risk manager: position sizing from balance and leverage, protective prices.

quantity = balance * leverage * max_position_pct / 100 / entry_price,
rounded down to the exchange lot step.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from pvd_bot.core.types import SignalSide
from pvd_bot.utils.exchange_filters import SymbolFilters, parse_symbol_filters, round_quantity

logger = logging.getLogger("pvd_bot.risk")


@dataclass
class SizingResult:
    """Result of sizing: allowed with a quantity, or rejected + reason."""
    allowed: bool
    quantity: float = 0.0
    reason: str = ""


def protective_prices(
    side: SignalSide,
    entry_price: float,
    stop_loss_pct: float,
    take_profit_pct: float,
) -> Tuple[float, float]:
    """Static (stop_loss, take_profit) from percent offsets around entry."""
    if side is SignalSide.LONG:
        return entry_price * (1 - stop_loss_pct / 100.0), entry_price * (1 + take_profit_pct / 100.0)
    return entry_price * (1 + stop_loss_pct / 100.0), entry_price * (1 - take_profit_pct / 100.0)


class RiskManager:
    """Sizes entries; a rejection means the entry is skipped for this bar."""

    def __init__(
        self,
        leverage: int = 1,
        max_position_pct: float = 2.0,
        min_notional: float = 5.0,
        symbol_info: Optional[dict] = None,
    ):
        self.leverage = max(1, leverage)
        self.max_position_pct = max_position_pct
        self.min_notional = min_notional
        self.filters: SymbolFilters = parse_symbol_filters(symbol_info)

    def update_symbol_info(self, symbol_info: Optional[dict]) -> None:
        """Update lot/price filters when exchange info changes."""
        self.filters = parse_symbol_filters(symbol_info)

    def size_position(self, balance: float, entry_price: float) -> SizingResult:
        if balance <= 0:
            return SizingResult(allowed=False, reason=f"non-positive balance {balance:.4f}")
        if entry_price <= 0:
            return SizingResult(allowed=False, reason=f"invalid entry price {entry_price}")

        capital = balance * self.leverage
        position_value = capital * self.max_position_pct / 100.0
        raw_qty = position_value / entry_price
        qty = round_quantity(raw_qty, self.filters.min_qty, self.filters.lot_step)
        logger.debug(
            "Sizing: balance=%.4f leverage=%dx max_pos=%.2f%% value=%.4f entry=%.6f qty=%.8f",
            balance, self.leverage, self.max_position_pct, position_value, entry_price, qty,
        )
        if qty <= 0:
            return SizingResult(allowed=False, reason=f"quantity {raw_qty:.8f} rounds to 0")

        notional = qty * entry_price
        min_notional = max(self.min_notional, self.filters.min_notional)
        if notional < min_notional:
            return SizingResult(allowed=False, reason=f"notional {notional:.2f} < min {min_notional:.2f}")

        return SizingResult(allowed=True, quantity=qty)
