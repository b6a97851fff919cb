"""Lot size, tick size and min-notional helpers from exchange symbol info."""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SymbolFilters:
    min_qty: float = 0.001
    lot_step: float = 0.0001
    price_tick: float = 0.01
    min_notional: float = 0.0


def parse_symbol_filters(symbol_info: Optional[dict]) -> SymbolFilters:
    """
    Extract LOT_SIZE, PRICE_FILTER and MIN_NOTIONAL from a futures symbol entry.
    Falls back to defaults when symbol_info is None.
    """
    if not symbol_info:
        return SymbolFilters()
    defaults = SymbolFilters()
    min_qty, lot_step, price_tick, min_notional = (
        defaults.min_qty, defaults.lot_step, defaults.price_tick, defaults.min_notional,
    )
    for f in symbol_info.get("filters", []):
        kind = f.get("filterType")
        if kind == "LOT_SIZE":
            min_qty = float(f.get("minQty", min_qty))
            lot_step = float(f.get("stepSize", lot_step))
        elif kind == "PRICE_FILTER":
            price_tick = float(f.get("tickSize", price_tick))
        elif kind == "MIN_NOTIONAL":
            min_notional = float(f.get("notional", f.get("minNotional", min_notional)))
    return SymbolFilters(min_qty, lot_step, price_tick, min_notional)


def round_quantity(qty: float, min_qty: float, step_size: float) -> float:
    """Round down to step size; 0 if below min_qty."""
    if qty <= 0 or step_size <= 0:
        return 0.0
    # Small epsilon so 2.0 / 0.0001 does not floor to 19999
    rounded = math.floor(qty / step_size + 1e-9) * step_size
    if rounded < min_qty:
        return 0.0
    return round(rounded, 8)


def round_price(price: float, tick_size: float) -> float:
    """Round price to exchange tick."""
    if tick_size <= 0:
        return price
    return round(round(price / tick_size) * tick_size, 8)


def format_decimal(value: float) -> str:
    """Plain decimal string without exponent or trailing zeros."""
    text = f"{value:.8f}".rstrip("0").rstrip(".")
    return text or "0"
