"""Tick and liquidity math."""

from .tick_math import (
    MAX_TICK,
    MIN_TICK,
    Q96,
    align_to_grid,
    amounts_for_liquidity,
    compute_liquidity,
    get_sqrt_price_at_tick,
    get_tick_at_sqrt_price,
    is_aligned,
)

__all__ = [
    "MAX_TICK",
    "MIN_TICK",
    "Q96",
    "align_to_grid",
    "amounts_for_liquidity",
    "compute_liquidity",
    "get_sqrt_price_at_tick",
    "get_tick_at_sqrt_price",
    "is_aligned",
]
