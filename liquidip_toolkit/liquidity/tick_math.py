"""
Tick and liquidity math for concentrated-liquidity pools.

Prices are tracked as Q64.96 fixed-point square roots, ``sqrt(1.0001 ** tick) * 2**96``.
Computation runs in Decimal at 80 significant digits and is floored to
integers, which keeps results deterministic across platforms.
"""

from decimal import ROUND_FLOOR, Decimal, localcontext
from typing import Tuple

MIN_TICK = -887272
MAX_TICK = 887272

Q96 = 2**96
_PRECISION = 80
_TICK_BASE = Decimal("1.0001")


def _check_tick(tick: int) -> None:
    if not MIN_TICK <= tick <= MAX_TICK:
        raise ValueError(f"Tick {tick} outside [{MIN_TICK}, {MAX_TICK}]")


def get_sqrt_price_at_tick(tick: int) -> int:
    """Q64.96 square-root price at ``tick``, rounded down."""
    _check_tick(tick)
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        sqrt_ratio = (_TICK_BASE ** tick).sqrt()
        return int((sqrt_ratio * Q96).to_integral_value(rounding=ROUND_FLOOR))


MIN_SQRT_PRICE = get_sqrt_price_at_tick(MIN_TICK)
MAX_SQRT_PRICE = get_sqrt_price_at_tick(MAX_TICK)


def get_tick_at_sqrt_price(sqrt_price_x96: int) -> int:
    """Greatest tick whose square-root price is <= ``sqrt_price_x96``."""
    if not MIN_SQRT_PRICE <= sqrt_price_x96 <= MAX_SQRT_PRICE:
        raise ValueError(f"Sqrt price {sqrt_price_x96} outside tick range")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        price = (Decimal(sqrt_price_x96) / Q96) ** 2
        estimate = price.ln() / _TICK_BASE.ln()
        tick = int(estimate.to_integral_value(rounding=ROUND_FLOOR))

    tick = max(MIN_TICK, min(MAX_TICK, tick))
    # Decimal log can land one tick off around exact boundaries
    while tick < MAX_TICK and get_sqrt_price_at_tick(tick + 1) <= sqrt_price_x96:
        tick += 1
    while tick > MIN_TICK and get_sqrt_price_at_tick(tick) > sqrt_price_x96:
        tick -= 1
    return tick


def align_to_grid(tick: int, spacing: int) -> int:
    """Round ``tick`` down to a multiple of ``spacing`` (toward negative infinity)."""
    if spacing <= 0:
        raise ValueError(f"Tick spacing must be positive, got {spacing}")
    return (tick // spacing) * spacing


def is_aligned(tick: int, spacing: int) -> bool:
    return align_to_grid(tick, spacing) == tick


def _range_prices(tick_lower: int, tick_upper: int) -> Tuple[int, int]:
    if tick_lower >= tick_upper:
        raise ValueError(
            f"Empty range: lower tick {tick_lower} >= upper tick {tick_upper}"
        )
    return get_sqrt_price_at_tick(tick_lower), get_sqrt_price_at_tick(tick_upper)


def liquidity_for_amount0(sqrt_a: int, sqrt_b: int, amount0: int) -> int:
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a
    intermediate = sqrt_a * sqrt_b // Q96
    return amount0 * intermediate // (sqrt_b - sqrt_a)


def liquidity_for_amount1(sqrt_a: int, sqrt_b: int, amount1: int) -> int:
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a
    return amount1 * Q96 // (sqrt_b - sqrt_a)


def compute_liquidity(
    tick_lower: int,
    tick_upper: int,
    amount: int,
    amount_is_token0: bool,
    withdraw: bool = False,
) -> int:
    """
    Liquidity of a single-sided deposit of ``amount`` over ``[tick_lower, tick_upper)``.

    Token0 deposits sit entirely above the price, token1 deposits entirely
    below it. The result is negated when ``withdraw`` is set so it can be
    passed straight to the venue as a liquidity delta.
    """
    if amount < 0:
        raise ValueError(f"Amount must be non-negative, got {amount}")
    sqrt_a, sqrt_b = _range_prices(tick_lower, tick_upper)
    if amount_is_token0:
        liquidity = liquidity_for_amount0(sqrt_a, sqrt_b, amount)
    else:
        liquidity = liquidity_for_amount1(sqrt_a, sqrt_b, amount)
    return -liquidity if withdraw else liquidity


def amount0_for_liquidity(sqrt_a: int, sqrt_b: int, liquidity: int) -> int:
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a
    return (liquidity * Q96 * (sqrt_b - sqrt_a) // sqrt_b) // sqrt_a


def amount1_for_liquidity(sqrt_a: int, sqrt_b: int, liquidity: int) -> int:
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a
    return liquidity * (sqrt_b - sqrt_a) // Q96


def amounts_for_liquidity(
    sqrt_price_x96: int, tick_lower: int, tick_upper: int, liquidity: int
) -> Tuple[int, int]:
    """Token amounts backing ``liquidity`` over a range at the given price."""
    sqrt_a, sqrt_b = _range_prices(tick_lower, tick_upper)
    if sqrt_price_x96 <= sqrt_a:
        return amount0_for_liquidity(sqrt_a, sqrt_b, liquidity), 0
    if sqrt_price_x96 < sqrt_b:
        return (
            amount0_for_liquidity(sqrt_price_x96, sqrt_b, liquidity),
            amount1_for_liquidity(sqrt_a, sqrt_price_x96, liquidity),
        )
    return 0, amount1_for_liquidity(sqrt_a, sqrt_b, liquidity)
