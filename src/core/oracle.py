"""
Cumulative-price reads for time-weighted averaging.

Pools only accumulate prices when they are touched. `current_cumulative_prices`
reports what the accumulators would read if the pool were updated right now,
without mutating it. Averaging over a window is left to the consumer:

    avg_price_a = (cum_a_t2 - cum_a_t1) % 2**256 // (t2 - t1)   # UQ112x112
"""

from __future__ import annotations

from typing import Tuple

from ..kernels.python.uq112x112 import price_cumulative_delta, to_u32, wrapping_add_u256, wrapping_sub_u32
from .pool import Pool


def current_block_timestamp(pool: Pool) -> int:
    return to_u32(pool.ctx.timestamp)


def current_cumulative_prices(pool: Pool) -> Tuple[int, int, int]:
    """Return (price_a_cumulative, price_b_cumulative, timestamp_u32) as of now."""
    now = current_block_timestamp(pool)
    price_a = pool.price_a_cumulative
    price_b = pool.price_b_cumulative

    reserve_a, reserve_b, last_update = pool.get_reserves()
    elapsed = wrapping_sub_u32(now, last_update)
    if elapsed > 0 and reserve_a != 0 and reserve_b != 0:
        price_a = wrapping_add_u256(price_a, price_cumulative_delta(reserve_b, reserve_a, elapsed))
        price_b = wrapping_add_u256(price_b, price_cumulative_delta(reserve_a, reserve_b, elapsed))
    return price_a, price_b, now
