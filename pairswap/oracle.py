"""Time-weighted average prices from a pair's price accumulators.

A pair only updates its accumulators when its reserves change, so reading
``price0_cumulative_last`` directly can be stale. ``current_cumulative_prices``
extends the stored values to the current block using the current reserves,
exactly as the pair would if it were synced now, without changing any state.

Two observations taken some time apart give the average price over the
interval:

    average = (cumulative(t2) - cumulative(t1)) / (t2 - t1)

Differences are taken modulo 2**256 and 2**32, so an accumulator or timestamp
that wrapped between the observations still yields the right average.
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction

from pairswap.math.uq112x112 import decode, encode_price
from pairswap.pair import TIMESTAMP_MODULUS, Pair
from pairswap.safe_int import S

__all__ = [
    "PriceObservation",
    "current_cumulative_prices",
    "observe",
    "time_weighted_average",
    "decode_uq112x112",
]

ACCUMULATOR_MODULUS = 2**256


@dataclass(frozen=True)
class PriceObservation:
    """Cumulative prices of a pair at one point in time."""

    timestamp: int
    price0_cumulative: int
    price1_cumulative: int


def current_cumulative_prices(pair: Pair) -> tuple[int, int, int]:
    """Cumulative prices as of the current block.

    Returns:
        Tuple of (price0_cumulative, price1_cumulative, block_timestamp) with
        the timestamp reduced modulo 2**32
    """
    block_timestamp = pair.chain.timestamp % TIMESTAMP_MODULUS
    price0_cumulative = pair.price0_cumulative_last
    price1_cumulative = pair.price1_cumulative_last

    reserve0, reserve1, block_timestamp_last = pair.get_reserves()
    if block_timestamp_last != block_timestamp and reserve0 != 0 and reserve1 != 0:
        time_elapsed = (block_timestamp - block_timestamp_last) % TIMESTAMP_MODULUS
        price0, price1 = encode_price(reserve0, reserve1)
        price0_cumulative = S(price0_cumulative).wrapping_add(S(price0) * time_elapsed).value
        price1_cumulative = S(price1_cumulative).wrapping_add(S(price1) * time_elapsed).value

    return price0_cumulative, price1_cumulative, block_timestamp


def observe(pair: Pair) -> PriceObservation:
    """Snapshot the pair's current cumulative prices."""
    price0_cumulative, price1_cumulative, timestamp = current_cumulative_prices(pair)
    return PriceObservation(
        timestamp=timestamp,
        price0_cumulative=price0_cumulative,
        price1_cumulative=price1_cumulative,
    )


def time_weighted_average(first: PriceObservation, second: PriceObservation) -> tuple[int, int]:
    """Average prices between two observations of the same pair.

    Args:
        first: Earlier observation
        second: Later observation

    Returns:
        Tuple of (price0_average, price1_average) as Q112.112 values

    Raises:
        ValueError: If no time passed between the observations
    """
    time_elapsed = (second.timestamp - first.timestamp) % TIMESTAMP_MODULUS
    if time_elapsed == 0:
        raise ValueError("Observations must be taken at different times")

    price0_delta = (second.price0_cumulative - first.price0_cumulative) % ACCUMULATOR_MODULUS
    price1_delta = (second.price1_cumulative - first.price1_cumulative) % ACCUMULATOR_MODULUS
    return price0_delta // time_elapsed, price1_delta // time_elapsed


def decode_uq112x112(value: int) -> Fraction:
    """Exact rational value of a Q112.112 price."""
    return decode(value)
