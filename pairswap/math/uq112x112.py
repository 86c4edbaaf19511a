"""Q112.112 binary fixed-point numbers.

A Q112.112 value is an unsigned integer whose low 112 bits are the fractional
part. The pair encodes instantaneous prices this way before integrating them
into the price accumulators, so the encoding here must match what an on-chain
consumer would compute bit for bit.

Range: [0, 2**112 - 1], resolution: 1 / 2**112.
"""

from __future__ import annotations

from fractions import Fraction

from pairswap.safe_int import UINT112_MAX, S, Uint256Overflow

__all__ = [
    # Constants
    "Q112",
    "UQ224_MAX",
    # Functions
    "encode",
    "uqdiv",
    "encode_price",
    "decode",
]

Q112 = 2**112

# Largest value a Q112.112 number can hold (224 bits)
UQ224_MAX = 2**224 - 1


def encode(y: int) -> int:
    """Encode a uint112 integer as a Q112.112 value.

    Raises:
        Uint256Overflow: If y does not fit in 112 bits
    """
    return S(y).to_uint112() * Q112


def uqdiv(x: int, y: int) -> int:
    """Divide a Q112.112 value by a uint112 integer, rounding down.

    Raises:
        DivisionByZero: If y is zero
    """
    if x > UQ224_MAX:
        raise Uint256Overflow(f"Value exceeds uq112x112 max: {x}")
    if y > UINT112_MAX:
        raise Uint256Overflow(f"Divisor exceeds uint112 max: {y}")
    return (S(x) // S(y)).value


def encode_price(reserve0: int, reserve1: int) -> tuple[int, int]:
    """Encode the two instantaneous prices of a pair.

    Returns:
        Tuple of (price0, price1) where price0 is token1 per token0 and
        price1 is token0 per token1, both as Q112.112 values.
    """
    return uqdiv(encode(reserve1), reserve0), uqdiv(encode(reserve0), reserve1)


def decode(x: int) -> Fraction:
    """Decode a Q112.112 value into an exact Fraction."""
    return Fraction(x, Q112)
