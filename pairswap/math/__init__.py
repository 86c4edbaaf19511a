"""Mathematical utilities for pair accounting.

- uq112x112: Q112.112 fixed-point encoding for accumulated prices
"""

from pairswap.math.uq112x112 import Q112, decode, encode, encode_price, uqdiv

__all__ = ["Q112", "decode", "encode", "encode_price", "uqdiv"]
