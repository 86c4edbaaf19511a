"""Pairswap - constant-product liquidity pairs, simulated in-process."""

from pairswap.address import PAIR_INIT_CODE_HASH, compute_pair_address, sort_tokens
from pairswap.chain import Chain
from pairswap.config import DEFAULT_PAIR_CONFIG, PairConfig
from pairswap.factory import PairFactory
from pairswap.pair import FlashSwapCallee, Pair
from pairswap.token import ShareToken, Token

__version__ = "0.1.0"
__all__ = [
    "Chain",
    "PairFactory",
    "Pair",
    "FlashSwapCallee",
    "ShareToken",
    "Token",
    "PairConfig",
    "DEFAULT_PAIR_CONFIG",
    "PAIR_INIT_CODE_HASH",
    "compute_pair_address",
    "sort_tokens",
    "__version__",
]
