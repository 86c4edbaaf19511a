"""Fungible tokens: pooled assets and pair shares."""

from pairswap.token.base import ERC20, Asset, Token
from pairswap.token.share import PERMIT_TYPEHASH, ShareToken, permit_digest, permit_message

__all__ = [
    "Asset",
    "ERC20",
    "Token",
    "ShareToken",
    "PERMIT_TYPEHASH",
    "permit_digest",
    "permit_message",
]
