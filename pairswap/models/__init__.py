"""Typed records for pair events and shared field types."""

from pairswap.models.events import (
    Approval,
    Burn,
    Event,
    Mint,
    PairCreated,
    Swap,
    Sync,
    Transfer,
)
from pairswap.models.types import (
    ZERO_ADDRESS,
    Address,
    Uint256,
    address_bytes,
    is_valid_address,
    normalize_address,
)

__all__ = [
    # Events
    "Event",
    "PairCreated",
    "Mint",
    "Burn",
    "Swap",
    "Sync",
    "Transfer",
    "Approval",
    # Types
    "Address",
    "Uint256",
    "ZERO_ADDRESS",
    "address_bytes",
    "is_valid_address",
    "normalize_address",
]
