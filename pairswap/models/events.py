"""Event records emitted by factories, pairs and tokens.

Events are append-only log entries, not queryable state. Each record carries
the address of the contract that emitted it, followed by the event arguments
in their canonical order.
"""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict

from pairswap.models.types import Address, Uint256


class Event(BaseModel):
    """Base class for all emitted events."""

    # Name used in log output and for filtering
    name: ClassVar[str] = "Event"

    address: Address

    model_config = ConfigDict(frozen=True)


class PairCreated(Event):
    """A factory created a new pair.

    Tokens are reported in the order the caller supplied them.
    """

    name: ClassVar[str] = "PairCreated"

    token_a: Address
    token_b: Address
    pair: Address
    all_pairs_length: int


class Transfer(Event):
    """Token balance moved (mints come from, burns go to, the zero address)."""

    name: ClassVar[str] = "Transfer"

    sender: Address
    recipient: Address
    value: Uint256


class Approval(Event):
    """Allowance set by approve or permit."""

    name: ClassVar[str] = "Approval"

    owner: Address
    spender: Address
    value: Uint256


class Mint(Event):
    """Liquidity added to a pair."""

    name: ClassVar[str] = "Mint"

    sender: Address
    amount0: Uint256
    amount1: Uint256


class Burn(Event):
    """Liquidity removed from a pair."""

    name: ClassVar[str] = "Burn"

    sender: Address
    amount0: Uint256
    amount1: Uint256
    to: Address


class Swap(Event):
    """Swap settled against a pair."""

    name: ClassVar[str] = "Swap"

    sender: Address
    amount0_in: Uint256
    amount1_in: Uint256
    amount0_out: Uint256
    amount1_out: Uint256
    to: Address


class Sync(Event):
    """Reserves rewritten to match custodied balances."""

    name: ClassVar[str] = "Sync"

    reserve0: Uint256
    reserve1: Uint256


__all__ = [
    "Event",
    "PairCreated",
    "Transfer",
    "Approval",
    "Mint",
    "Burn",
    "Swap",
    "Sync",
]
