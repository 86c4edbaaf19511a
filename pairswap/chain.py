"""In-process execution environment for contracts.

A Chain owns everything a contract call can observe or change:
- the block timestamp (moved forward explicitly by callers)
- the contracts deployed at each address
- the append-only event log

State-changing contract methods run inside ``Chain.atomic()`` frames. A
contract's storage is snapshotted the first time one of its ``@atomic``
methods runs within a frame, so a call only copies the contracts it touches.
If a frame exits with an exception, the touched contracts, the set of deployed
contracts, the address allocator and the event log are restored to how they
were when the frame opened, then the exception propagates. Frames nest: a
failing inner call only rolls back its own effects, and an outer call that
lets the error escape rolls back everything.

Contract storage may only change inside the contract's own ``@atomic``
methods. Snapshots never copy contracts or the chain itself, so a reference
one contract holds to another stays live across a revert.
"""

from __future__ import annotations

import copy
import functools
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, ClassVar, TypeVar

import structlog
from eth_abi import encode  # type: ignore[attr-defined]
from web3 import Web3

from pairswap.constants import DEFAULT_CHAIN_ID
from pairswap.models.events import Event
from pairswap.models.types import normalize_address

logger = structlog.get_logger()

ContractT = TypeVar("ContractT", bound="Contract")
EventT = TypeVar("EventT", bound=Event)
F = TypeVar("F", bound=Callable[..., Any])


class Contract:
    """Base class for objects that live at an address on a Chain.

    Everything in ``vars(self)`` is contract storage and is captured by
    snapshots, except the attributes named in ``_transient``.
    """

    _transient: ClassVar[frozenset[str]] = frozenset({"chain", "address"})

    def __init__(self, chain: Chain, address: str | None = None) -> None:
        self.chain = chain
        self.address = chain.register(self, address)

    def __deepcopy__(self, memo: dict[int, Any]) -> Contract:
        # Contracts are identities; storage holding one keeps the live object
        return self

    def snapshot(self) -> dict[str, Any]:
        """Deep copy of this contract's storage."""
        return copy.deepcopy(
            {key: value for key, value in vars(self).items() if key not in self._transient}
        )

    def restore(self, state: dict[str, Any]) -> None:
        """Overwrite storage with a snapshot taken earlier.

        The snapshot is copied again, so it stays valid for later restores.
        """
        for key, value in copy.deepcopy(state).items():
            setattr(self, key, value)

    def emit(self, event: Event) -> None:
        self.chain.emit(event)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address})"


def atomic(method: F) -> F:
    """Run a contract method inside an all-or-nothing call frame."""

    @functools.wraps(method)
    def wrapper(self: Contract, *args: Any, **kwargs: Any) -> Any:
        with self.chain.atomic(self):
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


class Chain:
    """Block clock, contract directory and event log.

    Args:
        chain_id: Chain id bound into signed messages (default: 31337)
        timestamp: Starting block timestamp in seconds (default: now)
    """

    def __init__(self, chain_id: int = DEFAULT_CHAIN_ID, timestamp: int | None = None) -> None:
        self.chain_id = chain_id
        self.timestamp = int(time.time()) if timestamp is None else timestamp
        self.block_number = 0
        self.events: list[Event] = []
        self._contracts: dict[str, Contract] = {}
        self._address_nonce = 0
        # Open call frames, innermost last: address -> storage at frame entry
        self._frames: list[dict[str, dict[str, Any]]] = []

    def __deepcopy__(self, memo: dict[int, Any]) -> Chain:
        return self

    # --- Clock ---

    def mine(self, blocks: int = 1, block_time: int = 1) -> None:
        """Advance the block number and timestamp.

        Args:
            blocks: Number of blocks to mine
            block_time: Seconds between consecutive blocks
        """
        if blocks < 0 or block_time < 0:
            raise ValueError("blocks and block_time must be non-negative")
        self.block_number += blocks
        self.timestamp += blocks * block_time

    def advance_time(self, seconds: int) -> None:
        """Move the block timestamp forward without mining blocks."""
        if seconds < 0:
            raise ValueError(f"Cannot move time backwards: {seconds}")
        self.timestamp += seconds

    # --- Contract directory ---

    def new_address(self) -> str:
        """Allocate a fresh address for a contract deployed without CREATE2."""
        self._address_nonce += 1
        digest = Web3.keccak(encode(["uint256", "uint256"], [self.chain_id, self._address_nonce]))
        return "0x" + bytes(digest)[12:].hex()

    def register(self, contract: Contract, address: str | None = None) -> str:
        """Deploy a contract at an address (allocated if not given).

        Raises:
            ValueError: If the address is invalid or already in use
        """
        if address is None:
            address = self.new_address()
        address = normalize_address(address, validate=True)
        if address in self._contracts:
            raise ValueError(f"Address already in use: {address}")
        self._contracts[address] = contract
        return address

    def contract_at(self, address: str) -> Contract | None:
        """Return the contract deployed at an address, if any."""
        return self._contracts.get(normalize_address(address))

    def get_contract(self, address: str, kind: type[ContractT]) -> ContractT:
        """Return the contract at an address, checking its type.

        Raises:
            LookupError: If nothing is deployed there
            TypeError: If the contract is not an instance of kind
        """
        contract = self.contract_at(address)
        if contract is None:
            raise LookupError(f"No contract at {address}")
        if not isinstance(contract, kind):
            actual = type(contract).__name__
            raise TypeError(f"Contract at {address} is {actual}, not {kind.__name__}")
        return contract

    # --- Events ---

    def emit(self, event: Event) -> None:
        self.events.append(event)

    def events_of(self, kind: type[EventT], address: str | None = None) -> list[EventT]:
        """Return logged events of one type, optionally from one emitter."""
        emitter = normalize_address(address) if address is not None else None
        return [
            event
            for event in self.events
            if isinstance(event, kind) and (emitter is None or event.address == emitter)
        ]

    # --- Call frames ---

    def touch(self, contract: Contract) -> None:
        """Record a contract's storage in every open frame that lacks it.

        A contract only changes inside its own frames, so the first time a
        frame sees it, its storage is still what it was when the frame opened.
        """
        state: dict[str, Any] | None = None
        for frame in self._frames:
            if contract.address not in frame:
                if state is None:
                    state = contract.snapshot()
                frame[contract.address] = state

    @contextmanager
    def atomic(self, contract: Contract | None = None) -> Iterator[None]:
        """All-or-nothing call frame, opened on behalf of contract if given.

        On exception, restores the storage of every contract touched in the
        frame, the contract directory, the address allocator and the event
        log, then re-raises.
        """
        contracts = dict(self._contracts)
        event_count = len(self.events)
        address_nonce = self._address_nonce
        frame: dict[str, dict[str, Any]] = {}
        self._frames.append(frame)
        try:
            if contract is not None:
                self.touch(contract)
            yield
        except Exception as exc:
            self._contracts = contracts
            for address, state in frame.items():
                if address in contracts:
                    contracts[address].restore(state)
            del self.events[event_count:]
            self._address_nonce = address_nonce
            logger.debug("call_reverted", error=type(exc).__name__, depth=len(self._frames))
            raise
        finally:
            self._frames.pop()


__all__ = ["Chain", "Contract", "atomic"]
