"""Fungible token ledger.

ERC20 is the shared base of the pooled assets used in tests and demos
(``Token``) and of every pair's share token. Pairs only depend on the
``Asset`` protocol, so any object with the same two methods can be pooled.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pairswap.chain import Chain, Contract, atomic
from pairswap.constants import NULL_ADDRESS
from pairswap.errors import InsufficientAllowance, InsufficientBalance
from pairswap.models.events import Approval, Transfer
from pairswap.models.types import UINT256_MAX, normalize_address
from pairswap.safe_int import S


@runtime_checkable
class Asset(Protocol):
    """What a pair needs from a pooled asset."""

    def balance_of(self, holder: str) -> int:
        """Balance held by an address."""
        ...

    def transfer(self, to: str, value: int, *, sender: str) -> bool:
        """Move value from sender to to. Returns True on success."""
        ...


class ERC20(Contract):
    """Standard fungible token ledger.

    Attributes:
        name: Token name
        symbol: Token symbol
        decimals: Display decimals
        total_supply: Sum of all balances
    """

    def __init__(
        self,
        chain: Chain,
        name: str,
        symbol: str,
        decimals: int = 18,
        address: str | None = None,
    ) -> None:
        super().__init__(chain, address)
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.total_supply = 0
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}

    def balance_of(self, holder: str) -> int:
        return self._balances.get(normalize_address(holder), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    @atomic
    def approve(self, spender: str, value: int, *, sender: str) -> bool:
        self._approve(sender, spender, value)
        return True

    @atomic
    def transfer(self, to: str, value: int, *, sender: str) -> bool:
        self._transfer(sender, to, value)
        return True

    @atomic
    def transfer_from(self, owner: str, to: str, value: int, *, sender: str) -> bool:
        """Move value from owner to to, spending sender's allowance.

        An allowance of 2**256 - 1 is treated as unlimited and never decreases.

        Raises:
            InsufficientAllowance: If the allowance is below value
            InsufficientBalance: If owner's balance is below value
        """
        current = self.allowance(owner, sender)
        if current != UINT256_MAX:
            if current < value:
                raise InsufficientAllowance(
                    f"Allowance {current} of {sender} for {owner} is below {value}"
                )
            self._allowances[(normalize_address(owner), normalize_address(sender))] = (
                S(current) - value
            ).value
        self._transfer(owner, to, value)
        return True

    # --- Internal ledger operations ---

    def _mint(self, to: str, value: int) -> None:
        to = normalize_address(to, validate=True)
        amount = S(value).to_uint256()
        self.total_supply = (S(self.total_supply) + amount).to_uint256()
        self._balances[to] = self._balances.get(to, 0) + amount
        self.emit(Transfer(address=self.address, sender=NULL_ADDRESS, recipient=to, value=amount))

    def _burn(self, holder: str, value: int) -> None:
        holder = normalize_address(holder, validate=True)
        amount = S(value).to_uint256()
        balance = self._balances.get(holder, 0)
        if balance < amount:
            raise InsufficientBalance(f"Cannot burn {amount} from {holder}: balance {balance}")
        self._balances[holder] = balance - amount
        self.total_supply = (S(self.total_supply) - amount).value
        self.emit(
            Transfer(address=self.address, sender=holder, recipient=NULL_ADDRESS, value=amount)
        )

    def _transfer(self, sender: str, to: str, value: int) -> None:
        sender = normalize_address(sender, validate=True)
        to = normalize_address(to, validate=True)
        amount = S(value).to_uint256()
        balance = self._balances.get(sender, 0)
        if balance < amount:
            raise InsufficientBalance(
                f"Cannot transfer {amount} {self.symbol} from {sender}: balance {balance}"
            )
        self._balances[sender] = balance - amount
        self._balances[to] = self._balances.get(to, 0) + amount
        self.emit(Transfer(address=self.address, sender=sender, recipient=to, value=amount))

    def _approve(self, owner: str, spender: str, value: int) -> None:
        owner = normalize_address(owner, validate=True)
        spender = normalize_address(spender, validate=True)
        amount = S(value).to_uint256()
        self._allowances[(owner, spender)] = amount
        self.emit(Approval(address=self.address, owner=owner, spender=spender, value=amount))


class Token(ERC20):
    """Plain pooled asset with an optional initial supply and open minting.

    Args:
        chain: Chain to deploy on
        name: Token name
        symbol: Token symbol
        initial_supply: Amount minted to owner at deployment
        owner: Receiver of the initial supply
        decimals: Display decimals (default: 18)
        address: Fixed deployment address (default: allocated)
    """

    def __init__(
        self,
        chain: Chain,
        name: str,
        symbol: str,
        initial_supply: int = 0,
        owner: str | None = None,
        decimals: int = 18,
        address: str | None = None,
    ) -> None:
        super().__init__(chain, name, symbol, decimals, address)
        if initial_supply:
            if owner is None:
                raise ValueError("owner is required when initial_supply is non-zero")
            self._mint(owner, initial_supply)

    @atomic
    def mint(self, to: str, value: int) -> None:
        """Create value new tokens for to."""
        self._mint(to, value)


__all__ = ["Asset", "ERC20", "Token"]
