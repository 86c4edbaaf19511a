"""Pair share token with signature-based approvals (EIP-2612 permit).

An owner signs an EIP-712 ``Permit`` message off-chain; anyone can then submit
it to set the allowance without the owner sending a call. The signed digest
binds the token name, version, chain id and token address (the domain), the
owner's current nonce, and a deadline, so a signature is valid for one token,
one chain and one use, until the deadline.
"""

from __future__ import annotations

from typing import ClassVar

from eth_abi import encode  # type: ignore[attr-defined]
from eth_account import Account
from eth_account.messages import SignableMessage
from web3 import Web3

from pairswap.chain import Chain, atomic
from pairswap.constants import (
    SHARE_TOKEN_DECIMALS,
    SHARE_TOKEN_NAME,
    SHARE_TOKEN_SYMBOL,
    SHARE_TOKEN_VERSION,
)
from pairswap.errors import Expired, InvalidSignature
from pairswap.models.types import address_bytes, normalize_address
from pairswap.token.base import ERC20

EIP712_DOMAIN_TYPEHASH: bytes = bytes(
    Web3.keccak(
        text="EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
    )
)

PERMIT_TYPEHASH: bytes = bytes(
    Web3.keccak(
        text="Permit(address owner,address spender,uint256 value,uint256 nonce,uint256 deadline)"
    )
)


def domain_separator(
    name: str,
    chain_id: int,
    verifying_contract: str,
    version: str = SHARE_TOKEN_VERSION,
) -> bytes:
    """EIP-712 domain separator for a token deployment."""
    return bytes(
        Web3.keccak(
            encode(
                ["bytes32", "bytes32", "bytes32", "uint256", "address"],
                [
                    EIP712_DOMAIN_TYPEHASH,
                    bytes(Web3.keccak(text=name)),
                    bytes(Web3.keccak(text=version)),
                    chain_id,
                    address_bytes(verifying_contract),
                ],
            )
        )
    )


def permit_struct_hash(owner: str, spender: str, value: int, nonce: int, deadline: int) -> bytes:
    """hashStruct of a Permit message."""
    return bytes(
        Web3.keccak(
            encode(
                ["bytes32", "address", "address", "uint256", "uint256", "uint256"],
                [
                    PERMIT_TYPEHASH,
                    address_bytes(owner),
                    address_bytes(spender),
                    value,
                    nonce,
                    deadline,
                ],
            )
        )
    )


def permit_message(
    separator: bytes,
    owner: str,
    spender: str,
    value: int,
    nonce: int,
    deadline: int,
) -> SignableMessage:
    """EIP-712 signable Permit message (what the owner signs)."""
    return SignableMessage(
        version=b"\x01",
        header=separator,
        body=permit_struct_hash(owner, spender, value, nonce, deadline),
    )


def permit_digest(
    separator: bytes,
    owner: str,
    spender: str,
    value: int,
    nonce: int,
    deadline: int,
) -> bytes:
    """The 32-byte digest a Permit signature signs: keccak256(0x1901 ++ domain ++ struct)."""
    return bytes(
        Web3.keccak(
            b"\x19\x01" + separator + permit_struct_hash(owner, spender, value, nonce, deadline)
        )
    )


class ShareToken(ERC20):
    """Fungible share token with permit support.

    Name, symbol and decimals are the same for every pair; the domain
    separator differs per pair because it binds the pair's address.
    """

    PERMIT_TYPEHASH: ClassVar[bytes] = PERMIT_TYPEHASH

    def __init__(self, chain: Chain, address: str | None = None) -> None:
        super().__init__(
            chain,
            SHARE_TOKEN_NAME,
            SHARE_TOKEN_SYMBOL,
            SHARE_TOKEN_DECIMALS,
            address,
        )
        self._nonces: dict[str, int] = {}

    @property
    def domain_separator(self) -> bytes:
        return domain_separator(self.name, self.chain.chain_id, self.address)

    def nonces(self, owner: str) -> int:
        """Next permit nonce for owner."""
        return self._nonces.get(normalize_address(owner), 0)

    @atomic
    def permit(
        self,
        owner: str,
        spender: str,
        value: int,
        deadline: int,
        signature: bytes,
        *,
        sender: str | None = None,
    ) -> None:
        """Approve spender for value on behalf of owner, authorized by a signature.

        Args:
            owner: Account whose allowance is set
            spender: Account allowed to spend
            value: Allowance amount
            deadline: Last timestamp at which the signature is accepted
            signature: 65-byte (r, s, v) signature over the permit digest
            sender: Submitter of the permit (any account)

        Raises:
            Expired: If deadline is before the current block timestamp
            InvalidSignature: If the signature does not recover to owner
        """
        if deadline < self.chain.timestamp:
            raise Expired(f"Permit deadline {deadline} is before {self.chain.timestamp}")

        owner = normalize_address(owner, validate=True)
        nonce = self.nonces(owner)
        message = permit_message(self.domain_separator, owner, spender, value, nonce, deadline)
        try:
            recovered = Account.recover_message(message, signature=signature)
        except Exception as err:
            raise InvalidSignature(f"Malformed permit signature: {err}") from err

        if normalize_address(recovered) != owner:
            raise InvalidSignature(f"Permit signed by {recovered.lower()}, expected {owner}")

        self._nonces[owner] = nonce + 1
        self._approve(owner, spender, value)


__all__ = [
    "EIP712_DOMAIN_TYPEHASH",
    "PERMIT_TYPEHASH",
    "ShareToken",
    "domain_separator",
    "permit_digest",
    "permit_message",
    "permit_struct_hash",
]
