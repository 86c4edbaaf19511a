"""Deterministic pair address derivation.

Pair addresses follow the CREATE2 rule, so anyone can compute where the pair
for two tokens lives without asking the factory:

    keccak256(0xff ++ factory ++ keccak256(token0 ++ token1) ++ init_code_hash)[12:]

where (token0, token1) is the canonically sorted token pair.
"""

from __future__ import annotations

from web3 import Web3

from pairswap.constants import PAIR_CREATION_CODE
from pairswap.models.types import address_bytes, normalize_address

# Hash of the pair creation code (third CREATE2 input)
PAIR_INIT_CODE_HASH: bytes = bytes(Web3.keccak(PAIR_CREATION_CODE))


def sort_tokens(token_a: str, token_b: str) -> tuple[str, str]:
    """Return the two token addresses in canonical (ascending) order.

    Ordering is on the lowercase hex form, which matches byte order.

    Raises:
        ValueError: If either address is invalid
    """
    a = normalize_address(token_a, validate=True)
    b = normalize_address(token_b, validate=True)
    return (a, b) if a < b else (b, a)


def pair_salt(token_a: str, token_b: str) -> bytes:
    """CREATE2 salt for a token pair: keccak256 of the packed sorted tokens."""
    token0, token1 = sort_tokens(token_a, token_b)
    return bytes(Web3.keccak(address_bytes(token0) + address_bytes(token1)))


def create2_address(deployer: str, salt: bytes, init_code_hash: bytes) -> str:
    """Compute a CREATE2 address.

    Args:
        deployer: Address of the deploying contract
        salt: 32-byte salt
        init_code_hash: 32-byte hash of the creation code

    Returns:
        Lowercase 0x-prefixed address
    """
    if len(salt) != 32:
        raise ValueError(f"salt must be 32 bytes, got {len(salt)}")
    if len(init_code_hash) != 32:
        raise ValueError(f"init_code_hash must be 32 bytes, got {len(init_code_hash)}")
    digest = Web3.keccak(b"\xff" + address_bytes(deployer) + salt + init_code_hash)
    return "0x" + bytes(digest)[12:].hex()


def compute_pair_address(
    factory: str,
    token_a: str,
    token_b: str,
    init_code_hash: bytes = PAIR_INIT_CODE_HASH,
) -> str:
    """Compute the address of the pair for two tokens, offline.

    Token order does not matter: (a, b) and (b, a) give the same address.
    """
    return create2_address(factory, pair_salt(token_a, token_b), init_code_hash)


__all__ = [
    "PAIR_INIT_CODE_HASH",
    "sort_tokens",
    "pair_salt",
    "create2_address",
    "compute_pair_address",
]
