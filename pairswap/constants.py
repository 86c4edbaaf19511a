"""Protocol constants for pairs and the pair factory."""

from pairswap.models.types import ZERO_ADDRESS, is_valid_address

# Shares permanently locked on a pair's first mint
MINIMUM_LIQUIDITY = 10**3


def _validate_address(name: str, address: str) -> str:
    """Validate and return a well-known address.

    Raises:
        ValueError: If the address is invalid
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid {name} address: {address} (must be 0x + 40 hex chars)")
    return address


NULL_ADDRESS = _validate_address("NULL_ADDRESS", ZERO_ADDRESS)

# Holder of the locked minimum liquidity. Nobody controls the null address, so
# the locked shares can never be burned.
LOCKED_LIQUIDITY_HOLDER = NULL_ADDRESS

# Share token metadata (identical for every pair)
SHARE_TOKEN_NAME = "Pairswap V2"
SHARE_TOKEN_SYMBOL = "PAIR-V2"
SHARE_TOKEN_DECIMALS = 18
SHARE_TOKEN_VERSION = "1"

# Stand-in for the pair contract's creation bytecode. Its hash is the third
# input of pair address derivation, so changing it moves every pair address.
PAIR_CREATION_CODE = b"pairswap:Pair:v2"

# Local development chain id
DEFAULT_CHAIN_ID = 31337
