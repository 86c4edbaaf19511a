"""Error classes for factories, pairs and tokens.

Every failure aborts the whole call: the execution environment rolls back all
state touched by the call before the error reaches the caller.
"""


class PairswapError(Exception):
    """Base error for all pairswap operations."""

    pass


# =============================================================================
# Factory
# =============================================================================


class FactoryError(PairswapError):
    """Base error for pair creation and fee administration."""

    pass


class IdenticalAssets(FactoryError):
    """Both sides of a pair are the same asset."""

    pass


class ZeroAddress(FactoryError):
    """One side of a pair is the null address."""

    pass


class PairExists(FactoryError):
    """A pair already exists for this unordered asset pair."""

    pass


class Forbidden(FactoryError):
    """Caller is not the fee admin."""

    def __init__(self, caller: str, admin: str) -> None:
        super().__init__(f"{caller} is not the fee admin ({admin})")
        self.caller = caller
        self.admin = admin


# =============================================================================
# Pair
# =============================================================================


class PairError(PairswapError):
    """Base error for pair liquidity and swap operations."""

    pass


class Locked(PairError):
    """Reentrant call into a pair while another call is in flight."""

    pass


class InsufficientLiquidityMinted(PairError):
    """Deposit is too small to mint any shares."""

    pass


class InsufficientLiquidityBurned(PairError):
    """Burn would return zero of at least one asset."""

    pass


class InsufficientOutputAmount(PairError):
    """Swap requested no output."""

    pass


class InsufficientLiquidity(PairError):
    """Swap output would drain a reserve."""

    pass


class InvalidTo(PairError):
    """Swap recipient is one of the pair's own tokens."""

    pass


class InsufficientInputAmount(PairError):
    """Nothing was paid into the pair for a swap."""

    pass


class InvalidK(PairError):
    """Fee-adjusted constant product would decrease."""

    pass


class Overflow(PairError):
    """Balance does not fit in a 112-bit reserve."""

    pass


class TransferFailed(PairError):
    """Asset transfer out of the pair reported failure."""

    pass


class CallbackRequired(PairError):
    """Flash swap data was supplied but no callee could be resolved."""

    pass


# =============================================================================
# Token
# =============================================================================


class TokenError(PairswapError):
    """Base error for token balance and allowance operations."""

    pass


class InsufficientBalance(TokenError):
    """Transfer or burn exceeds the holder's balance."""

    pass


class InsufficientAllowance(TokenError):
    """transfer_from exceeds the spender's allowance."""

    pass


class Expired(TokenError):
    """Permit deadline has passed."""

    pass


class InvalidSignature(TokenError):
    """Permit signature does not recover to the owner."""

    pass


__all__ = [
    "PairswapError",
    "FactoryError",
    "IdenticalAssets",
    "ZeroAddress",
    "PairExists",
    "Forbidden",
    "PairError",
    "Locked",
    "InsufficientLiquidityMinted",
    "InsufficientLiquidityBurned",
    "InsufficientOutputAmount",
    "InsufficientLiquidity",
    "InvalidTo",
    "InsufficientInputAmount",
    "InvalidK",
    "Overflow",
    "TransferFailed",
    "CallbackRequired",
    "TokenError",
    "InsufficientBalance",
    "InsufficientAllowance",
    "Expired",
    "InvalidSignature",
]
