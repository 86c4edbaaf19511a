"""Fee policy configuration for pairs."""

import os
from dataclasses import dataclass

from pairswap.constants import MINIMUM_LIQUIDITY


@dataclass(frozen=True)
class PairConfig:
    """Centralized fee policy handed from a factory to every pair it creates.

    Attributes:
        swap_fee: Input fee numerator, charged on the paid-in side of a swap
            (default: 3, i.e. 0.3% with the default denominator)
        fee_denominator: Denominator for swap_fee (default: 1000)
        protocol_fee_denominator: The protocol receives 1/protocol_fee_denominator
            of fee growth when a fee recipient is set (default: 6)
        minimum_liquidity: Shares permanently locked on the first mint
            (default: 1000)
    """

    swap_fee: int = 3
    fee_denominator: int = 1000
    protocol_fee_denominator: int = 6
    minimum_liquidity: int = MINIMUM_LIQUIDITY

    def __post_init__(self) -> None:
        if self.fee_denominator <= 0:
            raise ValueError(f"fee_denominator must be positive: {self.fee_denominator}")
        if not (0 <= self.swap_fee < self.fee_denominator):
            raise ValueError(
                f"swap_fee must be in [0, {self.fee_denominator}): {self.swap_fee}"
            )
        if self.protocol_fee_denominator < 2:
            raise ValueError(
                f"protocol_fee_denominator must be at least 2: {self.protocol_fee_denominator}"
            )
        if self.minimum_liquidity <= 0:
            raise ValueError(f"minimum_liquidity must be positive: {self.minimum_liquidity}")

    @property
    def fee_multiplier(self) -> int:
        """Share of an input that counts towards the invariant (997 by default)."""
        return self.fee_denominator - self.swap_fee

    @property
    def protocol_fee_multiplier(self) -> int:
        """Weight of sqrt(k) in the protocol fee denominator (5 by default)."""
        return self.protocol_fee_denominator - 1

    @classmethod
    def from_env(cls) -> "PairConfig":
        """Build a config from environment variables, falling back to defaults.

        Variables:
        - PAIRSWAP_SWAP_FEE
        - PAIRSWAP_FEE_DENOMINATOR
        - PAIRSWAP_PROTOCOL_FEE_DENOMINATOR
        - PAIRSWAP_MINIMUM_LIQUIDITY
        """
        defaults = cls()
        return cls(
            swap_fee=int(os.environ.get("PAIRSWAP_SWAP_FEE", defaults.swap_fee)),
            fee_denominator=int(
                os.environ.get("PAIRSWAP_FEE_DENOMINATOR", defaults.fee_denominator)
            ),
            protocol_fee_denominator=int(
                os.environ.get(
                    "PAIRSWAP_PROTOCOL_FEE_DENOMINATOR", defaults.protocol_fee_denominator
                )
            ),
            minimum_liquidity=int(
                os.environ.get("PAIRSWAP_MINIMUM_LIQUIDITY", defaults.minimum_liquidity)
            ),
        )


# Default configuration instance
DEFAULT_PAIR_CONFIG = PairConfig()
