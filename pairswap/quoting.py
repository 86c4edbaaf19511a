"""Single-pair quoting math.

Callers use these to size deposits and swaps before sending assets to a pair.
All functions round the way the pair does, so an exact-input quote can be
passed straight to ``Pair.swap`` and an exact-output quote always pays enough.

Formulas with the default 0.3% fee:
    amount_out = (in * 997 * res_out) / (res_in * 1000 + in * 997)
    amount_in  = (res_in * out * 1000) / ((res_out - out) * 997) + 1
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pairswap.address import sort_tokens
from pairswap.config import DEFAULT_PAIR_CONFIG, PairConfig
from pairswap.models.types import normalize_address
from pairswap.safe_int import S

if TYPE_CHECKING:
    from pairswap.factory import PairFactory

__all__ = [
    "sort_tokens",
    "get_reserves",
    "quote",
    "get_amount_out",
    "get_amount_in",
]


def get_reserves(factory: PairFactory, token_a: str, token_b: str) -> tuple[int, int]:
    """Reserves of the pair for two tokens, ordered as (reserve_a, reserve_b).

    Raises:
        LookupError: If no pair exists for the tokens
    """
    pair = factory.get_pair(token_a, token_b)
    if pair is None:
        raise LookupError(f"No pair for {token_a}/{token_b}")
    token0, _ = sort_tokens(token_a, token_b)
    reserve0, reserve1, _ = pair.get_reserves()
    if token0 == normalize_address(token_a):
        return reserve0, reserve1
    return reserve1, reserve0


def quote(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """Amount of B worth amount_a of A at the current reserve ratio (no fee).

    Used to size the second side of a deposit.

    Raises:
        ValueError: If amount_a is zero or either reserve is empty
    """
    if amount_a <= 0:
        raise ValueError(f"Quote amount must be positive: {amount_a}")
    if reserve_a <= 0 or reserve_b <= 0:
        raise ValueError(f"Reserves must be positive: ({reserve_a}, {reserve_b})")
    return (S(amount_a) * reserve_b // reserve_a).value


def get_amount_out(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    config: PairConfig = DEFAULT_PAIR_CONFIG,
) -> int:
    """Largest output a pair pays for an exact input.

    Args:
        amount_in: Input token amount
        reserve_in: Reserve of the input token
        reserve_out: Reserve of the output token
        config: Fee policy of the pair

    Returns:
        Output token amount

    Raises:
        ValueError: If amount_in is zero or either reserve is empty
    """
    if amount_in <= 0:
        raise ValueError(f"Input amount must be positive: {amount_in}")
    if reserve_in <= 0 or reserve_out <= 0:
        raise ValueError(f"Reserves must be positive: ({reserve_in}, {reserve_out})")

    amount_in_with_fee = S(amount_in) * config.fee_multiplier
    numerator = amount_in_with_fee * S(reserve_out)
    denominator = S(reserve_in) * config.fee_denominator + amount_in_with_fee
    return (numerator // denominator).value


def get_amount_in(
    amount_out: int,
    reserve_in: int,
    reserve_out: int,
    config: PairConfig = DEFAULT_PAIR_CONFIG,
) -> int:
    """Smallest input a pair accepts for an exact output.

    Args:
        amount_out: Desired output token amount
        reserve_in: Reserve of the input token
        reserve_out: Reserve of the output token
        config: Fee policy of the pair

    Returns:
        Required input token amount

    Raises:
        ValueError: If amount_out is zero, either reserve is empty, or the
            output would drain the reserve
    """
    if amount_out <= 0:
        raise ValueError(f"Output amount must be positive: {amount_out}")
    if reserve_in <= 0 or reserve_out <= 0:
        raise ValueError(f"Reserves must be positive: ({reserve_in}, {reserve_out})")
    if amount_out >= reserve_out:
        raise ValueError(f"Output {amount_out} would drain reserve {reserve_out}")

    # Rounded up by adding one after floor division
    numerator = S(reserve_in) * S(amount_out) * config.fee_denominator
    denominator = (S(reserve_out) - S(amount_out)) * config.fee_multiplier
    return ((numerator // denominator) + S(1)).value
