"""Constant-product pair ledger.

A Pair holds two pooled assets and issues shares against them. It never pulls
assets from callers: a caller first transfers assets to the pair's address,
then calls mint, burn, swap, skim or sync, and the pair works out what was
deposited by comparing its custodied balances with its stored reserves.

Every state-changing method:
- runs in an all-or-nothing chain frame (any error undoes the whole call)
- holds the pair's reentrancy lock for its full duration
- ends by writing custodied balances back into the reserves via ``_update``,
  which also integrates the previous prices into the price accumulators

Swap formula with the default 0.3% input fee:
    (balance0 * 1000 - amount0_in * 3) * (balance1 * 1000 - amount1_in * 3)
        >= reserve0 * reserve1 * 1000**2
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, ClassVar, Protocol, runtime_checkable

import structlog

from pairswap.chain import Chain, atomic
from pairswap.config import DEFAULT_PAIR_CONFIG, PairConfig
from pairswap.constants import LOCKED_LIQUIDITY_HOLDER
from pairswap.errors import (
    CallbackRequired,
    InsufficientInputAmount,
    InsufficientLiquidity,
    InsufficientLiquidityBurned,
    InsufficientLiquidityMinted,
    InsufficientOutputAmount,
    InvalidK,
    InvalidTo,
    Locked,
    Overflow,
    TransferFailed,
)
from pairswap.math.uq112x112 import encode_price
from pairswap.models.events import Burn, Mint, Swap, Sync
from pairswap.models.types import normalize_address
from pairswap.safe_int import S
from pairswap.token.base import Asset
from pairswap.token.share import ShareToken

if TYPE_CHECKING:
    from pairswap.factory import PairFactory

logger = structlog.get_logger()

# Block timestamps are stored in 32 bits
TIMESTAMP_MODULUS = 2**32


@runtime_checkable
class FlashSwapCallee(Protocol):
    """Receiver of a flash swap callback.

    Called after the pair has sent the requested outputs and before it checks
    payment. The callee must get enough input (or the borrowed outputs) back
    into the pair before returning, or the whole swap is undone.
    """

    def pairswap_call(self, sender: str, amount0: int, amount1: int, data: bytes) -> None: ...


FlashSwapCallback = Callable[[str, int, int, bytes], None]


class Pair(ShareToken):
    """Reserves, shares and price accumulators for one token pair.

    Attributes:
        factory: Address of the factory that created the pair
        token0: Lower-sorting token address
        token1: Higher-sorting token address
        config: Fee policy
        reserve0: Last synced balance of token0
        reserve1: Last synced balance of token1
        block_timestamp_last: Timestamp (mod 2**32) of the last reserve update
        price0_cumulative_last: Sum of Q112.112 token0 prices times seconds
        price1_cumulative_last: Sum of Q112.112 token1 prices times seconds
        k_last: reserve0 * reserve1 after the last liquidity event while the
            protocol fee is on, else zero
    """

    _transient: ClassVar[frozenset[str]] = ShareToken._transient | {"_unlocked"}

    def __init__(
        self,
        chain: Chain,
        address: str,
        factory: str,
        token0: str,
        token1: str,
        config: PairConfig = DEFAULT_PAIR_CONFIG,
    ) -> None:
        token0 = normalize_address(token0, validate=True)
        token1 = normalize_address(token1, validate=True)
        if token0 >= token1:
            raise ValueError(f"Tokens must be sorted and distinct: {token0}, {token1}")

        super().__init__(chain, address)
        self.factory = normalize_address(factory, validate=True)
        self.token0 = token0
        self.token1 = token1
        self.config = config

        self.reserve0 = 0
        self.reserve1 = 0
        self.block_timestamp_last = 0

        self.price0_cumulative_last = 0
        self.price1_cumulative_last = 0
        self.k_last = 0

        self._unlocked = True

    def get_reserves(self) -> tuple[int, int, int]:
        """Return (reserve0, reserve1, block_timestamp_last)."""
        return self.reserve0, self.reserve1, self.block_timestamp_last

    @contextmanager
    def _lock(self) -> Iterator[None]:
        if not self._unlocked:
            raise Locked(f"Pair {self.address} is locked")
        self._unlocked = False
        try:
            yield
        finally:
            self._unlocked = True

    # --- Collaborators ---

    def _factory(self) -> PairFactory:
        from pairswap.factory import PairFactory

        return self.chain.get_contract(self.factory, PairFactory)

    def _asset(self, token: str) -> Asset:
        contract = self.chain.contract_at(token)
        if not isinstance(contract, Asset):
            raise LookupError(f"No token contract at {token}")
        return contract

    def _balance(self, token: str) -> int:
        return self._asset(token).balance_of(self.address)

    def _safe_transfer(self, token: str, to: str, value: int) -> None:
        if not self._asset(token).transfer(to, value, sender=self.address):
            raise TransferFailed(f"Transfer of {value} {token} to {to} failed")

    # --- Accounting ---

    def _update(self, balance0: int, balance1: int, reserve0: int, reserve1: int) -> None:
        """Store balances as reserves and accumulate the previous prices.

        The accumulators integrate the prices that held since the last update,
        so reserve0/reserve1 must be the values from before this call.
        """
        if not (S(balance0).is_uint(112) and S(balance1).is_uint(112)):
            raise Overflow(f"Balances ({balance0}, {balance1}) exceed uint112")

        block_timestamp = self.chain.timestamp % TIMESTAMP_MODULUS
        # Wraps like the 32-bit subtraction it stands in for
        time_elapsed = (block_timestamp - self.block_timestamp_last) % TIMESTAMP_MODULUS
        if time_elapsed > 0 and reserve0 != 0 and reserve1 != 0:
            price0, price1 = encode_price(reserve0, reserve1)
            self.price0_cumulative_last = (
                S(self.price0_cumulative_last).wrapping_add(S(price0) * time_elapsed).value
            )
            self.price1_cumulative_last = (
                S(self.price1_cumulative_last).wrapping_add(S(price1) * time_elapsed).value
            )

        self.reserve0 = balance0
        self.reserve1 = balance1
        self.block_timestamp_last = block_timestamp
        self.emit(Sync(address=self.address, reserve0=balance0, reserve1=balance1))
        logger.debug(
            "reserves_synced",
            pair=self.address[-8:],
            reserve0=balance0,
            reserve1=balance1,
            time_elapsed=time_elapsed,
        )

    def _mint_fee(self, reserve0: int, reserve1: int) -> bool:
        """Mint the protocol's share of fee growth since the last liquidity event.

        Growth is measured on sqrt(k), so only fees count (deposits and
        withdrawals move k_last along with k). The protocol receives
        1/protocol_fee_denominator of that growth as newly minted shares.

        Returns:
            True if the protocol fee is on
        """
        fee_recipient = self._factory().fee_recipient
        fee_on = fee_recipient is not None
        k_last = self.k_last
        if fee_on:
            if k_last != 0:
                root_k = (S(reserve0) * S(reserve1)).isqrt()
                root_k_last = S(k_last).isqrt()
                if root_k > root_k_last:
                    numerator = S(self.total_supply) * (root_k - root_k_last)
                    denominator = root_k * self.config.protocol_fee_multiplier + root_k_last
                    liquidity = (numerator // denominator).value
                    if liquidity > 0:
                        self._mint(fee_recipient, liquidity)
                        logger.info(
                            "protocol_fee_minted",
                            pair=self.address[-8:],
                            recipient=fee_recipient,
                            liquidity=liquidity,
                        )
        elif k_last != 0:
            self.k_last = 0
        return fee_on

    # --- Liquidity ---

    @atomic
    def mint(self, to: str, *, sender: str) -> int:
        """Issue shares for the assets deposited since the last update.

        The first deposit mints sqrt(amount0 * amount1) shares, of which
        minimum_liquidity are locked forever. Later deposits mint the smaller
        of the two proportional amounts, so an unbalanced deposit donates its
        excess to existing holders.

        Args:
            to: Receiver of the new shares
            sender: Caller

        Returns:
            Number of shares minted to `to`

        Raises:
            InsufficientLiquidityMinted: If the deposit is worth no shares
        """
        with self._lock():
            reserve0, reserve1 = self.reserve0, self.reserve1
            balance0 = self._balance(self.token0)
            balance1 = self._balance(self.token1)
            amount0 = (S(balance0) - reserve0).value
            amount1 = (S(balance1) - reserve1).value

            fee_on = self._mint_fee(reserve0, reserve1)
            # Read after _mint_fee, which can increase the supply
            total_supply = self.total_supply
            minimum_liquidity = self.config.minimum_liquidity
            if total_supply == 0:
                root = (S(amount0) * S(amount1)).isqrt()
                if root <= minimum_liquidity:
                    raise InsufficientLiquidityMinted(
                        f"Initial deposit ({amount0}, {amount1}) does not exceed "
                        f"the {minimum_liquidity} locked shares"
                    )
                liquidity = (root - minimum_liquidity).value
                self._mint(LOCKED_LIQUIDITY_HOLDER, minimum_liquidity)
            else:
                liquidity = (
                    (S(amount0) * total_supply // reserve0)
                    .min(S(amount1) * total_supply // reserve1)
                    .value
                )

            if liquidity <= 0:
                raise InsufficientLiquidityMinted(
                    f"Deposit ({amount0}, {amount1}) mints no shares"
                )
            self._mint(to, liquidity)

            self._update(balance0, balance1, reserve0, reserve1)
            if fee_on:
                self.k_last = (S(self.reserve0) * self.reserve1).value
            self.emit(Mint(address=self.address, sender=sender, amount0=amount0, amount1=amount1))
            logger.info(
                "liquidity_minted",
                pair=self.address[-8:],
                to=to,
                amount0=amount0,
                amount1=amount1,
                liquidity=liquidity,
            )
            return liquidity

    @atomic
    def burn(self, to: str, *, sender: str) -> tuple[int, int]:
        """Redeem the shares held by the pair itself for both assets.

        Payouts are pro-rata to the current custodied balances, not the
        stored reserves, so assets donated directly to the pair are paid out
        with them.

        Args:
            to: Receiver of both assets
            sender: Caller

        Returns:
            Tuple of (amount0, amount1) sent to `to`

        Raises:
            InsufficientLiquidityBurned: If either payout rounds to zero
        """
        with self._lock():
            reserve0, reserve1 = self.reserve0, self.reserve1
            token0, token1 = self.token0, self.token1
            balance0 = self._balance(token0)
            balance1 = self._balance(token1)
            liquidity = self.balance_of(self.address)

            fee_on = self._mint_fee(reserve0, reserve1)
            total_supply = self.total_supply
            if total_supply == 0:
                raise InsufficientLiquidityBurned("Pair has no shares outstanding")
            amount0 = (S(liquidity) * balance0 // total_supply).value
            amount1 = (S(liquidity) * balance1 // total_supply).value
            if amount0 == 0 or amount1 == 0:
                raise InsufficientLiquidityBurned(
                    f"Burning {liquidity} shares pays ({amount0}, {amount1})"
                )

            self._burn(self.address, liquidity)
            self._safe_transfer(token0, to, amount0)
            self._safe_transfer(token1, to, amount1)
            balance0 = self._balance(token0)
            balance1 = self._balance(token1)

            self._update(balance0, balance1, reserve0, reserve1)
            if fee_on:
                self.k_last = (S(self.reserve0) * self.reserve1).value
            to = normalize_address(to)
            self.emit(
                Burn(address=self.address, sender=sender, amount0=amount0, amount1=amount1, to=to)
            )
            logger.info(
                "liquidity_burned",
                pair=self.address[-8:],
                to=to,
                liquidity=liquidity,
                amount0=amount0,
                amount1=amount1,
            )
            return amount0, amount1

    # --- Swaps ---

    @atomic
    def swap(
        self,
        amount0_out: int,
        amount1_out: int,
        to: str,
        data: bytes = b"",
        *,
        sender: str,
        callee: FlashSwapCallee | FlashSwapCallback | None = None,
    ) -> tuple[int, int]:
        """Send outputs to `to`, then require payment that keeps k from falling.

        Outputs are transferred before payment is checked. With non-empty
        `data`, the callee is invoked in between (a flash swap) and may use
        the outputs freely as long as the pair is paid before it returns.

        Args:
            amount0_out: Amount of token0 to send
            amount1_out: Amount of token1 to send
            to: Receiver of the outputs
            data: Opaque payload passed to the callee; empty means no callback
            sender: Caller
            callee: Flash swap receiver; defaults to the contract at `to`

        Returns:
            Tuple of (amount0_in, amount1_in) that paid for the swap

        Raises:
            InsufficientOutputAmount: If both outputs are zero
            InsufficientLiquidity: If an output is not below its reserve
            InvalidTo: If `to` is one of the pair's tokens
            CallbackRequired: If data is given but no callee can be found
            InsufficientInputAmount: If nothing was paid in
            InvalidK: If the fee-adjusted product would decrease
        """
        with self._lock():
            if amount0_out < 0 or amount1_out < 0:
                raise ValueError(f"Outputs must be non-negative: ({amount0_out}, {amount1_out})")
            if amount0_out == 0 and amount1_out == 0:
                raise InsufficientOutputAmount("Swap requests no output")
            reserve0, reserve1 = self.reserve0, self.reserve1
            if amount0_out >= reserve0 or amount1_out >= reserve1:
                raise InsufficientLiquidity(
                    f"Outputs ({amount0_out}, {amount1_out}) "
                    f"exceed reserves ({reserve0}, {reserve1})"
                )

            token0, token1 = self.token0, self.token1
            to = normalize_address(to, validate=True)
            if to in (token0, token1):
                raise InvalidTo(f"Cannot swap to pair token {to}")
            # Optimistic transfers
            if amount0_out > 0:
                self._safe_transfer(token0, to, amount0_out)
            if amount1_out > 0:
                self._safe_transfer(token1, to, amount1_out)
            if data:
                callback = self._resolve_callee(to, callee)
                logger.debug(
                    "flash_swap_callback",
                    pair=self.address[-8:],
                    to=to,
                    amount0_out=amount0_out,
                    amount1_out=amount1_out,
                )
                callback(sender, amount0_out, amount1_out, data)
            balance0 = self._balance(token0)
            balance1 = self._balance(token1)

            amount0_in = max(balance0 - (reserve0 - amount0_out), 0)
            amount1_in = max(balance1 - (reserve1 - amount1_out), 0)
            if amount0_in == 0 and amount1_in == 0:
                raise InsufficientInputAmount("Nothing was paid into the pair")

            fee_denominator = self.config.fee_denominator
            swap_fee = self.config.swap_fee
            balance0_adjusted = S(balance0) * fee_denominator - S(amount0_in) * swap_fee
            balance1_adjusted = S(balance1) * fee_denominator - S(amount1_in) * swap_fee
            if balance0_adjusted * balance1_adjusted < S(reserve0) * reserve1 * fee_denominator**2:
                raise InvalidK(
                    f"Swap ({amount0_in}, {amount1_in}) -> ({amount0_out}, {amount1_out}) "
                    f"decreases k"
                )

            self._update(balance0, balance1, reserve0, reserve1)
            self.emit(
                Swap(
                    address=self.address,
                    sender=sender,
                    amount0_in=amount0_in,
                    amount1_in=amount1_in,
                    amount0_out=amount0_out,
                    amount1_out=amount1_out,
                    to=to,
                )
            )
            logger.info(
                "swap_executed",
                pair=self.address[-8:],
                amount0_in=amount0_in,
                amount1_in=amount1_in,
                amount0_out=amount0_out,
                amount1_out=amount1_out,
                flash=bool(data),
            )
            return amount0_in, amount1_in

    def _resolve_callee(
        self,
        to: str,
        callee: FlashSwapCallee | FlashSwapCallback | None,
    ) -> FlashSwapCallback:
        target = callee if callee is not None else self.chain.contract_at(to)
        if isinstance(target, FlashSwapCallee):
            return target.pairswap_call
        if callable(target):
            return target
        raise CallbackRequired(f"No flash swap callee for {to}")

    # --- Balance reconciliation ---

    @atomic
    def skim(self, to: str, *, sender: str) -> tuple[int, int]:
        """Send any balance above the reserves to `to`.

        Recovers assets sent to the pair by mistake, or ones that would push
        a reserve past uint112.

        Returns:
            Tuple of (amount0, amount1) skimmed
        """
        with self._lock():
            token0, token1 = self.token0, self.token1
            amount0 = (S(self._balance(token0)) - self.reserve0).value
            amount1 = (S(self._balance(token1)) - self.reserve1).value
            self._safe_transfer(token0, to, amount0)
            self._safe_transfer(token1, to, amount1)
            return amount0, amount1

    @atomic
    def sync(self, *, sender: str) -> None:
        """Set the reserves to the custodied balances."""
        with self._lock():
            self._update(
                self._balance(self.token0),
                self._balance(self.token1),
                self.reserve0,
                self.reserve1,
            )


__all__ = ["Pair", "FlashSwapCallee", "FlashSwapCallback", "TIMESTAMP_MODULUS"]
