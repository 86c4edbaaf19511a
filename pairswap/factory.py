"""Pair registry and protocol fee administration.

The factory creates at most one pair per unordered token pair, deploys it at
its CREATE2 address, and holds the protocol fee settings every pair reads:
- fee_recipient: receives protocol fee shares; None means the fee is off
- fee_admin: the only account allowed to change either setting
"""

from __future__ import annotations

import structlog

from pairswap.address import PAIR_INIT_CODE_HASH, compute_pair_address, sort_tokens
from pairswap.chain import Chain, Contract, atomic
from pairswap.config import DEFAULT_PAIR_CONFIG, PairConfig
from pairswap.constants import NULL_ADDRESS
from pairswap.errors import Forbidden, IdenticalAssets, PairExists, ZeroAddress
from pairswap.models.events import PairCreated
from pairswap.models.types import normalize_address
from pairswap.pair import Pair

logger = structlog.get_logger()


class PairFactory(Contract):
    """Creates pairs and stores the protocol fee settings.

    Args:
        chain: Chain to deploy on
        fee_admin: Account allowed to change the fee settings
        config: Fee policy handed to every pair created here
        address: Fixed deployment address (default: allocated)
    """

    def __init__(
        self,
        chain: Chain,
        fee_admin: str,
        *,
        config: PairConfig = DEFAULT_PAIR_CONFIG,
        address: str | None = None,
    ) -> None:
        super().__init__(chain, address)
        self.config = config
        self.fee_admin = normalize_address(fee_admin, validate=True)
        self.fee_recipient: str | None = None
        self.all_pairs: list[str] = []
        # Keyed by unordered token pair so (a, b) and (b, a) share an entry
        self._pairs: dict[frozenset[str], str] = {}

    @property
    def init_code_hash(self) -> bytes:
        return PAIR_INIT_CODE_HASH

    def all_pairs_length(self) -> int:
        return len(self.all_pairs)

    def pair_address(self, token_a: str, token_b: str) -> str | None:
        """Address of the pair for two tokens (either order), or None."""
        key = frozenset((normalize_address(token_a), normalize_address(token_b)))
        return self._pairs.get(key)

    def get_pair(self, token_a: str, token_b: str) -> Pair | None:
        """The pair for two tokens (either order), or None."""
        address = self.pair_address(token_a, token_b)
        if address is None:
            return None
        return self.chain.get_contract(address, Pair)

    @atomic
    def create_pair(self, token_a: str, token_b: str) -> Pair:
        """Deploy the pair for two tokens.

        Anyone may call this. The new pair sorts its tokens, lives at its
        CREATE2 address and inherits this factory's config.

        Returns:
            The new pair

        Raises:
            IdenticalAssets: If both tokens are the same
            ZeroAddress: If either token is the null address
            PairExists: If a pair for these tokens already exists
        """
        token_a = normalize_address(token_a, validate=True)
        token_b = normalize_address(token_b, validate=True)
        if token_a == token_b:
            raise IdenticalAssets(f"Cannot pair {token_a} with itself")
        token0, token1 = sort_tokens(token_a, token_b)
        if token0 == NULL_ADDRESS:
            raise ZeroAddress("Cannot pair the null address")
        if self.pair_address(token0, token1) is not None:
            raise PairExists(f"Pair for {token0}/{token1} already exists")

        address = compute_pair_address(self.address, token0, token1, self.init_code_hash)
        pair = Pair(self.chain, address, self.address, token0, token1, self.config)
        self._pairs[frozenset((token0, token1))] = address
        self.all_pairs.append(address)

        self.emit(
            PairCreated(
                address=self.address,
                token_a=token_a,
                token_b=token_b,
                pair=address,
                all_pairs_length=len(self.all_pairs),
            )
        )
        logger.info(
            "pair_created",
            token0=token0,
            token1=token1,
            pair=address,
            all_pairs_length=len(self.all_pairs),
        )
        return pair

    # --- Fee administration ---

    def _check_admin(self, sender: str) -> None:
        caller = normalize_address(sender)
        if caller != self.fee_admin:
            raise Forbidden(caller, self.fee_admin)

    @atomic
    def set_fee_recipient(self, recipient: str | None, *, sender: str) -> None:
        """Turn the protocol fee on (recipient) or off (None or the null address).

        Raises:
            Forbidden: If sender is not the fee admin
        """
        self._check_admin(sender)
        if recipient is not None:
            recipient = normalize_address(recipient, validate=True)
            if recipient == NULL_ADDRESS:
                recipient = None
        previous = self.fee_recipient
        self.fee_recipient = recipient
        logger.info("fee_recipient_updated", previous=previous, fee_recipient=recipient)

    @atomic
    def set_fee_admin(self, admin: str, *, sender: str) -> None:
        """Hand fee administration to another account.

        Raises:
            Forbidden: If sender is not the fee admin
        """
        self._check_admin(sender)
        self.fee_admin = normalize_address(admin, validate=True)
        logger.info("fee_admin_updated", fee_admin=self.fee_admin)


__all__ = ["PairFactory"]
