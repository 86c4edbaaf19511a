"""Tests for flash swaps and the pair's reentrancy lock."""

import pytest

from pairswap.chain import Chain, Contract, atomic
from pairswap.errors import (
    CallbackRequired,
    InsufficientBalance,
    InsufficientInputAmount,
    InvalidK,
    Locked,
)
from pairswap.models.events import Swap
from pairswap.pair import FlashSwapCallee, Pair
from pairswap.quoting import get_amount_in
from pairswap.token import Token
from tests.helpers import OTHER, OWNER, add_liquidity, expand_to_18_decimals

E18 = expand_to_18_decimals


class Borrower(Contract):
    """Flash swap receiver that repays a fixed amount of one token."""

    def __init__(self, chain: Chain, pair: str, repay_token: str, repay_amount: int) -> None:
        super().__init__(chain)
        self.pair = pair
        self.repay_token = repay_token
        self.repay_amount = repay_amount
        self.calls: list[tuple[str, int, int, bytes]] = []

    @atomic
    def pairswap_call(self, sender: str, amount0: int, amount1: int, data: bytes) -> None:
        self.calls.append((sender, amount0, amount1, data))
        token = self.chain.get_contract(self.repay_token, Token)
        token.transfer(self.pair, self.repay_amount, sender=self.address)


class DirectBorrower(Contract):
    """Flash swap receiver that keeps the pair and its repayment token as objects."""

    def __init__(self, chain: Chain, pair: Pair, token: Token, repay_amount: int) -> None:
        super().__init__(chain)
        self.pair = pair
        self.token = token
        self.repay_amount = repay_amount
        self.borrowed: list[int] = []

    @atomic
    def pairswap_call(self, sender: str, amount0: int, amount1: int, data: bytes) -> None:
        self.borrowed.append(amount0 + amount1)
        self.token.transfer(self.pair.address, self.repay_amount, sender=self.address)


def same_token_repayment(amount: int) -> int:
    """Smallest same-token repayment that covers the 0.3% fee."""
    return amount * 1000 // 997 + 1


@pytest.fixture
def funded_pair(pair, token0, token1) -> Pair:
    add_liquidity(pair, token0, token1, E18(5), E18(10))
    return pair


class TestFlashSwap:
    """Tests for swaps with a callback."""

    def test_borrower_is_a_callee(self, chain, funded_pair, token0):
        """Contracts with pairswap_call satisfy the callee protocol."""
        borrower = Borrower(chain, funded_pair.address, token0.address, 0)
        assert isinstance(borrower, FlashSwapCallee)

    def test_same_token_repayment(self, chain, funded_pair, token0):
        """Borrowed token0 can be returned with the fee in token0."""
        borrowed = E18(1)
        repayment = same_token_repayment(borrowed)
        borrower = Borrower(chain, funded_pair.address, token0.address, repayment)
        token0.transfer(borrower.address, repayment - borrowed, sender=OWNER)

        amounts_in = funded_pair.swap(borrowed, 0, borrower.address, b"0x01", sender=OTHER)

        assert borrower.calls == [(OTHER, borrowed, 0, b"0x01")]
        assert amounts_in == (repayment, 0)
        assert token0.balance_of(borrower.address) == 0
        assert funded_pair.get_reserves()[:2] == (E18(5) - borrowed + repayment, E18(10))
        swap = chain.events_of(Swap, funded_pair.address)[-1]
        assert (swap.sender, swap.to) == (OTHER, borrower.address)

    def test_other_token_repayment(self, chain, funded_pair, token0, token1):
        """Borrowed token0 can be paid for in token1."""
        borrowed = E18(1)
        reserve0, reserve1, _ = funded_pair.get_reserves()
        payment = get_amount_in(borrowed, reserve1, reserve0)
        borrower = Borrower(chain, funded_pair.address, token1.address, payment)
        token1.transfer(borrower.address, payment, sender=OWNER)

        funded_pair.swap(borrowed, 0, borrower.address, b"\x01", sender=OTHER)

        assert token0.balance_of(borrower.address) == borrowed
        assert funded_pair.get_reserves()[:2] == (reserve0 - borrowed, reserve1 + payment)

    def test_underpaid_flash_swap_reverts_everything(self, chain, funded_pair, token0):
        """A borrower short of the fee makes the whole swap fail."""
        borrowed = E18(1)
        borrower = Borrower(chain, funded_pair.address, token0.address, borrowed)
        reserves = funded_pair.get_reserves()
        event_count = len(chain.events)

        with pytest.raises(InvalidK):
            funded_pair.swap(borrowed, 0, borrower.address, b"\x01", sender=OTHER)

        assert token0.balance_of(borrower.address) == 0
        assert token0.balance_of(funded_pair.address) == E18(5)
        assert funded_pair.get_reserves() == reserves
        assert borrower.calls == []
        assert len(chain.events) == event_count

    def test_reverted_swap_keeps_callee_references_live(self, chain, funded_pair, token0):
        """Contracts a callee holds are the live objects after a revert."""
        borrower = DirectBorrower(chain, funded_pair, token0, 0)

        with pytest.raises(InsufficientInputAmount):
            funded_pair.swap(E18(1), 0, borrower.address, b"\x01", sender=OTHER)

        assert borrower.token is token0
        assert borrower.pair is funded_pair
        assert borrower.token.chain is chain
        assert borrower.borrowed == []

        token0.transfer(borrower.address, 7, sender=OWNER)
        assert borrower.token.balance_of(borrower.address) == 7

    def test_callee_holding_references_can_repay(self, chain, funded_pair, token0):
        """A repaying callee works through the objects it holds, also after a revert."""
        borrowed = E18(1)
        repayment = same_token_repayment(borrowed)
        borrower = DirectBorrower(chain, funded_pair, token0, repayment)
        with pytest.raises(InsufficientBalance):
            funded_pair.swap(borrowed, 0, borrower.address, b"\x01", sender=OTHER)

        token0.transfer(borrower.address, repayment - borrowed, sender=OWNER)
        funded_pair.swap(borrowed, 0, borrower.address, b"\x01", sender=OTHER)

        assert borrower.borrowed == [borrowed]
        assert token0.balance_of(borrower.address) == 0
        assert funded_pair.reserve0 == E18(5) - borrowed + repayment

    def test_explicit_callable_callee(self, funded_pair, token0):
        """A plain callable can act as the callee."""
        borrowed = E18(1)
        repayment = same_token_repayment(borrowed)
        seen = []

        def callee(sender: str, amount0: int, amount1: int, data: bytes) -> None:
            seen.append((sender, amount0, amount1, data))
            token0.transfer(funded_pair.address, repayment, sender=OWNER)

        funded_pair.swap(borrowed, 0, OTHER, b"flash", sender=OWNER, callee=callee)

        assert seen == [(OWNER, borrowed, 0, b"flash")]
        assert token0.balance_of(OTHER) == borrowed

    def test_missing_callee_raises(self, funded_pair):
        """Data without a resolvable callee fails."""
        with pytest.raises(CallbackRequired):
            funded_pair.swap(E18(1), 0, OTHER, b"\x01", sender=OWNER)

    def test_no_callback_without_data(self, chain, funded_pair, token1):
        """With empty data the recipient contract is not called."""
        borrower = Borrower(chain, funded_pair.address, token1.address, 0)
        token1.transfer(funded_pair.address, E18(1), sender=OWNER)

        funded_pair.swap(E18(1) // 10, 0, borrower.address, sender=OWNER)
        assert borrower.calls == []


class TestReentrancy:
    """Tests for the pair lock."""

    def test_sync_from_callback_raises(self, funded_pair):
        """Re-entering the pair during a callback fails with Locked."""

        def callee(sender: str, amount0: int, amount1: int, data: bytes) -> None:
            funded_pair.sync(sender=sender)

        with pytest.raises(Locked):
            funded_pair.swap(E18(1), 0, OTHER, b"\x01", sender=OWNER, callee=callee)

    def test_swap_from_callback_raises(self, funded_pair):
        """A nested swap is rejected."""

        def callee(sender: str, amount0: int, amount1: int, data: bytes) -> None:
            funded_pair.swap(1, 0, OTHER, sender=sender)

        with pytest.raises(Locked):
            funded_pair.swap(E18(1), 0, OTHER, b"\x01", sender=OWNER, callee=callee)

    def test_lock_released_after_failure(self, funded_pair, token0):
        """The lock is released even when a call fails."""

        def callee(sender: str, amount0: int, amount1: int, data: bytes) -> None:
            funded_pair.mint(sender, sender=sender)

        with pytest.raises(Locked):
            funded_pair.swap(E18(1), 0, OTHER, b"\x01", sender=OWNER, callee=callee)

        token0.transfer(funded_pair.address, 10, sender=OWNER)
        funded_pair.sync(sender=OWNER)
        assert funded_pair.reserve0 == E18(5) + 10

    def test_other_pairs_are_not_locked(self, chain, factory, funded_pair, token0):
        """The lock is per pair."""
        other_token = Token(chain, "Third", "TRD", E18(100), owner=OWNER)
        other_pair = factory.create_pair(token0.address, other_token.address)
        synced = []

        def callee(sender: str, amount0: int, amount1: int, data: bytes) -> None:
            other_pair.sync(sender=sender)
            synced.append(True)
            token0.transfer(funded_pair.address, same_token_repayment(amount0), sender=OWNER)

        funded_pair.swap(E18(1), 0, OTHER, b"\x01", sender=OWNER, callee=callee)
        assert synced == [True]
