"""Pytest configuration and fixtures."""

import pytest

from pairswap.chain import Chain
from pairswap.factory import PairFactory
from pairswap.pair import Pair
from pairswap.token import Token
from tests.helpers import GENESIS_TIMESTAMP, OWNER, deploy_pair


@pytest.fixture
def chain() -> Chain:
    """Fresh chain at a fixed timestamp."""
    return Chain(timestamp=GENESIS_TIMESTAMP)


@pytest.fixture
def factory(chain: Chain) -> PairFactory:
    """Factory administered by OWNER, protocol fee off."""
    return PairFactory(chain, fee_admin=OWNER)


@pytest.fixture
def pair_and_tokens(chain: Chain, factory: PairFactory) -> tuple[Pair, Token, Token]:
    return deploy_pair(chain, factory)


@pytest.fixture
def pair(pair_and_tokens: tuple[Pair, Token, Token]) -> Pair:
    return pair_and_tokens[0]


@pytest.fixture
def token0(pair_and_tokens: tuple[Pair, Token, Token]) -> Token:
    return pair_and_tokens[1]


@pytest.fixture
def token1(pair_and_tokens: tuple[Pair, Token, Token]) -> Token:
    return pair_and_tokens[2]
