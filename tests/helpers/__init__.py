"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Accounts, amounts and timestamps
- factories: Token and pair deployment and funding functions
"""

from tests.helpers.constants import (
    FEE_RECIPIENT,
    GENESIS_TIMESTAMP,
    OTHER,
    OWNER,
    OWNER_PRIVATE_KEY,
    TEST_ADDRESSES,
    TOKEN_SUPPLY,
    WAD,
    expand_to_18_decimals,
)
from tests.helpers.factories import add_liquidity, deploy_pair, deploy_token, sign_permit

__all__ = [
    # Constants
    "OWNER",
    "OWNER_PRIVATE_KEY",
    "OTHER",
    "FEE_RECIPIENT",
    "TEST_ADDRESSES",
    "WAD",
    "TOKEN_SUPPLY",
    "GENESIS_TIMESTAMP",
    "expand_to_18_decimals",
    # Factories
    "deploy_token",
    "deploy_pair",
    "add_liquidity",
    "sign_permit",
]
