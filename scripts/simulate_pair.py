#!/usr/bin/env python3
"""Simulate a pair's life: deposit, swaps, a flash swap, and a price average.

Usage:
    # Default 1000/4000 pool, ten swaps twelve seconds apart
    python scripts/simulate_pair.py

    # Deeper pool, larger swaps, debug logs
    python scripts/simulate_pair.py --reserve0 100000 --reserve1 100000 \\
        --swap-amount 250 --swaps 20 -v
"""

import argparse
import logging
import sys

import structlog

from pairswap import Chain, PairFactory, Token
from pairswap.oracle import decode_uq112x112, observe, time_weighted_average
from pairswap.quoting import get_amount_out

logger = structlog.get_logger()

WAD = 10**18

# Well-known local accounts
DEPLOYER = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"
TRADER = "0x70997970c51812dc3a10c3b71f60a7db4b7ad6f3"
BORROWER = "0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc"


def run(reserve0: int, reserve1: int, swaps: int, swap_amount: int, interval: int) -> int:
    chain = Chain(timestamp=1_700_000_000)
    factory = PairFactory(chain, fee_admin=DEPLOYER)
    factory.set_fee_recipient(DEPLOYER, sender=DEPLOYER)

    token_a = Token(chain, "Token A", "TKA", 10**9 * WAD, owner=DEPLOYER)
    token_b = Token(chain, "Token B", "TKB", 10**9 * WAD, owner=DEPLOYER)
    pair = factory.create_pair(token_a.address, token_b.address)
    token0, token1 = (token_a, token_b) if pair.token0 == token_a.address else (token_b, token_a)
    print(f"Pair {pair.address} ({token0.symbol}/{token1.symbol})")

    token0.transfer(pair.address, reserve0 * WAD, sender=DEPLOYER)
    token1.transfer(pair.address, reserve1 * WAD, sender=DEPLOYER)
    liquidity = pair.mint(DEPLOYER, sender=DEPLOYER)
    print(f"Minted {liquidity} shares")

    first = observe(pair)
    token0.transfer(TRADER, swaps * swap_amount * WAD, sender=DEPLOYER)
    for _ in range(swaps):
        chain.mine(block_time=interval)
        amount_in = swap_amount * WAD
        reserve_in, reserve_out, _ = pair.get_reserves()
        amount_out = get_amount_out(amount_in, reserve_in, reserve_out, pair.config)
        token0.transfer(pair.address, amount_in, sender=TRADER)
        pair.swap(0, amount_out, TRADER, sender=TRADER)

    # Borrow token0, repay it plus the fee from the borrower's own funds
    borrowed = pair.reserve0 // 10
    repayment = borrowed * pair.config.fee_denominator // pair.config.fee_multiplier + 1
    token0.transfer(BORROWER, repayment - borrowed, sender=DEPLOYER)

    def repay(sender: str, amount0: int, amount1: int, data: bytes) -> None:
        token0.transfer(pair.address, repayment, sender=BORROWER)

    chain.mine(block_time=interval)
    pair.swap(borrowed, 0, BORROWER, b"flash", sender=BORROWER, callee=repay)
    print(f"Flash-borrowed {borrowed} {token0.symbol}, repaid {repayment}")

    chain.mine(block_time=interval)
    second = observe(pair)
    price0, price1 = time_weighted_average(first, second)
    reserve0_now, reserve1_now, _ = pair.get_reserves()
    print(f"Reserves: {reserve0_now} / {reserve1_now}")
    print(f"Average {token1.symbol} per {token0.symbol}: {float(decode_uq112x112(price0)):.6f}")
    print(f"Average {token0.symbol} per {token1.symbol}: {float(decode_uq112x112(price1)):.6f}")
    logger.info("simulation_finished", swaps=swaps, events=len(chain.events))
    return 0


def main() -> int:
    """Main entry point for the pair simulation."""
    parser = argparse.ArgumentParser(
        description="Simulate deposits, swaps and a flash swap against one pair",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--reserve0", type=int, default=1000, help="Initial token0 deposit, whole tokens"
    )
    parser.add_argument(
        "--reserve1", type=int, default=4000, help="Initial token1 deposit, whole tokens"
    )
    parser.add_argument("--swaps", type=int, default=10, help="Number of token0 -> token1 swaps")
    parser.add_argument(
        "--swap-amount", type=int, default=10, help="token0 paid per swap, whole tokens"
    )
    parser.add_argument(
        "--interval", type=int, default=12, help="Seconds between blocks (default: 12)"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
    )

    sizes = (args.reserve0, args.reserve1, args.swap_amount, args.interval)
    if min(sizes) <= 0 or args.swaps < 0:
        print("Error: reserves, swap amount and interval must be positive")
        return 1

    return run(args.reserve0, args.reserve1, args.swaps, args.swap_amount, args.interval)


if __name__ == "__main__":
    sys.exit(main())
