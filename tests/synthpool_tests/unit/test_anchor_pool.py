"""
Unit tests for anchor pool accounting.

Coverage targets:
- Bootstrap deposit locks the minimum liquidity
- Ratio-matched follow-up deposits
- Pro-rata withdrawals and slippage bounds
- Swaps keep k non-decreasing
"""

import pytest

from synthpool.core.defi.anchor_pool import DEAD_ADDRESS, AnchorPool
from synthpool.core.exceptions import (
    InsufficientBalanceError,
    SlippageError,
    ValidationError,
)

WAD = 10**18
MILLION = 1_000_000 * WAD


@pytest.fixture
def pool():
    return AnchorPool(token0="0xANCHOR", token1="0xstable")


@pytest.fixture
def seeded(pool):
    pool.add_liquidity("0xalice", MILLION, MILLION)
    return pool


def test_tokens_must_differ():
    with pytest.raises(ValidationError):
        AnchorPool(token0="0xa", token1="0xA")


def test_bootstrap_locks_minimum_liquidity(pool):
    amount0, amount1, shares = pool.add_liquidity("0xalice", MILLION, MILLION)
    assert (amount0, amount1) == (MILLION, MILLION)
    assert shares == MILLION - 1_000
    assert pool.balance_of(DEAD_ADDRESS) == 1_000
    assert pool.locked_shares == 1_000
    assert pool.total_shares == MILLION


def test_bootstrap_too_small(pool):
    with pytest.raises(ValidationError):
        pool.add_liquidity("0xalice", 1_000, 1_000)


def test_follow_up_deposit_uses_pool_ratio(seeded):
    amount0, amount1, shares = seeded.add_liquidity("0xbob", 10_000 * WAD, 50_000 * WAD)
    assert amount0 == 10_000 * WAD
    assert amount1 == 10_000 * WAD
    assert shares == 10_000 * WAD
    assert seeded.balance_of("0xbob") == 10_000 * WAD


def test_follow_up_deposit_bounded_by_token1(seeded):
    amount0, amount1, _ = seeded.add_liquidity("0xbob", 50_000 * WAD, 10_000 * WAD)
    assert (amount0, amount1) == (10_000 * WAD, 10_000 * WAD)


def test_min_shares_slippage(seeded):
    with pytest.raises(SlippageError):
        seeded.add_liquidity("0xbob", WAD, WAD, min_shares=2 * WAD)


def test_remove_liquidity_pro_rata(seeded):
    shares = seeded.balance_of("0xalice")
    amount0, amount1 = seeded.remove_liquidity("0xalice", shares // 2)
    assert amount0 == MILLION * (shares // 2) // MILLION
    assert seeded.reserve0 == MILLION - amount0
    assert amount1 == amount0
    assert seeded.balance_of("0xalice") == shares - shares // 2


def test_remove_more_than_owned(seeded):
    with pytest.raises(InsufficientBalanceError):
        seeded.remove_liquidity("0xbob", 1)


def test_remove_below_minimums(seeded):
    with pytest.raises(SlippageError):
        seeded.remove_liquidity("0xalice", WAD, min0=2 * WAD)


def test_locked_shares_keep_reserves_nonzero(seeded):
    seeded.remove_liquidity("0xalice", seeded.balance_of("0xalice"))
    assert seeded.reserve0 > 0
    assert seeded.reserve1 > 0
    assert seeded.total_shares == 1_000


def test_swap_exact_input_moves_reserves(seeded):
    k_before = seeded.k()
    quote = seeded.swap_exact_input("0xanchor", 1_000 * WAD)
    assert seeded.reserve0 == MILLION + 1_000 * WAD
    assert seeded.reserve1 == MILLION - quote.amount_out
    assert seeded.k() >= k_before


def test_swap_exact_output_respects_max_in(seeded):
    with pytest.raises(SlippageError):
        seeded.swap_exact_output("0xstable", 1_000 * WAD, max_in=1_000 * WAD)
    assert seeded.reserve1 == MILLION


def test_swap_min_out(seeded):
    with pytest.raises(SlippageError):
        seeded.swap_exact_input("0xstable", 1_000 * WAD, min_out=1_000 * WAD)


def test_unknown_token(seeded):
    with pytest.raises(ValidationError):
        seeded.quote_exact_input("0xother", WAD)


def test_to_dict(seeded):
    info = seeded.to_dict()
    assert info["reserve0"] == MILLION
    assert info["locked_shares"] == 1_000
    assert info["k"] == seeded.k()
