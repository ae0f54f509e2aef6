"""
Property-based tests for anchor pool invariants.

The stable-curve invariant k = x*y*(x^2 + y^2) must never fall across a
swap, quotes must round against the trader, and LP share accounting must
always balance against the locked minimum.

Uses Hypothesis for property-based testing with random inputs.
"""

import pytest
from hypothesis import given, strategies as st, settings, Phase

from synthpool.core.defi.anchor_pool import DEAD_ADDRESS, AnchorPool

WAD = 10**18
ANCHOR = "0xanchor"
STABLE = "0xstable"

reserves = st.integers(min_value=1_000, max_value=100_000_000).map(lambda n: n * WAD)


def _seeded_pool(reserve0: int, reserve1: int, fee_bps: int = 5) -> AnchorPool:
    pool = AnchorPool(token0=ANCHOR, token1=STABLE, fee_bps=fee_bps)
    pool.reserve0 = reserve0
    pool.reserve1 = reserve1
    return pool


@pytest.mark.property
class TestStableCurveInvariants:
    """k must be non-decreasing for any sequence of swaps."""

    @given(
        reserve0=reserves,
        reserve1=reserves,
        fee_bps=st.integers(min_value=0, max_value=100),
        swaps=st.lists(
            st.tuples(st.booleans(), st.booleans(), st.integers(min_value=1, max_value=3_000)),
            min_size=1,
            max_size=8,
        ),
    )
    @settings(max_examples=50, deadline=None, phases=[Phase.generate, Phase.target])
    def test_swap_sequence_never_lowers_k(self, reserve0, reserve1, fee_bps, swaps):
        pool = _seeded_pool(reserve0, reserve1, fee_bps)

        for anchor_in, exact_input, size_bps in swaps:
            token_in = ANCHOR if anchor_in else STABLE
            reserve_in = pool.reserve0 if anchor_in else pool.reserve1
            reserve_out = pool.reserve1 if anchor_in else pool.reserve0
            k_before = pool.k()

            if exact_input:
                quote = pool.swap_exact_input(token_in, reserve_in * size_bps // 10_000)
            else:
                quote = pool.swap_exact_output(token_in, reserve_out * size_bps // 10_000)

            assert pool.k() >= k_before, f"k decreased from {k_before} to {pool.k()}"
            assert quote.k_after >= quote.k_before
            assert pool.reserve0 > 0 and pool.reserve1 > 0

    @given(
        reserve0=reserves,
        ratio_pct=st.integers(min_value=50, max_value=200),
        fee_bps=st.integers(min_value=0, max_value=100),
        size_bps=st.integers(min_value=1, max_value=2_000),
        anchor_in=st.booleans(),
    )
    @settings(max_examples=100, deadline=None, phases=[Phase.generate, Phase.target])
    def test_round_trip_reproduces_input_within_one_unit(self, reserve0, ratio_pct, fee_bps, size_bps, anchor_in):
        """Exact input, then exact output on the result, gives back the input to within 1 wei."""
        pool = _seeded_pool(reserve0, reserve0 * ratio_pct // 100, fee_bps)
        token_in = ANCHOR if anchor_in else STABLE
        reserve_in = pool.reserve0 if anchor_in else pool.reserve1
        # Whole-token reserves keep the input on the fee grid, so the fee rounds exactly
        amount_in = reserve_in * size_bps // 10_000

        forward = pool.quote_exact_input(token_in, amount_in)
        backward = pool.quote_exact_output(token_in, forward.amount_out)

        assert backward.amount_in <= amount_in
        assert amount_in - backward.amount_in <= 1

    @given(
        reserve=reserves,
        size_bps=st.integers(min_value=1, max_value=5_000),
    )
    @settings(max_examples=100, deadline=None, phases=[Phase.generate, Phase.target])
    def test_balanced_pool_output_bounded_by_input(self, reserve, size_bps):
        """Near parity the curve never pays out more than was put in."""
        pool = _seeded_pool(reserve, reserve, fee_bps=0)
        amount_in = reserve * size_bps // 10_000
        quote = pool.quote_exact_input(STABLE, amount_in)
        assert 0 < quote.amount_out <= amount_in


@pytest.mark.property
class TestShareAccounting:
    """LP shares and reserves must stay consistent across deposits and withdrawals."""

    @given(
        first=st.tuples(
            st.integers(min_value=1, max_value=1_000_000),
            st.integers(min_value=1, max_value=1_000_000),
        ),
        operations=st.lists(
            st.tuples(
                st.sampled_from(["add", "remove"]),
                st.integers(min_value=0, max_value=2),
                st.integers(min_value=1, max_value=1_000_000),
                st.integers(min_value=1, max_value=1_000_000),
            ),
            max_size=15,
        ),
    )
    @settings(max_examples=100, deadline=None, phases=[Phase.generate, Phase.target])
    def test_reserves_match_net_deposits(self, first, operations):
        accounts = ["0xlp0", "0xlp1", "0xlp2"]
        pool = AnchorPool(token0=ANCHOR, token1=STABLE)

        amount0, amount1, _ = pool.add_liquidity(accounts[0], first[0] * WAD, first[1] * WAD)
        deposited0, deposited1 = amount0, amount1
        withdrawn0 = withdrawn1 = 0

        for op, who, a, b in operations:
            account = accounts[who]
            if op == "add":
                amount0, amount1, shares = pool.add_liquidity(account, a * WAD, b * WAD)
                assert shares > 0
                deposited0 += amount0
                deposited1 += amount1
            else:
                shares = pool.balance_of(account) * (a % 100 + 1) // 100
                if shares == 0:
                    continue
                out0, out1 = pool.remove_liquidity(account, shares)
                withdrawn0 += out0
                withdrawn1 += out1

            assert pool.account_share_total() == pool.total_shares - pool.locked_shares
            assert pool.reserve0 == deposited0 - withdrawn0
            assert pool.reserve1 == deposited1 - withdrawn1

        assert pool.balance_of(DEAD_ADDRESS) == pool.minimum_liquidity
        assert pool.reserve0 > 0 and pool.reserve1 > 0

    @given(
        amount0=st.integers(min_value=1, max_value=1_000_000),
        amount1=st.integers(min_value=1, max_value=1_000_000),
    )
    @settings(max_examples=50, deadline=None)
    def test_full_exit_leaves_locked_reserves(self, amount0, amount1):
        pool = AnchorPool(token0=ANCHOR, token1=STABLE)
        _, _, shares = pool.add_liquidity("0xlp", amount0 * WAD, amount1 * WAD)

        out0, out1 = pool.remove_liquidity("0xlp", shares)

        assert out0 < amount0 * WAD and out1 < amount1 * WAD
        assert pool.total_shares == pool.minimum_liquidity
        assert pool.reserve0 > 0 and pool.reserve1 > 0
