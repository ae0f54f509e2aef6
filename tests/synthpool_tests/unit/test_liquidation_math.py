"""
Unit tests for liquidation eligibility and seizure math.
"""

from synthpool.core.defi.liquidation import is_liquidatable, quote_liquidation

WAD = 10**18


def test_eligibility_boundary():
    # 80% LTV: exactly at the bound is still healthy
    assert not is_liquidatable(80 * WAD, 100 * WAD, 8_000)
    assert is_liquidatable(80 * WAD + 1, 100 * WAD, 8_000)
    assert not is_liquidatable(0, 0, 8_000)


def test_seizure_includes_penalty_bonus():
    quote = quote_liquidation(
        repay_amount=1_000 * WAD,
        collateral_available=10 * WAD,
        synthetic_price=WAD,
        synthetic_decimals=18,
        collateral_price=1_000 * WAD,
        collateral_decimals=18,
        penalty_bps=500,
    )
    assert quote.seized_collateral == WAD + WAD // 20
    assert quote.bonus_collateral == WAD // 20
    assert quote.repay_amount == 1_000 * WAD
    assert not quote.capped


def test_seizure_capped_scales_repay_down():
    quote = quote_liquidation(
        repay_amount=2_000 * WAD,
        collateral_available=WAD,
        synthetic_price=WAD,
        synthetic_decimals=18,
        collateral_price=1_000 * WAD,
        collateral_decimals=18,
        penalty_bps=500,
    )
    assert quote.capped
    assert quote.seized_collateral == WAD
    # 1 collateral worth 1000 buys 1000/1.05 of debt
    assert quote.repay_amount < 2_000 * WAD
    assert abs(quote.repay_amount - 1_000 * WAD * 10_000 // 10_500) <= 1


def test_mixed_decimals():
    # 8-decimal collateral priced at 50,000; 18-decimal synthetic at 1
    quote = quote_liquidation(
        repay_amount=50_000 * WAD,
        collateral_available=10 * 10**8,
        synthetic_price=WAD,
        synthetic_decimals=18,
        collateral_price=50_000 * WAD,
        collateral_decimals=8,
        penalty_bps=0,
    )
    assert quote.seized_collateral == 10**8
    assert quote.bonus_collateral == 0
