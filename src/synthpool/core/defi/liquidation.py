"""
Liquidation math.

A position is liquidatable once its debt value exceeds the LTV share of its
collateral value. The liquidator repays synthetic debt and seizes collateral
worth the repaid value plus a penalty bonus. Seizure is capped at the
collateral the position holds; when the cap binds the repay is scaled down
so the liquidator never pays for collateral that does not exist.
"""

from __future__ import annotations

from dataclasses import dataclass

from .positions import asset_value, value_to_amount, within_ltv
from .safe_math import BPS, SafeMath


@dataclass(frozen=True)
class LiquidationQuote:
    """Amounts for one liquidation, in token units."""

    repay_amount: int
    seized_collateral: int
    bonus_collateral: int
    capped: bool


def is_liquidatable(debt_value: int, collateral_value: int, ltv_bps: int) -> bool:
    return debt_value > 0 and not within_ltv(debt_value, collateral_value, ltv_bps)


def quote_liquidation(
    repay_amount: int,
    collateral_available: int,
    synthetic_price: int,
    synthetic_decimals: int,
    collateral_price: int,
    collateral_decimals: int,
    penalty_bps: int,
) -> LiquidationQuote:
    """
    Compute the collateral seized for ``repay_amount`` of synthetic debt.

    seize = repay_value_in_collateral * (10000 + penalty) / 10000
    """
    repay_value = asset_value(repay_amount, synthetic_price, synthetic_decimals)
    base_collateral = value_to_amount(repay_value, collateral_price, collateral_decimals)
    seize = SafeMath.mul_div(base_collateral, BPS + penalty_bps, BPS)

    if seize <= collateral_available:
        return LiquidationQuote(
            repay_amount=repay_amount,
            seized_collateral=seize,
            bonus_collateral=seize - base_collateral,
            capped=False,
        )

    # Cap binds: seize everything, shrink the repay proportionally (rounded
    # up so the protocol is never short-changed, but never above the request)
    scaled_repay = SafeMath.mul_div(repay_amount, collateral_available, seize, round_up=True)
    scaled_repay = min(scaled_repay, repay_amount)
    base_capped = SafeMath.mul_div(collateral_available, BPS, BPS + penalty_bps)
    return LiquidationQuote(
        repay_amount=scaled_repay,
        seized_collateral=collateral_available,
        bonus_collateral=collateral_available - base_capped,
        capped=True,
    )
