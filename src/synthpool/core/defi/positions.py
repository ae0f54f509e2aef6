"""
Position ledger records and asset configuration.

A position is keyed by (borrower, collateral asset, synthetic asset) and
holds posted collateral plus debt stored in scaled form. Configuration
records are admin-set and read-only for the duration of any operation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..exceptions import ValidationError
from .interest import InterestIndex, to_actual
from .safe_math import BPS, SafeMath

PositionKey = tuple[str, str, str]


class PositionStatus(Enum):
    """Lifecycle of a borrow position."""
    EMPTY = "empty"
    ACTIVE = "active"
    LIQUIDATED = "liquidated"


@dataclass
class Position:
    """Collateralized debt position."""

    borrower: str
    collateral_asset: str
    synthetic_asset: str

    collateral: int = 0
    scaled_debt: int = 0
    # Principal outstanding in synthetic units; interest is debt above it
    principal: int = 0

    # Rate in effect at the last touch, and when that was
    rate_bps: int = 0
    last_update: int = 0

    status: PositionStatus = PositionStatus.EMPTY

    @property
    def key(self) -> PositionKey:
        return (self.borrower, self.collateral_asset, self.synthetic_asset)

    def debt(self, index: int) -> int:
        """Outstanding debt at ``index``, rounded up against the borrower."""
        return to_actual(self.scaled_debt, index, round_up=True)

    def is_empty(self) -> bool:
        return self.collateral == 0 and self.scaled_debt == 0

    def to_dict(self, index: int) -> dict:
        debt = self.debt(index)
        return {
            "borrower": self.borrower,
            "collateral_asset": self.collateral_asset,
            "synthetic_asset": self.synthetic_asset,
            "collateral": self.collateral,
            "scaled_debt": self.scaled_debt,
            "debt": debt,
            "principal": self.principal,
            "interest": max(debt - self.principal, 0),
            "rate_bps": self.rate_bps,
            "last_update": self.last_update,
            "status": self.status.value,
        }


@dataclass
class PairConfig:
    """Lending parameters for one (collateral, synthetic) pair."""

    collateral_asset: str
    synthetic_asset: str
    rate_bps: int
    ltv_bps: int
    penalty_bps: int
    index: InterestIndex = field(default_factory=InterestIndex)

    def __post_init__(self) -> None:
        validate_pair_params(self.rate_bps, self.ltv_bps, self.penalty_bps)


def validate_pair_params(rate_bps: int, ltv_bps: int, penalty_bps: int) -> None:
    if rate_bps < 0:
        raise ValidationError("Interest rate cannot be negative")
    if not 0 < ltv_bps < BPS:
        raise ValidationError(f"LTV out of range: {ltv_bps}")
    if not 0 <= penalty_bps < BPS:
        raise ValidationError(f"Liquidation penalty out of range: {penalty_bps}")


@dataclass
class CollateralConfig:
    """Registered collateral asset. A zero cap pauses deposits."""

    asset: str
    supply_cap: int = 0
    total_deposited: int = 0


@dataclass
class SyntheticConfig:
    """Registered synthetic asset. Zero caps pause minting or flash loans."""

    asset: str
    mint_cap: int = 0
    flash_cap: int = 0


def asset_value(amount: int, price: int, decimals: int) -> int:
    """USD value (WAD) of ``amount`` token units at a WAD ``price``."""
    return SafeMath.mul_div(amount, price, 10**decimals)


def value_to_amount(value: int, price: int, decimals: int, round_up: bool = False) -> int:
    """Token units worth ``value`` (WAD USD) at a WAD ``price``."""
    return SafeMath.mul_div(value, 10**decimals, price, round_up=round_up)


def within_ltv(debt_value: int, collateral_value: int, ltv_bps: int) -> bool:
    """True when ``debt_value <= collateral_value * ltv / 10000``."""
    return SafeMath.safe_mul(debt_value, BPS) <= SafeMath.safe_mul(collateral_value, ltv_bps)
