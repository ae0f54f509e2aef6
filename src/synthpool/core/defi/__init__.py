"""
SynthPool DeFi primitives.

This module provides the accounting building blocks used by the engine:
- Safe Math: WAD/RAY fixed-point arithmetic with overflow checks
- Stable Invariant: Newton-Raphson solver for k = x*y*(x^2 + y^2)
- Anchor Pool: Reserve pair with LP share accounting
- Interest: Lazily compounding RAY index with scaled debt
- Positions: Borrow position records and asset configuration
- Liquidation: Eligibility and seizure math
- Flash Loans: Fee math and receiver callback contract
- Pending Burn: Deferred destruction slot for swapped-in synthetics
- Oracle: Per-asset price sources
- Access Control: Admin and bridge roles
- Bridge: Burn-and-mint relay between ledgers
"""

from .access_control import AuditEntry, Role, RoleRegistry
from .anchor_pool import DEAD_ADDRESS, AnchorPool
from .bridge import BridgeEndpoint, BridgeMessage, BridgeRelay
from .flash_loans import BatchFlashLoanCallback, FlashLoanCallback, FlashLoanLeg, build_legs
from .interest import InterestIndex, compute_index, to_actual, to_scaled
from .liquidation import LiquidationQuote, is_liquidatable, quote_liquidation
from .oracle import FixedPriceSource, ManualPriceFeed, PriceOracle, PriceSource
from .pending_burn import PendingBurn
from .positions import (
    CollateralConfig,
    PairConfig,
    Position,
    PositionStatus,
    SyntheticConfig,
)
from .safe_math import BPS, RAY, WAD, SafeMath
from .stable_invariant import StableCurve, SwapQuote, invariant, solve_reserve

__all__ = [
    # Math
    "SafeMath",
    "WAD",
    "RAY",
    "BPS",
    # Stable curve
    "StableCurve",
    "SwapQuote",
    "invariant",
    "solve_reserve",
    # Anchor pool
    "AnchorPool",
    "DEAD_ADDRESS",
    # Interest
    "InterestIndex",
    "compute_index",
    "to_scaled",
    "to_actual",
    # Positions
    "Position",
    "PositionStatus",
    "PairConfig",
    "CollateralConfig",
    "SyntheticConfig",
    # Liquidation
    "LiquidationQuote",
    "is_liquidatable",
    "quote_liquidation",
    # Flash loans
    "FlashLoanCallback",
    "BatchFlashLoanCallback",
    "FlashLoanLeg",
    "build_legs",
    # Pending burn
    "PendingBurn",
    # Oracle
    "PriceOracle",
    "PriceSource",
    "FixedPriceSource",
    "ManualPriceFeed",
    # Access control
    "Role",
    "RoleRegistry",
    "AuditEntry",
    # Bridge
    "BridgeRelay",
    "BridgeMessage",
    "BridgeEndpoint",
]
