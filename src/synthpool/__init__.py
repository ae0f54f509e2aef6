"""
SynthPool - Stable-curve anchor pool fused with synthetic-asset lending

Main Components:
- Anchor Pool: Stable-curve AMM pairing the anchor synthetic with a base stable
- Lending: Collateralized synthetic issuance with lazily accruing interest
- Liquidation: Penalty-bonus seizure of unhealthy positions
- Flash Loans: Single-operation synthetic loans
- Bridge: Burn-and-mint relay between ledgers
"""

__version__ = "0.1.0"
__author__ = "SynthPool Development Team"

__all__ = []
