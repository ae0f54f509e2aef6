"""
Flash-loan fee math and receiver callback contract.

The engine mints the borrowed synthetic amounts to the caller, invokes the
caller-supplied callback, then burns the principal and moves the fee to the
treasury. Everything happens inside one atomic section, so a failed
repayment unwinds the mint as well and supply never grows outside it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from ..exceptions import ValidationError
from .safe_math import calculate_fee_amount


class FlashLoanCallback(Protocol):
    """Callback for a single-asset flash loan."""

    def __call__(self, initiator: str, asset: str, amount: int, fee: int, data: Any) -> Any:
        ...


class BatchFlashLoanCallback(Protocol):
    """Callback for a multi-asset flash loan."""

    def __call__(
        self,
        initiator: str,
        assets: list[str],
        amounts: list[int],
        fees: list[int],
        data: Any,
    ) -> Any:
        ...


@dataclass(frozen=True)
class FlashLoanLeg:
    asset: str
    amount: int
    fee: int

    @property
    def amount_owed(self) -> int:
        return self.amount + self.fee


def build_legs(assets: Sequence[str], amounts: Sequence[int], fee_bps: int) -> list[FlashLoanLeg]:
    """Validate batch inputs and compute per-asset fees."""
    if len(assets) != len(amounts):
        raise ValidationError(
            "Assets and amounts length mismatch",
            details={"assets": len(assets), "amounts": len(amounts)},
        )
    if not assets:
        raise ValidationError("Flash loan requires at least one asset")
    if len(set(assets)) != len(assets):
        raise ValidationError("Duplicate asset in flash loan")

    legs = []
    for asset, amount in zip(assets, amounts):
        if amount <= 0:
            raise ValidationError("Flash loan amount must be positive")
        legs.append(FlashLoanLeg(asset, amount, calculate_fee_amount(amount, fee_bps)))
    return legs
