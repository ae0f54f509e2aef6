"""
Lazy interest accrual for collateral/synthetic pairs.

Each pair carries a compounding index in RAY precision. Debt is stored
scaled by the index at storage time, so a position's outstanding debt is
recovered with one multiplication and no per-position bookkeeping:

    actual = scaled * index / RAY
    scaled = actual * RAY / index

The index only moves when a position of the pair is touched:

    index += index * rate_bps * elapsed / (SECONDS_PER_YEAR * 10000)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..exceptions import ValidationError
from .safe_math import BPS, RAY, SECONDS_PER_YEAR, SafeMath

logger = logging.getLogger(__name__)


def compute_index(index: int, rate_bps: int, elapsed: int) -> int:
    """Return the index after ``elapsed`` seconds at ``rate_bps`` per annum."""
    if elapsed <= 0 or rate_bps == 0:
        return index
    growth = SafeMath.mul_div(
        SafeMath.safe_mul(index, rate_bps),
        elapsed,
        SECONDS_PER_YEAR * BPS,
    )
    return SafeMath.safe_add(index, growth, name="interest_index")


def to_scaled(amount: int, index: int, round_up: bool = False) -> int:
    """Convert an actual debt amount to scaled debt."""
    return SafeMath.ray_div(amount, index, round_up=round_up)


def to_actual(scaled: int, index: int, round_up: bool = False) -> int:
    """Convert scaled debt to the actual amount owed."""
    return SafeMath.ray_mul(scaled, index, round_up=round_up)


@dataclass
class InterestIndex:
    """Compounding index for one (collateral, synthetic) pair."""

    rate_bps: int = 0
    value: int = RAY
    last_update: int = 0

    def __post_init__(self) -> None:
        if self.rate_bps < 0:
            raise ValidationError("Interest rate cannot be negative")

    def preview(self, now: int) -> int:
        """Index value at ``now`` without mutating state."""
        return compute_index(self.value, self.rate_bps, now - self.last_update)

    def accrue(self, now: int) -> int:
        """
        Bring the index up to ``now``.

        Calling this twice at the same timestamp is a no-op.
        """
        if now <= self.last_update:
            return self.value
        new_value = compute_index(self.value, self.rate_bps, now - self.last_update)
        if new_value != self.value:
            logger.debug(
                "Interest index accrued",
                extra={
                    "event": "interest.accrue",
                    "rate_bps": self.rate_bps,
                    "elapsed": now - self.last_update,
                    "index": new_value,
                },
            )
        self.value = new_value
        self.last_update = now
        return self.value

    def set_rate(self, rate_bps: int, now: int) -> None:
        """Change the rate, accruing under the old rate first."""
        if rate_bps < 0:
            raise ValidationError("Interest rate cannot be negative")
        self.accrue(now)
        self.rate_bps = rate_bps
