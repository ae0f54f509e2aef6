"""
Overflow-checked fixed-point arithmetic for ledger math.

All ledger quantities are Python integers bounded to 256 bits, scaled by
one of two precisions:
- WAD (1e18): token amounts, prices, stable-curve math
- RAY (1e27): interest indices

Rounding is always explicit. Amounts paid out by the ledger round down,
amounts charged to users round up.
"""

from __future__ import annotations

import logging
from math import isqrt

from ..exceptions import InvariantViolationError, MathError, ValidationError

logger = logging.getLogger(__name__)

MAX_UINT256 = 2**256 - 1

WAD = 10**18
RAY = 10**27

BPS = 10_000
SECONDS_PER_YEAR = 365 * 24 * 60 * 60


class SafeMath:
    """Checked integer operations. Every failure raises ``MathError``."""

    @staticmethod
    def safe_add(a: int, b: int, max_value: int = MAX_UINT256, name: str = "value") -> int:
        result = a + b
        if result > max_value:
            raise MathError(
                f"Addition overflow for {name}: {a} + {b} > {max_value}",
                details={"a": a, "b": b, "max": max_value},
            )
        return result

    @staticmethod
    def safe_mul(a: int, b: int, name: str = "value") -> int:
        result = a * b
        if result > MAX_UINT256:
            raise MathError(f"Multiplication overflow for {name}", details={"a": a, "b": b})
        return result

    @staticmethod
    def safe_div(a: int, b: int, round_up: bool = False) -> int:
        if b == 0:
            raise MathError("Division by zero")
        if round_up:
            return (a + b - 1) // b
        return a // b

    @staticmethod
    def mul_div(a: int, b: int, denominator: int, round_up: bool = False) -> int:
        """
        Calculate (a * b) / denominator with full precision and explicit rounding.

        Raises:
            MathError: If denominator is zero or the product overflows
        """
        if denominator == 0:
            raise MathError("Division by zero")
        product = SafeMath.safe_mul(a, b)
        if round_up:
            return (product + denominator - 1) // denominator
        return product // denominator

    # ==================== Fixed Point ====================

    @staticmethod
    def wad_mul(a: int, b: int, round_up: bool = False) -> int:
        return SafeMath.mul_div(a, b, WAD, round_up=round_up)

    @staticmethod
    def ray_mul(a: int, b: int, round_up: bool = False) -> int:
        return SafeMath.mul_div(a, b, RAY, round_up=round_up)

    @staticmethod
    def ray_div(a: int, b: int, round_up: bool = False) -> int:
        return SafeMath.mul_div(a, RAY, b, round_up=round_up)

    @staticmethod
    def sqrt(value: int) -> int:
        if value < 0:
            raise MathError("Square root of negative value")
        return isqrt(value)

    # ==================== Guards ====================

    @staticmethod
    def require_positive(value: int, name: str = "amount") -> None:
        if value <= 0:
            raise ValidationError(f"{name} must be positive")


def normalize_amount(amount: int, decimals: int) -> int:
    """Scale a token amount to 18 decimals."""
    if decimals == 18:
        return amount
    if decimals < 18:
        return SafeMath.safe_mul(amount, 10 ** (18 - decimals))
    return amount // 10 ** (decimals - 18)


def denormalize_amount(amount: int, decimals: int, round_up: bool = False) -> int:
    """Scale an 18-decimal amount back to token decimals."""
    if decimals == 18:
        return amount
    if decimals < 18:
        return SafeMath.safe_div(amount, 10 ** (18 - decimals), round_up=round_up)
    return SafeMath.safe_mul(amount, 10 ** (decimals - 18))


def calculate_fee_amount(amount: int, fee_bps: int) -> int:
    """Fee in basis points, always rounded up so the protocol never loses dust."""
    return SafeMath.mul_div(amount, fee_bps, BPS, round_up=True)


# ==================== Invariant Assertions ====================


def assert_k_non_decreasing(k_before: int, k_after: int, tolerance: int = 0) -> None:
    if k_after + tolerance < k_before:
        logger.critical(
            "Stable invariant decreased",
            extra={"event": "invariant.k_decreased", "k_before": k_before, "k_after": k_after},
        )
        raise InvariantViolationError(
            "Invariant k decreased across swap",
            details={"k_before": k_before, "k_after": k_after},
        )


def assert_shares_conserved(account_total: int, total_shares: int, locked: int) -> None:
    if account_total != total_shares - locked:
        raise InvariantViolationError(
            "LP share accounting mismatch",
            details={"accounts": account_total, "total": total_shares, "locked": locked},
        )
