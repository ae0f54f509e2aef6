"""
Stable-curve invariant solver for the anchor pair.

The curve is ``k = x*y*(x^2 + y^2) = x^3*y + x*y^3`` over reserves
normalized to 18 decimals. It is flat around the 1:1 point, which keeps
slippage low for assets that trade near parity.

Given a new reserve on one side, the other side is recovered with
Newton-Raphson on ``f(y) = x*y^3 + x^3*y`` using ``f'(y) = 3*x*y^2 + x^3``.
The curve is symmetric in x and y, so the same solver serves exact-input
and exact-output swaps.

Rounding always favours the pool: solved reserves are tightened to the
smallest value that keeps ``f >= k``, outputs round down and inputs round up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..exceptions import MathError, ValidationError
from .safe_math import (
    BPS,
    WAD,
    SafeMath,
    calculate_fee_amount,
    denormalize_amount,
    normalize_amount,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 255

# Bound on unit steps used to tighten a converged Newton result
MAX_TIGHTEN_STEPS = 255

wad_mul = SafeMath.wad_mul


def curve_f(x0: int, y: int) -> int:
    """Evaluate ``x0*y^3 + x0^3*y`` in WAD precision."""
    y_cubed = wad_mul(wad_mul(y, y), y)
    x_cubed = wad_mul(wad_mul(x0, x0), x0)
    return wad_mul(x0, y_cubed) + wad_mul(x_cubed, y)


def curve_d(x0: int, y: int) -> int:
    """Derivative of ``curve_f`` with respect to ``y``."""
    return 3 * wad_mul(x0, wad_mul(y, y)) + wad_mul(wad_mul(x0, x0), x0)


def invariant(x: int, y: int) -> int:
    """Invariant k for normalized reserves."""
    return curve_f(x, y)


def solve_reserve(
    x0: int,
    k: int,
    y: int,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> int:
    """
    Solve ``curve_f(x0, y') == k`` for y' starting from guess ``y``.

    Returns the smallest y' with ``curve_f(x0, y') >= k``.

    Raises:
        MathError: On zero derivative or if the iteration does not settle
    """
    if x0 <= 0:
        raise MathError("Reserve must be positive", details={"x0": x0})
    if y <= 0:
        y = 1

    converged = False
    for _ in range(max_iterations):
        k_current = curve_f(x0, y)
        derivative = curve_d(x0, y)
        if derivative == 0:
            raise MathError("Stable curve derivative is zero", details={"x0": x0, "y": y})

        if k_current < k:
            dy = SafeMath.mul_div(k - k_current, WAD, derivative, round_up=True)
            y += dy
        else:
            dy = SafeMath.mul_div(k_current - k, WAD, derivative)
            y -= dy
            if y <= 0:
                raise MathError("Stable curve solve went non-positive", details={"x0": x0})

        if dy <= 1:
            converged = True
            break

    if not converged:
        raise MathError(
            "Stable curve solver did not converge",
            details={"x0": x0, "k": k, "iterations": max_iterations},
        )

    return _tighten(x0, k, y)


def _tighten(x0: int, k: int, y: int) -> int:
    for _ in range(MAX_TIGHTEN_STEPS):
        if curve_f(x0, y) >= k:
            break
        y += 1
    else:
        raise MathError("Stable curve solver did not converge", details={"x0": x0, "k": k})

    for _ in range(MAX_TIGHTEN_STEPS):
        if y <= 1 or curve_f(x0, y - 1) < k:
            break
        y -= 1
    return y


@dataclass(frozen=True)
class SwapQuote:
    """Result of a stable-curve swap computation (token units)."""

    amount_in: int
    amount_out: int
    fee: int
    k_before: int
    k_after: int


@dataclass(frozen=True)
class StableCurve:
    """
    Stable-curve pricing for one reserve pair.

    Amounts and reserves are passed in token units; decimals describe the
    input and output tokens of the particular swap direction.
    """

    fee_bps: int = 5
    max_iterations: int = DEFAULT_MAX_ITERATIONS

    def __post_init__(self) -> None:
        if not 0 <= self.fee_bps < BPS:
            raise ValidationError(f"Fee out of range: {self.fee_bps}")

    def get_amount_out(
        self,
        amount_in: int,
        reserve_in: int,
        reserve_out: int,
        decimals_in: int = 18,
        decimals_out: int = 18,
    ) -> SwapQuote:
        """Exact-input quote: fee is taken from the input before the solve."""
        SafeMath.require_positive(amount_in, "amount_in")
        self._require_reserves(reserve_in, reserve_out)

        fee = calculate_fee_amount(amount_in, self.fee_bps)
        net_in = amount_in - fee

        x = normalize_amount(reserve_in, decimals_in)
        y = normalize_amount(reserve_out, decimals_out)
        k = invariant(x, y)

        new_x = normalize_amount(reserve_in + net_in, decimals_in)
        new_y = solve_reserve(new_x, k, y, self.max_iterations)
        out_normalized = y - new_y if new_y < y else 0
        amount_out = denormalize_amount(out_normalized, decimals_out)

        if amount_out <= 0:
            raise ValidationError("Swap amount too small", details={"amount_in": amount_in})

        k_after = invariant(
            normalize_amount(reserve_in + amount_in, decimals_in),
            normalize_amount(reserve_out - amount_out, decimals_out),
        )
        return SwapQuote(amount_in, amount_out, fee, k, k_after)

    def get_amount_in(
        self,
        amount_out: int,
        reserve_in: int,
        reserve_out: int,
        decimals_in: int = 18,
        decimals_out: int = 18,
    ) -> SwapQuote:
        """Exact-output quote: net input is solved, then grossed up by the fee."""
        SafeMath.require_positive(amount_out, "amount_out")
        self._require_reserves(reserve_in, reserve_out)
        if amount_out >= reserve_out:
            raise ValidationError(
                "Insufficient liquidity for output",
                details={"amount_out": amount_out, "reserve_out": reserve_out},
            )

        x = normalize_amount(reserve_in, decimals_in)
        y = normalize_amount(reserve_out, decimals_out)
        k = invariant(x, y)

        new_y = normalize_amount(reserve_out - amount_out, decimals_out)
        new_x = solve_reserve(new_y, k, x, self.max_iterations)
        net_normalized = new_x - x if new_x > x else 0
        net_in = denormalize_amount(net_normalized, decimals_in, round_up=True)
        if net_in == 0:
            net_in = 1

        amount_in = SafeMath.mul_div(net_in, BPS, BPS - self.fee_bps, round_up=True)
        fee = amount_in - net_in

        k_after = invariant(
            normalize_amount(reserve_in + amount_in, decimals_in),
            normalize_amount(reserve_out - amount_out, decimals_out),
        )
        return SwapQuote(amount_in, amount_out, fee, k, k_after)

    @staticmethod
    def _require_reserves(reserve_in: int, reserve_out: int) -> None:
        if reserve_in <= 0 or reserve_out <= 0:
            raise ValidationError(
                "Pool has no liquidity",
                details={"reserve_in": reserve_in, "reserve_out": reserve_out},
            )
