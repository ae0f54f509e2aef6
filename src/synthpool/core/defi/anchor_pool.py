"""
Anchor reserve pair with LP share accounting.

The anchor pool pairs the anchor synthetic (token0) with the base stable
asset (token1) on the stable curve. LP shares are tracked per address;
the first deposit locks ``minimum_liquidity`` shares permanently under a
dead address so the share price cannot be manipulated at bootstrap.

The pool only does accounting. Token movements are performed by the
engine inside the same atomic section.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..exceptions import (
    InsufficientBalanceError,
    SlippageError,
    ValidationError,
)
from .safe_math import (
    SafeMath,
    assert_k_non_decreasing,
    assert_shares_conserved,
    normalize_amount,
)
from .stable_invariant import DEFAULT_MAX_ITERATIONS, StableCurve, SwapQuote, invariant

logger = logging.getLogger(__name__)

DEAD_ADDRESS = "0x000000000000000000000000000000000000dead"
DEFAULT_MINIMUM_LIQUIDITY = 1000


@dataclass
class AnchorPool:
    """Stable-curve reserve pair of anchor synthetic and base stable."""

    token0: str
    token1: str
    decimals0: int = 18
    decimals1: int = 18

    fee_bps: int = 5
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    minimum_liquidity: int = DEFAULT_MINIMUM_LIQUIDITY

    reserve0: int = 0
    reserve1: int = 0

    # LP accounts
    total_shares: int = 0
    locked_shares: int = 0
    shares: dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.token0 = self.token0.lower()
        self.token1 = self.token1.lower()
        if self.token0 == self.token1:
            raise ValidationError("Anchor pool tokens must differ")

    @property
    def curve(self) -> StableCurve:
        return StableCurve(fee_bps=self.fee_bps, max_iterations=self.max_iterations)

    # ==================== Views ====================

    def balance_of(self, account: str) -> int:
        return self.shares.get(account.lower(), 0)

    def k(self) -> int:
        if self.reserve0 == 0 or self.reserve1 == 0:
            return 0
        return invariant(
            normalize_amount(self.reserve0, self.decimals0),
            normalize_amount(self.reserve1, self.decimals1),
        )

    def account_share_total(self) -> int:
        """Sum of all LP balances except the locked minimum."""
        return sum(v for k, v in self.shares.items() if k != DEAD_ADDRESS)

    def _orient(self, token_in: str) -> tuple[int, int, int, int, bool]:
        token_in = token_in.lower()
        if token_in == self.token0:
            return self.reserve0, self.reserve1, self.decimals0, self.decimals1, True
        if token_in == self.token1:
            return self.reserve1, self.reserve0, self.decimals1, self.decimals0, False
        raise ValidationError(f"Token {token_in} is not in the anchor pool")

    def token_out_for(self, token_in: str) -> str:
        return self.token1 if self._orient(token_in)[4] else self.token0

    def quote_exact_input(self, token_in: str, amount_in: int) -> SwapQuote:
        reserve_in, reserve_out, dec_in, dec_out, _ = self._orient(token_in)
        return self.curve.get_amount_out(amount_in, reserve_in, reserve_out, dec_in, dec_out)

    def quote_exact_output(self, token_in: str, amount_out: int) -> SwapQuote:
        reserve_in, reserve_out, dec_in, dec_out, _ = self._orient(token_in)
        return self.curve.get_amount_in(amount_out, reserve_in, reserve_out, dec_in, dec_out)

    def _quote_add_liquidity(self, max0: int, max1: int) -> tuple[int, int, int]:
        """
        Amounts actually used and shares minted for a deposit of up to
        (max0, max1).
        """
        if max0 <= 0 or max1 <= 0:
            raise ValidationError("Liquidity amounts must be positive")

        if self.total_shares == 0:
            liquidity = SafeMath.sqrt(
                SafeMath.safe_mul(
                    normalize_amount(max0, self.decimals0),
                    normalize_amount(max1, self.decimals1),
                )
            )
            if liquidity <= self.minimum_liquidity:
                raise ValidationError(
                    "Initial liquidity too small",
                    details={"liquidity": liquidity, "minimum": self.minimum_liquidity},
                )
            return max0, max1, liquidity - self.minimum_liquidity

        optimal1 = SafeMath.mul_div(max0, self.reserve1, self.reserve0)
        if optimal1 <= max1:
            amount0, amount1 = max0, optimal1
        else:
            amount0 = SafeMath.mul_div(max1, self.reserve0, self.reserve1)
            amount1 = max1

        shares = min(
            SafeMath.mul_div(amount0, self.total_shares, self.reserve0),
            SafeMath.mul_div(amount1, self.total_shares, self.reserve1),
        )
        if shares <= 0 or amount0 <= 0 or amount1 <= 0:
            raise ValidationError("Deposit too small for current pool ratio")
        return amount0, amount1, shares

    # ==================== Liquidity ====================

    def add_liquidity(
        self,
        recipient: str,
        max0: int,
        max1: int,
        min_shares: int = 0,
    ) -> tuple[int, int, int]:
        """
        Record a deposit.

        Returns:
            (amount0, amount1, shares) - amounts the engine must pull
        """
        recipient = recipient.lower()
        bootstrap = self.total_shares == 0
        amount0, amount1, shares = self._quote_add_liquidity(max0, max1)
        if shares < min_shares:
            raise SlippageError(
                "Insufficient shares minted",
                details={"shares": shares, "min_shares": min_shares},
            )

        if bootstrap:
            self.locked_shares = self.minimum_liquidity
            self.shares[DEAD_ADDRESS] = self.minimum_liquidity
            self.total_shares = self.minimum_liquidity

        self.shares[recipient] = self.shares.get(recipient, 0) + shares
        self.total_shares += shares
        self.reserve0 += amount0
        self.reserve1 += amount1

        assert_shares_conserved(self.account_share_total(), self.total_shares, self.locked_shares)

        logger.info(
            "Liquidity added",
            extra={
                "event": "anchor_pool.add_liquidity",
                "recipient": recipient[:10],
                "amount0": amount0,
                "amount1": amount1,
                "shares": shares,
                "bootstrap": bootstrap,
            },
        )
        return amount0, amount1, shares

    def remove_liquidity(
        self,
        owner: str,
        shares: int,
        min0: int = 0,
        min1: int = 0,
    ) -> tuple[int, int]:
        """
        Burn ``shares`` from ``owner`` for pro-rata reserves (rounded down).

        Returns:
            (amount0, amount1) - amounts the engine must pay out
        """
        owner = owner.lower()
        SafeMath.require_positive(shares, "shares")
        balance = self.shares.get(owner, 0)
        if balance < shares:
            raise InsufficientBalanceError(
                f"Insufficient LP shares ({shares} > {balance})",
                details={"owner": owner, "shares": shares, "balance": balance},
            )

        amount0 = SafeMath.mul_div(self.reserve0, shares, self.total_shares)
        amount1 = SafeMath.mul_div(self.reserve1, shares, self.total_shares)
        if amount0 < min0 or amount1 < min1:
            raise SlippageError(
                "Withdrawal below minimum amounts",
                details={"amount0": amount0, "amount1": amount1, "min0": min0, "min1": min1},
            )

        self.shares[owner] = balance - shares
        self.total_shares -= shares
        self.reserve0 -= amount0
        self.reserve1 -= amount1

        assert_shares_conserved(self.account_share_total(), self.total_shares, self.locked_shares)

        logger.info(
            "Liquidity removed",
            extra={
                "event": "anchor_pool.remove_liquidity",
                "owner": owner[:10],
                "amount0": amount0,
                "amount1": amount1,
                "shares": shares,
            },
        )
        return amount0, amount1

    # ==================== Swaps ====================

    def apply_swap(self, token_in: str, quote: SwapQuote) -> None:
        """Move reserves by a quote and check the invariant did not fall."""
        k_before = self.k()
        if token_in.lower() == self.token0:
            self.reserve0 += quote.amount_in
            self.reserve1 -= quote.amount_out
        else:
            self.reserve1 += quote.amount_in
            self.reserve0 -= quote.amount_out
        assert_k_non_decreasing(k_before, self.k())

    def swap_exact_input(self, token_in: str, amount_in: int, min_out: int = 0) -> SwapQuote:
        quote = self.quote_exact_input(token_in, amount_in)
        if quote.amount_out < min_out:
            raise SlippageError(
                "Insufficient output amount",
                details={"amount_out": quote.amount_out, "min_out": min_out},
            )
        self.apply_swap(token_in, quote)
        return quote

    def swap_exact_output(self, token_in: str, amount_out: int, max_in: int | None = None) -> SwapQuote:
        quote = self.quote_exact_output(token_in, amount_out)
        if max_in is not None and quote.amount_in > max_in:
            raise SlippageError(
                "Excessive input amount",
                details={"amount_in": quote.amount_in, "max_in": max_in},
            )
        self.apply_swap(token_in, quote)
        return quote

    def to_dict(self) -> dict:
        return {
            "token0": self.token0,
            "token1": self.token1,
            "reserve0": self.reserve0,
            "reserve1": self.reserve1,
            "total_shares": self.total_shares,
            "locked_shares": self.locked_shares,
            "fee_bps": self.fee_bps,
            "k": self.k(),
        }
