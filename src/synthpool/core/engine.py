"""
SynthPool core engine.

One ledger that fuses:
- a stable-curve anchor pool (anchor synthetic vs. base stable)
- collateralized synthetic issuance with lazily compounding interest
- liquidation of undercollateralized positions
- flash loans of synthetic assets
- deferred burning of swapped-in synthetic tokens

Every public operation runs inside an ``AtomicSection`` covering the engine
and every registered token: it either commits in full or leaves no trace.
The section is also the reentrancy guard, so callbacks (flash-loan
receivers, swap hooks) cannot enter another operation mid-flight.

Order of work inside an operation: accrue interest on the touched pair,
price the conversion (curve or oracle), move ledger state and tokens, then
update the pending-burn slot for synthetic legs.
"""

from __future__ import annotations

import copy
import hashlib
import logging
import time
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Dict, Optional, Sequence

from .atomic import AtomicSection
from .config import EngineSettings
from .contracts.erc20 import ERC20Token, SyntheticToken
from .defi.access_control import Role, RoleRegistry
from .defi.anchor_pool import AnchorPool
from .defi.flash_loans import BatchFlashLoanCallback, FlashLoanCallback, build_legs
from .defi.interest import InterestIndex, to_scaled
from .defi.liquidation import LiquidationQuote, is_liquidatable, quote_liquidation
from .defi.oracle import PriceOracle, PriceSource
from .defi.pending_burn import PendingBurn
from .defi.positions import (
    CollateralConfig,
    PairConfig,
    Position,
    PositionKey,
    PositionStatus,
    SyntheticConfig,
    asset_value,
    validate_pair_params,
    value_to_amount,
    within_ltv,
)
from .defi.safe_math import BPS, RAY, SafeMath, calculate_fee_amount
from .defi.stable_invariant import SwapQuote
from .exceptions import (
    CapacityError,
    InitializationError,
    InsufficientBalanceError,
    LedgerError,
    SlippageError,
    SolvencyError,
    StateError,
    ValidationError,
    is_recoverable_error,
)
from .metrics import LedgerMetrics, get_ledger_metrics, track_swap

logger = logging.getLogger(__name__)

# Anchor swap hook: (caller, token_in, token_out, amount_in, amount_out) -> Any
SwapHook = Callable[[str, str, str, int, int], Any]


@dataclass
class LedgerEvent:
    """Operation record kept by the engine (rolled back with state)."""

    name: str
    data: Dict[str, Any]
    timestamp: int = 0


def atomic(operation: str):
    """Run an engine method as one all-or-nothing ledger operation."""

    def decorator(func):
        @wraps(func)
        def wrapper(self: "SynthPoolEngine", *args, **kwargs):
            # Nested calls are rejected by the section; only the outer call owns metrics
            outermost = not self._section.active
            if outermost:
                self._metric_updates = []
            started = time.perf_counter()
            committed = False
            try:
                with self._section.run(operation, self._participants()):
                    result = func(self, *args, **kwargs)
                committed = True
                return result
            except LedgerError as exc:
                self.metrics.reverts_total.labels(operation=operation, error_type=type(exc).__name__).inc()
                logger.warning(
                    "Operation reverted: %s",
                    exc.message,
                    extra={
                        "event": "engine.revert",
                        "operation": operation,
                        "error_type": type(exc).__name__,
                        "recoverable": is_recoverable_error(exc),
                    },
                )
                raise
            finally:
                if outermost:
                    self._close_metrics(operation, committed, time.perf_counter() - started)

        return wrapper

    return decorator


class SynthPoolEngine:
    """
    Fused anchor pool and synthetic lending ledger.

    Usage:
        engine = SynthPoolEngine()
        anchor = engine.initialize(
            caller="deployer", admin="0xadmin", base_stable=usdc, oracle=oracle,
        )
        engine.create_synthetic_asset("0xadmin", "Synthetic BTC", "yBTC", 18, feed, mint_cap, flash_cap)
    """

    # Engine fields captured by snapshot()
    _STATE_FIELDS = (
        "initialized",
        "anchor_asset",
        "base_stable",
        "treasury",
        "stable_swap_fee_bps",
        "synthetic_swap_fee_bps",
        "flash_loan_fee_bps",
        "anchor_pool",
        "collaterals",
        "synthetics",
        "pairs",
        "positions",
        "pending_burn",
    )

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        clock: Optional[Callable[[], int]] = None,
        address: str = "",
        metrics: Optional[LedgerMetrics] = None,
    ) -> None:
        self.settings = settings or EngineSettings.from_env()
        self.clock = clock or (lambda: int(time.time()))

        if not address:
            addr_hash = hashlib.sha3_256(f"synthpool:{time.time_ns()}".encode()).digest()
            address = f"0x{addr_hash[-20:].hex()}"
        self.address = address.lower()

        self.initialized = False
        self.oracle: Optional[PriceOracle] = None
        self.tokens: dict[str, ERC20Token] = {}
        self.anchor_asset = ""
        self.base_stable = ""
        self.treasury = ""

        self.stable_swap_fee_bps = self.settings.stable_swap_fee_bps
        self.synthetic_swap_fee_bps = self.settings.synthetic_swap_fee_bps
        self.flash_loan_fee_bps = self.settings.flash_loan_fee_bps

        self.anchor_pool: Optional[AnchorPool] = None
        self.collaterals: dict[str, CollateralConfig] = {}
        self.synthetics: dict[str, SyntheticConfig] = {}
        self.pairs: dict[tuple[str, str], PairConfig] = {}
        self.positions: dict[PositionKey, Position] = {}
        self.pending_burn = PendingBurn()
        self.roles = RoleRegistry()
        self.events: list[LedgerEvent] = []

        self._section = AtomicSection()
        self.metrics = metrics or get_ledger_metrics()
        self._metric_updates: list[Callable[[LedgerMetrics], None]] = []

    # ==================== Snapshots ====================

    def snapshot(self) -> Dict[str, Any]:
        state = {name: copy.deepcopy(getattr(self, name)) for name in self._STATE_FIELDS}
        # Append-only logs are truncated on restore rather than copied
        state["event_count"] = len(self.events)
        state["roles"] = self.roles.snapshot()
        # Token objects snapshot themselves; only the registry is copied here
        state["tokens"] = dict(self.tokens)
        state["oracle"] = self.oracle
        state["oracle_sources"] = dict(self.oracle.sources) if self.oracle else None
        state["oracle_anchor"] = self.oracle.anchor_asset if self.oracle else ""
        return state

    def restore(self, snapshot: Dict[str, Any]) -> None:
        for name in self._STATE_FIELDS:
            setattr(self, name, snapshot[name])
        del self.events[snapshot["event_count"]:]
        self.roles.restore(snapshot["roles"])
        self.tokens = snapshot["tokens"]
        self.oracle = snapshot["oracle"]
        if self.oracle is not None:
            self.oracle.sources = snapshot["oracle_sources"]
            self.oracle.anchor_asset = snapshot["oracle_anchor"]

    def _participants(self) -> list:
        return [self, *self.tokens.values()]

    @property
    def in_operation(self) -> bool:
        return self._section.active

    # ==================== Initialization ====================

    @atomic("initialize")
    def initialize(
        self,
        caller: str,
        admin: str,
        base_stable: ERC20Token,
        oracle: PriceOracle,
        stable_swap_fee_bps: Optional[int] = None,
        synthetic_swap_fee_bps: Optional[int] = None,
        flash_loan_fee_bps: Optional[int] = None,
        treasury: str = "",
        anchor_name: str = "Anchor USD",
        anchor_symbol: str = "USY",
    ) -> SyntheticToken:
        """
        Initialize the core exactly once.

        Creates the anchor synthetic (priced at one unit) and the anchor pool
        pairing it with ``base_stable``.

        Returns:
            The anchor synthetic token
        """
        if self.initialized:
            raise InitializationError("Engine already initialized")
        if not admin:
            raise ValidationError("Admin address is required")
        if oracle is None:
            raise ValidationError("Oracle is required")

        stable_fee = self.settings.stable_swap_fee_bps if stable_swap_fee_bps is None else stable_swap_fee_bps
        synthetic_fee = (
            self.settings.synthetic_swap_fee_bps if synthetic_swap_fee_bps is None else synthetic_swap_fee_bps
        )
        flash_fee = self.settings.flash_loan_fee_bps if flash_loan_fee_bps is None else flash_loan_fee_bps
        self._validate_fees(stable_fee, synthetic_fee, flash_fee)

        self.roles.grant(Role.ADMIN, admin, actor=caller)
        self.oracle = oracle
        self.treasury = (treasury or admin).lower()
        self.stable_swap_fee_bps = stable_fee
        self.synthetic_swap_fee_bps = synthetic_fee
        self.flash_loan_fee_bps = flash_fee

        anchor = SyntheticToken(name=anchor_name, symbol=anchor_symbol, decimals=18, owner=self.address)
        self.tokens[anchor.address] = anchor
        self.synthetics[anchor.address] = SyntheticConfig(asset=anchor.address)
        self.anchor_asset = anchor.address
        oracle.set_anchor_asset(anchor.address)

        self.tokens[base_stable.address] = base_stable
        self.base_stable = base_stable.address

        self.anchor_pool = AnchorPool(
            token0=anchor.address,
            token1=base_stable.address,
            decimals0=anchor.decimals,
            decimals1=base_stable.decimals,
            fee_bps=stable_fee,
            max_iterations=self.settings.solver_max_iterations,
            minimum_liquidity=self.settings.minimum_liquidity,
        )
        self.initialized = True

        self._emit("Initialized", admin=admin.lower(), anchor=anchor.address, base_stable=self.base_stable)
        logger.info(
            "Engine initialized",
            extra={
                "event": "engine.initialize",
                "engine": self.address[:10],
                "anchor": anchor.address[:10],
                "base_stable": self.base_stable[:10],
            },
        )
        return anchor

    # ==================== Admin Surface ====================

    @atomic("register_collateral")
    def register_collateral(
        self,
        caller: str,
        token: ERC20Token,
        supply_cap: int,
        price_source: PriceSource,
    ) -> None:
        """Register a collateral asset with its deposit cap and price source."""
        self._require_admin(caller)
        asset = token.address
        if asset in self.collaterals:
            raise ValidationError(f"Collateral {asset} already registered")
        if asset in self.synthetics:
            raise ValidationError("Synthetic assets cannot be registered as collateral")
        self._validate_cap(supply_cap)

        self.tokens.setdefault(asset, token)
        self.collaterals[asset] = CollateralConfig(asset=asset, supply_cap=supply_cap)
        self.oracle.set_price_source(asset, price_source)
        self._emit("CollateralRegistered", asset=asset, supply_cap=supply_cap)

    @atomic("set_collateral_config")
    def set_collateral_config(
        self,
        caller: str,
        asset: str,
        supply_cap: int,
        price_source: Optional[PriceSource] = None,
    ) -> None:
        """Update a collateral cap (0 pauses deposits) and optionally its price source."""
        self._require_admin(caller)
        config = self._collateral(asset)
        self._validate_cap(supply_cap)
        config.supply_cap = supply_cap
        if price_source is not None:
            self.oracle.set_price_source(config.asset, price_source)
        self._emit("CollateralConfigured", asset=config.asset, supply_cap=supply_cap)

    @atomic("create_synthetic_asset")
    def create_synthetic_asset(
        self,
        caller: str,
        name: str,
        symbol: str,
        decimals: int,
        price_source: PriceSource,
        mint_cap: int = 0,
        flash_cap: int = 0,
    ) -> SyntheticToken:
        """Deploy a synthetic token owned by the core."""
        self._require_admin(caller)
        if not name or not symbol:
            raise ValidationError("Synthetic name and symbol are required")
        if not 0 <= decimals <= 36:
            raise ValidationError(f"Unsupported decimals: {decimals}")
        self._validate_cap(mint_cap)
        self._validate_cap(flash_cap)

        token = SyntheticToken(name=name, symbol=symbol, decimals=decimals, owner=self.address)
        self.tokens[token.address] = token
        self.synthetics[token.address] = SyntheticConfig(
            asset=token.address, mint_cap=mint_cap, flash_cap=flash_cap
        )
        self.oracle.set_price_source(token.address, price_source)

        self._emit("SyntheticCreated", asset=token.address, symbol=symbol)
        logger.info(
            "Synthetic asset created",
            extra={"event": "engine.synthetic_created", "asset": token.address[:10], "symbol": symbol},
        )
        return token

    @atomic("set_synthetic_config")
    def set_synthetic_config(
        self,
        caller: str,
        asset: str,
        mint_cap: int,
        flash_cap: int,
        price_source: Optional[PriceSource] = None,
    ) -> None:
        """Update mint and flash caps (0 pauses) and optionally the price source."""
        self._require_admin(caller)
        config = self._synthetic_config(asset)
        self._validate_cap(mint_cap)
        self._validate_cap(flash_cap)
        config.mint_cap = mint_cap
        config.flash_cap = flash_cap
        if price_source is not None:
            if config.asset == self.anchor_asset:
                raise ValidationError("Anchor asset price is fixed")
            self.oracle.set_price_source(config.asset, price_source)
        self._emit("SyntheticConfigured", asset=config.asset, mint_cap=mint_cap, flash_cap=flash_cap)

    @atomic("set_pair_config")
    def set_pair_config(
        self,
        caller: str,
        collateral: str,
        synthetic: str,
        rate_bps: int,
        ltv_bps: int,
        penalty_bps: int,
    ) -> None:
        """Configure interest rate, LTV and liquidation penalty for a pair."""
        self._require_admin(caller)
        collateral_cfg = self._collateral(collateral)
        synthetic_cfg = self._synthetic_config(synthetic)
        validate_pair_params(rate_bps, ltv_bps, penalty_bps)

        key = (collateral_cfg.asset, synthetic_cfg.asset)
        now = self.clock()
        pair = self.pairs.get(key)
        if pair is None:
            self.pairs[key] = PairConfig(
                collateral_asset=key[0],
                synthetic_asset=key[1],
                rate_bps=rate_bps,
                ltv_bps=ltv_bps,
                penalty_bps=penalty_bps,
                index=InterestIndex(rate_bps=rate_bps, value=RAY, last_update=now),
            )
        else:
            pair.index.set_rate(rate_bps, now)
            pair.rate_bps = rate_bps
            pair.ltv_bps = ltv_bps
            pair.penalty_bps = penalty_bps

        self._emit(
            "PairConfigured",
            collateral=key[0],
            synthetic=key[1],
            rate_bps=rate_bps,
            ltv_bps=ltv_bps,
            penalty_bps=penalty_bps,
        )

    @atomic("set_fees")
    def set_fees(
        self,
        caller: str,
        stable_swap_fee_bps: int,
        synthetic_swap_fee_bps: int,
        flash_loan_fee_bps: int,
    ) -> None:
        self._require_admin(caller)
        self._validate_fees(stable_swap_fee_bps, synthetic_swap_fee_bps, flash_loan_fee_bps)
        self.stable_swap_fee_bps = stable_swap_fee_bps
        self.synthetic_swap_fee_bps = synthetic_swap_fee_bps
        self.flash_loan_fee_bps = flash_loan_fee_bps
        self.anchor_pool.fee_bps = stable_swap_fee_bps
        self._emit(
            "FeesUpdated",
            stable_swap_fee_bps=stable_swap_fee_bps,
            synthetic_swap_fee_bps=synthetic_swap_fee_bps,
            flash_loan_fee_bps=flash_loan_fee_bps,
        )

    @atomic("set_treasury")
    def set_treasury(self, caller: str, treasury: str) -> None:
        self._require_admin(caller)
        if not treasury:
            raise ValidationError("Treasury address is required")
        self.treasury = treasury.lower()
        self._emit("TreasuryUpdated", treasury=self.treasury)

    @atomic("register_bridge")
    def register_bridge(self, caller: str, bridge: str) -> None:
        """Allow ``bridge`` to call the bridge burn/mint entry points."""
        self._require_admin(caller)
        self.roles.grant(Role.BRIDGE, bridge, actor=caller)
        self._emit("BridgeRegistered", bridge=bridge.lower())

    # ==================== Anchor Pool Liquidity ====================

    @atomic("add_liquidity")
    def add_liquidity(
        self,
        caller: str,
        max_anchor: int,
        max_stable: int,
        min_shares: int = 0,
        recipient: str = "",
    ) -> tuple[int, int, int]:
        """
        Deposit into the anchor pool.

        Only the amounts matching the current ratio are pulled; the unused
        side of the allowance is left untouched.

        Returns:
            (anchor_used, stable_used, shares_minted)
        """
        self._require_initialized()
        recipient = (recipient or caller).lower()
        amount0, amount1, shares = self.anchor_pool.add_liquidity(
            recipient, max_anchor, max_stable, min_shares
        )
        self._pull(self.anchor_pool.token0, caller, amount0)
        self._pull(self.anchor_pool.token1, caller, amount1)
        self._emit("LiquidityAdded", provider=caller.lower(), recipient=recipient,
                   amount0=amount0, amount1=amount1, shares=shares)
        return amount0, amount1, shares

    @atomic("remove_liquidity")
    def remove_liquidity(
        self,
        caller: str,
        min_anchor: int,
        min_stable: int,
        shares: int,
        recipient: str = "",
    ) -> tuple[int, int]:
        """
        Burn LP shares for pro-rata reserves.

        Returns:
            (anchor_out, stable_out)
        """
        self._require_initialized()
        recipient = (recipient or caller).lower()
        amount0, amount1 = self.anchor_pool.remove_liquidity(caller, shares, min_anchor, min_stable)
        self._push(self.anchor_pool.token0, recipient, amount0)
        self._push(self.anchor_pool.token1, recipient, amount1)
        self._emit("LiquidityRemoved", provider=caller.lower(), recipient=recipient,
                   amount0=amount0, amount1=amount1, shares=shares)
        return amount0, amount1

    # ==================== Anchor Swaps ====================

    def quote_exact_input(self, token_in: str, amount_in: int) -> SwapQuote:
        self._require_initialized()
        return self.anchor_pool.quote_exact_input(token_in, amount_in)

    def quote_exact_output(self, token_in: str, amount_out: int) -> SwapQuote:
        self._require_initialized()
        return self.anchor_pool.quote_exact_output(token_in, amount_out)

    @atomic("swap_exact_input")
    def swap_exact_input(
        self,
        caller: str,
        token_in: str,
        amount_in: int,
        min_amount_out: int = 0,
        recipient: str = "",
        hook: Optional[SwapHook] = None,
    ) -> int:
        """
        Swap an exact input on the anchor pool.

        Any pending synthetic burn is settled first.

        Returns:
            Amount of the other pool token sent to ``recipient``
        """
        self._require_initialized()
        self._settle_pending()
        token_in = token_in.lower()
        quote = self.anchor_pool.swap_exact_input(token_in, amount_in, min_amount_out)
        self._execute_anchor_swap(caller, token_in, quote, recipient, hook)
        return quote.amount_out

    @atomic("swap_exact_output")
    def swap_exact_output(
        self,
        caller: str,
        token_in: str,
        amount_out: int,
        max_amount_in: Optional[int] = None,
        recipient: str = "",
        hook: Optional[SwapHook] = None,
    ) -> int:
        """
        Swap for an exact output on the anchor pool.

        Returns:
            Amount of ``token_in`` charged
        """
        self._require_initialized()
        self._settle_pending()
        token_in = token_in.lower()
        quote = self.anchor_pool.swap_exact_output(token_in, amount_out, max_amount_in)
        self._execute_anchor_swap(caller, token_in, quote, recipient, hook)
        return quote.amount_in

    def _execute_anchor_swap(
        self,
        caller: str,
        token_in: str,
        quote: SwapQuote,
        recipient: str,
        hook: Optional[SwapHook],
    ) -> None:
        recipient = (recipient or caller).lower()
        token_out = self.anchor_pool.token_out_for(token_in)

        if hook is None:
            self._pull(token_in, caller, quote.amount_in)
            self._push(token_out, recipient, quote.amount_out)
        else:
            # Optimistic transfer; the hook may use the output to fund the input
            self._push(token_out, recipient, quote.amount_out)
            hook(caller.lower(), token_in, token_out, quote.amount_in, quote.amount_out)
            self._pull(token_in, caller, quote.amount_in)

        self._emit(
            "AnchorSwap",
            caller=caller.lower(),
            recipient=recipient,
            token_in=token_in,
            token_out=token_out,
            amount_in=quote.amount_in,
            amount_out=quote.amount_out,
            fee=quote.fee,
        )
        symbol_in, symbol_out = self._symbol(token_in), self._symbol(token_out)
        self._track(lambda m: track_swap(m, "anchor", symbol_in, symbol_out, quote.amount_in, quote.fee))
        logger.info(
            "Anchor swap executed",
            extra={
                "event": "engine.anchor_swap",
                "token_in": token_in[:10],
                "amount_in": quote.amount_in,
                "amount_out": quote.amount_out,
                "fee": quote.fee,
            },
        )

    # ==================== Synthetic Swaps ====================

    def quote_synthetic_exact_input(self, asset_in: str, asset_out: str, amount_in: int) -> tuple[int, int]:
        """
        Oracle-priced conversion ``amount_in * price_in / price_out`` minus fee.

        Returns:
            (amount_out, fee) in ``asset_out`` units
        """
        self._require_initialized()
        token_in, token_out = self._synthetic_pair(asset_in, asset_out)
        SafeMath.require_positive(amount_in, "amount_in")

        value = asset_value(amount_in, self._price(token_in.address), token_in.decimals)
        gross_out = value_to_amount(value, self._price(token_out.address), token_out.decimals)
        fee = calculate_fee_amount(gross_out, self.synthetic_swap_fee_bps)
        amount_out = gross_out - fee
        if amount_out <= 0:
            raise ValidationError("Swap amount too small", details={"amount_in": amount_in})
        return amount_out, fee

    def quote_synthetic_exact_output(self, asset_in: str, asset_out: str, amount_out: int) -> tuple[int, int]:
        """
        Input needed for an exact synthetic output, rounded up.

        Returns:
            (amount_in, fee) - fee in ``asset_out`` units
        """
        self._require_initialized()
        token_in, token_out = self._synthetic_pair(asset_in, asset_out)
        SafeMath.require_positive(amount_out, "amount_out")

        gross_out = SafeMath.mul_div(amount_out, BPS, BPS - self.synthetic_swap_fee_bps, round_up=True)
        fee = gross_out - amount_out
        value = SafeMath.mul_div(gross_out, self._price(token_out.address), 10**token_out.decimals, round_up=True)
        amount_in = value_to_amount(value, self._price(token_in.address), token_in.decimals, round_up=True)
        return amount_in, fee

    @atomic("swap_synthetic_exact_input")
    def swap_synthetic_exact_input(
        self,
        caller: str,
        asset_in: str,
        asset_out: str,
        amount_in: int,
        min_amount_out: int = 0,
        recipient: str = "",
    ) -> int:
        """
        Swap one synthetic for another at oracle prices.

        The inbound leg is held by the core and queued for burning.

        Returns:
            Amount of ``asset_out`` minted to ``recipient``
        """
        amount_out, fee = self.quote_synthetic_exact_input(asset_in, asset_out, amount_in)
        if amount_out < min_amount_out:
            raise SlippageError(
                "Insufficient output amount",
                details={"amount_out": amount_out, "min_out": min_amount_out},
            )
        self._execute_synthetic_swap(caller, asset_in, asset_out, amount_in, amount_out, fee, recipient)
        return amount_out

    @atomic("swap_synthetic_exact_output")
    def swap_synthetic_exact_output(
        self,
        caller: str,
        asset_in: str,
        asset_out: str,
        amount_out: int,
        max_amount_in: Optional[int] = None,
        recipient: str = "",
    ) -> int:
        """
        Swap synthetics for an exact output at oracle prices.

        Returns:
            Amount of ``asset_in`` charged
        """
        amount_in, fee = self.quote_synthetic_exact_output(asset_in, asset_out, amount_out)
        if max_amount_in is not None and amount_in > max_amount_in:
            raise SlippageError(
                "Excessive input amount",
                details={"amount_in": amount_in, "max_in": max_amount_in},
            )
        self._execute_synthetic_swap(caller, asset_in, asset_out, amount_in, amount_out, fee, recipient)
        return amount_in

    def _execute_synthetic_swap(
        self,
        caller: str,
        asset_in: str,
        asset_out: str,
        amount_in: int,
        amount_out: int,
        fee: int,
        recipient: str,
    ) -> None:
        asset_in = asset_in.lower()
        asset_out = asset_out.lower()
        recipient = (recipient or caller).lower()

        self._require_mint_capacity(asset_out, amount_out + fee)

        self._pull(asset_in, caller, amount_in)
        self.pending_burn.record(asset_in, amount_in, self._burn_held)

        self._mint(asset_out, recipient, amount_out)
        if fee > 0:
            self._mint(asset_out, self.treasury, fee)

        self._emit(
            "SyntheticSwap",
            caller=caller.lower(),
            recipient=recipient,
            asset_in=asset_in,
            asset_out=asset_out,
            amount_in=amount_in,
            amount_out=amount_out,
            fee=fee,
        )
        symbol_in, symbol_out = self._symbol(asset_in), self._symbol(asset_out)
        self._track(
            lambda m: track_swap(m, "oracle", symbol_in, symbol_out, amount_in, fee, fee_denom=symbol_out)
        )
        logger.info(
            "Synthetic swap executed",
            extra={
                "event": "engine.synthetic_swap",
                "asset_in": asset_in[:10],
                "asset_out": asset_out[:10],
                "amount_in": amount_in,
                "amount_out": amount_out,
                "fee": fee,
            },
        )

    def swap(
        self,
        caller: str,
        asset_in: str,
        asset_out: str,
        amount: int,
        limit: Optional[int] = None,
        recipient: str = "",
        exact_input: bool = True,
    ) -> int:
        """
        Route a swap to the anchor pool or to oracle pricing by asset pair.

        ``limit`` is the minimum output for exact-input swaps and the maximum
        input for exact-output swaps.
        """
        self._require_initialized()
        asset_in = asset_in.lower()
        asset_out = asset_out.lower()
        pool = self.anchor_pool
        if {asset_in, asset_out} == {pool.token0, pool.token1}:
            if exact_input:
                return self.swap_exact_input(caller, asset_in, amount, limit or 0, recipient)
            return self.swap_exact_output(caller, asset_in, amount, limit, recipient)

        if exact_input:
            return self.swap_synthetic_exact_input(caller, asset_in, asset_out, amount, limit or 0, recipient)
        return self.swap_synthetic_exact_output(caller, asset_in, asset_out, amount, limit, recipient)

    # ==================== Pending Burn ====================

    @atomic("settle_pending_burn")
    def settle_pending_burn(self, caller: str) -> int:
        """
        Burn the pending synthetic amount and clear the slot.

        Raises:
            StateError: If nothing is pending
        """
        self._require_initialized()
        asset = self.pending_burn.asset
        amount = self.pending_burn.settle(self._burn_held)
        self._emit("PendingBurnSettled", caller=caller.lower(), asset=asset, amount=amount)
        return amount

    def _settle_pending(self) -> int:
        asset = self.pending_burn.asset
        amount = self.pending_burn.settle_if_pending(self._burn_held)
        if amount:
            self._emit("PendingBurnSettled", caller=self.address, asset=asset, amount=amount)
        return amount

    def _burn_held(self, asset: str, amount: int) -> None:
        self._synthetic_token(asset).burn(self.address, self.address, amount)
        symbol = self._symbol(asset)
        self._track(lambda m: m.burns_settled.labels(asset=symbol).inc())

    # ==================== Position Ledger ====================

    @atomic("borrow")
    def borrow(
        self,
        caller: str,
        collateral: str,
        synthetic: str,
        collateral_in: int,
        debt_out: int,
    ) -> Dict[str, Any]:
        """
        Post collateral and/or mint synthetic debt against it.

        Raises:
            CapacityError: If the collateral or mint cap would be exceeded
            StateError: If the pair is unconfigured or an asset is paused
            SolvencyError: If the resulting debt exceeds the LTV bound
        """
        self._require_initialized()
        if collateral_in < 0 or debt_out < 0:
            raise ValidationError("Amounts cannot be negative")
        if collateral_in == 0 and debt_out == 0:
            raise ValidationError("Nothing to borrow or deposit")

        pair = self._pair(collateral, synthetic)
        collateral_cfg = self.collaterals[pair.collateral_asset]
        if collateral_in > 0:
            self._require_collateral_capacity(collateral_cfg, collateral_in)
        if debt_out > 0:
            self._require_mint_capacity(pair.synthetic_asset, debt_out)

        index = self._accrue(pair)
        position = self._get_or_create_position(caller, pair)

        new_collateral = position.collateral + collateral_in
        new_debt = position.debt(index) + debt_out
        if new_debt > 0:
            self._require_within_ltv(pair, new_collateral, new_debt)

        self._pull(pair.collateral_asset, caller, collateral_in)
        collateral_cfg.total_deposited += collateral_in

        position.collateral = new_collateral
        position.scaled_debt += to_scaled(debt_out, index, round_up=True)
        position.principal += debt_out
        position.status = PositionStatus.ACTIVE
        self._touch(position, pair)

        if debt_out > 0:
            self._mint(pair.synthetic_asset, caller, debt_out)
            symbol = self._symbol(pair.synthetic_asset)
            self._track(lambda m: m.borrowed_total.labels(synthetic=symbol).inc(debt_out))

        self._emit(
            "Borrowed",
            borrower=position.borrower,
            collateral=pair.collateral_asset,
            synthetic=pair.synthetic_asset,
            collateral_in=collateral_in,
            debt_out=debt_out,
        )
        logger.info(
            "Position borrowed",
            extra={
                "event": "engine.borrow",
                "borrower": position.borrower[:10],
                "collateral_in": collateral_in,
                "debt_out": debt_out,
            },
        )
        return position.to_dict(index)

    @atomic("repay")
    def repay(
        self,
        caller: str,
        collateral: str,
        synthetic: str,
        amount: int,
        claim_collateral: bool = False,
    ) -> Dict[str, int]:
        """
        Repay debt, interest first then principal.

        ``amount == 0`` or any amount covering the debt repays in full. The
        interest portion goes to the treasury, the principal is burned.
        ``claim_collateral`` returns all collateral once debt is exactly zero.

        Returns:
            Dict with interest_paid, principal_paid and collateral_returned
        """
        self._require_initialized()
        if amount < 0:
            raise ValidationError("Amount cannot be negative")

        pair = self._pair(collateral, synthetic)
        position = self._require_position(caller, pair)
        index = self._accrue(pair)

        debt = position.debt(index)
        if debt == 0 and not claim_collateral:
            raise ValidationError("Position has no debt to repay")

        # Zero or anything at or above the debt repays in full
        pay = debt if amount == 0 else min(amount, debt)
        interest_paid, principal_paid = self._apply_repayment(position, pair, caller, pay, index)

        collateral_returned = 0
        if claim_collateral:
            if position.scaled_debt != 0:
                raise SolvencyError(
                    "Cannot claim collateral while debt remains",
                    details={"debt": position.debt(index)},
                )
            collateral_returned = position.collateral
            position.collateral = 0
            self.collaterals[pair.collateral_asset].total_deposited -= collateral_returned
            self._push(pair.collateral_asset, caller, collateral_returned)

        if position.is_empty():
            position.status = PositionStatus.EMPTY
        self._touch(position, pair)

        self._emit(
            "Repaid",
            borrower=position.borrower,
            collateral=pair.collateral_asset,
            synthetic=pair.synthetic_asset,
            interest_paid=interest_paid,
            principal_paid=principal_paid,
            collateral_returned=collateral_returned,
        )
        logger.info(
            "Position repaid",
            extra={
                "event": "engine.repay",
                "borrower": position.borrower[:10],
                "interest_paid": interest_paid,
                "principal_paid": principal_paid,
                "collateral_returned": collateral_returned,
            },
        )
        return {
            "interest_paid": interest_paid,
            "principal_paid": principal_paid,
            "collateral_returned": collateral_returned,
        }

    def _apply_repayment(
        self,
        position: Position,
        pair: PairConfig,
        payer: str,
        amount: int,
        index: int,
    ) -> tuple[int, int]:
        """Charge ``payer`` ``amount`` of debt, clamped to what is owed."""
        debt = position.debt(index)
        pay = min(amount, debt)
        if pay <= 0:
            return 0, 0

        full = pay == debt

        interest = max(debt - position.principal, 0)
        interest_paid = min(pay, interest)
        principal_paid = pay - interest_paid

        if interest_paid > 0:
            self._pull(pair.synthetic_asset, payer, interest_paid, to=self.treasury)
        if principal_paid > 0:
            self._burn(pair.synthetic_asset, payer, principal_paid)

        if full:
            position.scaled_debt = 0
            position.principal = 0
        else:
            position.scaled_debt -= min(to_scaled(pay, index), position.scaled_debt)
            position.principal = min(position.principal - principal_paid, position.debt(index))

        symbol = self._symbol(pair.synthetic_asset)
        self._track(lambda m: m.repaid_total.labels(synthetic=symbol).inc(pay))
        return interest_paid, principal_paid

    @atomic("withdraw")
    def withdraw(self, caller: str, collateral: str, synthetic: str, amount: int) -> int:
        """
        Withdraw collateral while staying within the LTV bound.

        Returns:
            Collateral remaining in the position
        """
        self._require_initialized()
        SafeMath.require_positive(amount, "amount")

        pair = self._pair(collateral, synthetic)
        position = self._require_position(caller, pair)
        index = self._accrue(pair)

        if amount > position.collateral:
            raise InsufficientBalanceError(
                f"Withdrawal exceeds collateral ({amount} > {position.collateral})",
                details={"amount": amount, "collateral": position.collateral},
            )

        remaining = position.collateral - amount
        debt = position.debt(index)
        if debt > 0:
            self._require_within_ltv(pair, remaining, debt)

        position.collateral = remaining
        self.collaterals[pair.collateral_asset].total_deposited -= amount
        self._push(pair.collateral_asset, caller, amount)

        if position.is_empty():
            position.status = PositionStatus.EMPTY
        self._touch(position, pair)

        self._emit("Withdrawn", borrower=position.borrower, collateral=pair.collateral_asset,
                   synthetic=pair.synthetic_asset, amount=amount)
        return remaining

    # ==================== Liquidation ====================

    @atomic("liquidate")
    def liquidate(
        self,
        liquidator: str,
        borrower: str,
        collateral: str,
        synthetic: str,
        repay_amount: int,
    ) -> Dict[str, int]:
        """
        Repay an unhealthy position's debt for its collateral plus a bonus.

        ``repay_amount`` above the debt is clamped to the debt; 0 means the
        full debt. When the seizure is capped by available collateral the
        repay is reduced proportionally.

        Raises:
            SolvencyError: If the position is within its LTV bound
            StateError: If no collateral is left to seize
        """
        self._require_initialized()
        if repay_amount < 0:
            raise ValidationError("Repay amount cannot be negative")

        pair = self._pair(collateral, synthetic)
        position = self._require_position(borrower, pair)
        index = self._accrue(pair)

        debt = position.debt(index)
        collateral_token = self._token(pair.collateral_asset)
        synthetic_token = self._token(pair.synthetic_asset)
        collateral_price = self._price(pair.collateral_asset)
        synthetic_price = self._price(pair.synthetic_asset)

        debt_value = asset_value(debt, synthetic_price, synthetic_token.decimals)
        collateral_value = asset_value(position.collateral, collateral_price, collateral_token.decimals)
        if not is_liquidatable(debt_value, collateral_value, pair.ltv_bps):
            raise SolvencyError(
                "Position is not liquidatable",
                details={"debt_value": debt_value, "collateral_value": collateral_value, "ltv_bps": pair.ltv_bps},
            )

        if position.collateral == 0:
            raise StateError(
                "Position has no collateral left to seize",
                details={"borrower": position.borrower, "debt": debt},
            )

        requested = debt if repay_amount == 0 else min(repay_amount, debt)
        quote: LiquidationQuote = quote_liquidation(
            requested,
            position.collateral,
            synthetic_price,
            synthetic_token.decimals,
            collateral_price,
            collateral_token.decimals,
            pair.penalty_bps,
        )
        interest_paid, principal_paid = self._apply_repayment(
            position, pair, liquidator, quote.repay_amount, index
        )

        position.collateral -= quote.seized_collateral
        self.collaterals[pair.collateral_asset].total_deposited -= quote.seized_collateral
        self._push(pair.collateral_asset, liquidator, quote.seized_collateral)

        remaining_debt = position.debt(index)
        if position.collateral == 0 or remaining_debt == 0:
            position.status = PositionStatus.LIQUIDATED
        collateral_symbol = self._symbol(pair.collateral_asset)
        synthetic_symbol = self._symbol(pair.synthetic_asset)
        self._track(
            lambda m: m.liquidations_total.labels(
                collateral=collateral_symbol, synthetic=synthetic_symbol, capped=str(quote.capped).lower()
            ).inc()
        )
        if position.collateral == 0 and remaining_debt > 0:
            self._track(lambda m: m.bad_debt_total.labels(synthetic=synthetic_symbol).inc(remaining_debt))
            logger.warning(
                "Liquidation left unbacked debt",
                extra={
                    "event": "engine.bad_debt",
                    "borrower": position.borrower[:10],
                    "remaining_debt": remaining_debt,
                },
            )
        self._touch(position, pair)

        self._emit(
            "Liquidated",
            liquidator=liquidator.lower(),
            borrower=position.borrower,
            collateral=pair.collateral_asset,
            synthetic=pair.synthetic_asset,
            repaid=quote.repay_amount,
            seized=quote.seized_collateral,
            bonus=quote.bonus_collateral,
        )
        logger.info(
            "Position liquidated",
            extra={
                "event": "engine.liquidate",
                "borrower": position.borrower[:10],
                "liquidator": liquidator[:10],
                "repaid": quote.repay_amount,
                "seized": quote.seized_collateral,
                "capped": quote.capped,
            },
        )
        return {
            "repaid": quote.repay_amount,
            "interest_paid": interest_paid,
            "principal_paid": principal_paid,
            "seized_collateral": quote.seized_collateral,
            "bonus_collateral": quote.bonus_collateral,
            "remaining_debt": remaining_debt,
        }

    # ==================== Flash Loans ====================

    @atomic("simple_flash_loan")
    def simple_flash_loan(
        self,
        caller: str,
        asset: str,
        amount: int,
        callback: FlashLoanCallback,
        data: Any = None,
    ) -> int:
        """
        Flash-mint ``amount`` of a synthetic to ``caller``.

        The callback runs synchronously; afterwards the principal is burned
        from the caller and the fee moved to the treasury. Any shortfall
        reverts the whole operation.

        Returns:
            Fee charged
        """
        self._require_initialized()
        legs = build_legs([asset.lower()], [amount], self.flash_loan_fee_bps)
        self._open_flash_legs(caller, legs)
        leg = legs[0]
        callback(caller.lower(), leg.asset, leg.amount, leg.fee, data)
        self._close_flash_legs(caller, legs)
        return leg.fee

    @atomic("flash_loan")
    def flash_loan(
        self,
        caller: str,
        assets: Sequence[str],
        amounts: Sequence[int],
        callback: BatchFlashLoanCallback,
        data: Any = None,
    ) -> list[int]:
        """
        Batch flash mint across several synthetics.

        Returns:
            Fees charged per asset
        """
        self._require_initialized()
        legs = build_legs([a.lower() for a in assets], list(amounts), self.flash_loan_fee_bps)
        self._open_flash_legs(caller, legs)
        callback(
            caller.lower(),
            [leg.asset for leg in legs],
            [leg.amount for leg in legs],
            [leg.fee for leg in legs],
            data,
        )
        self._close_flash_legs(caller, legs)
        return [leg.fee for leg in legs]

    def _open_flash_legs(self, caller: str, legs) -> None:
        for leg in legs:
            config = self._synthetic_config(leg.asset)
            if config.flash_cap == 0:
                raise StateError(f"Flash loans paused for {leg.asset}")
            if leg.amount > config.flash_cap:
                raise CapacityError(
                    "Flash loan exceeds cap",
                    details={"asset": leg.asset, "amount": leg.amount, "cap": config.flash_cap},
                )
            self._mint(leg.asset, caller, leg.amount)

    def _close_flash_legs(self, caller: str, legs) -> None:
        for leg in legs:
            self._burn(leg.asset, caller, leg.amount)
            if leg.fee > 0:
                self._pull(leg.asset, caller, leg.fee, to=self.treasury)
            self._emit("FlashLoan", caller=caller.lower(), asset=leg.asset, amount=leg.amount, fee=leg.fee)
            self._track_flash_leg(leg)
            logger.info(
                "Flash loan repaid",
                extra={"event": "engine.flash_loan", "asset": leg.asset[:10], "amount": leg.amount, "fee": leg.fee},
            )

    def _track_flash_leg(self, leg) -> None:
        symbol = self._symbol(leg.asset)
        fee = leg.fee

        def update(metrics: LedgerMetrics) -> None:
            metrics.flash_loans_total.labels(asset=symbol).inc()
            if fee:
                metrics.flash_loan_fees.labels(asset=symbol).inc(fee)

        self._track(update)

    # ==================== Bridge Entry Points ====================

    def is_synthetic(self, asset: str) -> bool:
        return asset.lower() in self.synthetics

    @atomic("bridge_burn")
    def bridge_burn(self, caller: str, asset: str, from_addr: str, amount: int) -> None:
        """Burn synthetic supply leaving this ledger (registered bridge only)."""
        self._require_initialized()
        self.roles.require(Role.BRIDGE, caller)
        SafeMath.require_positive(amount, "amount")
        self._burn(self._synthetic_config(asset).asset, from_addr, amount)
        self._emit("BridgeBurn", bridge=caller.lower(), asset=asset.lower(), account=from_addr.lower(), amount=amount)

    @atomic("bridge_mint")
    def bridge_mint(self, caller: str, asset: str, to: str, amount: int) -> None:
        """Mint synthetic supply arriving on this ledger (registered bridge only)."""
        self._require_initialized()
        self.roles.require(Role.BRIDGE, caller)
        SafeMath.require_positive(amount, "amount")
        self._mint(self._synthetic_config(asset).asset, to, amount)
        self._emit("BridgeMint", bridge=caller.lower(), asset=asset.lower(), account=to.lower(), amount=amount)

    # ==================== Views ====================

    def get_position(self, borrower: str, collateral: str, synthetic: str) -> Optional[Dict[str, Any]]:
        pair = self._pair(collateral, synthetic)
        position = self.positions.get((borrower.lower(), pair.collateral_asset, pair.synthetic_asset))
        if position is None:
            return None
        return position.to_dict(pair.index.preview(self.clock()))

    def get_position_debt(self, borrower: str, collateral: str, synthetic: str) -> tuple[int, int]:
        """
        Returns:
            (principal, accrued_interest) as of now
        """
        info = self.get_position(borrower, collateral, synthetic)
        if info is None:
            return 0, 0
        return info["principal"], info["interest"]

    def get_position_health(self, borrower: str, collateral: str, synthetic: str) -> Dict[str, int]:
        pair = self._pair(collateral, synthetic)
        info = self.get_position(borrower, collateral, synthetic)
        if info is None:
            raise StateError("Position not found")
        debt_value = asset_value(
            info["debt"], self._price(pair.synthetic_asset), self._token(pair.synthetic_asset).decimals
        )
        collateral_value = asset_value(
            info["collateral"], self._price(pair.collateral_asset), self._token(pair.collateral_asset).decimals
        )
        current_ltv = SafeMath.mul_div(debt_value, BPS, collateral_value) if collateral_value else 0
        return {
            "debt_value": debt_value,
            "collateral_value": collateral_value,
            "ltv_bps": pair.ltv_bps,
            "current_ltv_bps": current_ltv,
        }

    def is_liquidatable(self, borrower: str, collateral: str, synthetic: str) -> bool:
        health = self.get_position_health(borrower, collateral, synthetic)
        return is_liquidatable(health["debt_value"], health["collateral_value"], health["ltv_bps"])

    def lp_balance_of(self, account: str) -> int:
        self._require_initialized()
        return self.anchor_pool.balance_of(account)

    def get_reserves(self) -> tuple[int, int]:
        self._require_initialized()
        return self.anchor_pool.reserve0, self.anchor_pool.reserve1

    def get_pending_burn(self) -> tuple[str, int]:
        return self.pending_burn.asset, self.pending_burn.amount

    # ==================== Internal Helpers ====================

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise InitializationError("Engine not initialized")

    def _require_admin(self, caller: str) -> None:
        self._require_initialized()
        self.roles.require(Role.ADMIN, caller)

    def _token(self, asset: str) -> ERC20Token:
        token = self.tokens.get(asset.lower())
        if token is None:
            raise ValidationError(f"Unknown asset {asset}")
        return token

    def _synthetic_token(self, asset: str) -> SyntheticToken:
        self._synthetic_config(asset)
        return self.tokens[asset.lower()]

    def _synthetic_config(self, asset: str) -> SyntheticConfig:
        config = self.synthetics.get(asset.lower())
        if config is None:
            raise ValidationError(f"Asset {asset} is not a synthetic")
        return config

    def _collateral(self, asset: str) -> CollateralConfig:
        config = self.collaterals.get(asset.lower())
        if config is None:
            raise ValidationError(f"Asset {asset} is not registered collateral")
        return config

    def _synthetic_pair(self, asset_in: str, asset_out: str) -> tuple[ERC20Token, ERC20Token]:
        if asset_in.lower() == asset_out.lower():
            raise ValidationError("Cannot swap an asset for itself")
        return self._synthetic_token(asset_in), self._synthetic_token(asset_out)

    def _pair(self, collateral: str, synthetic: str) -> PairConfig:
        pair = self.pairs.get((collateral.lower(), synthetic.lower()))
        if pair is None:
            raise StateError(
                "Pair not configured",
                details={"collateral": collateral, "synthetic": synthetic},
            )
        return pair

    def _price(self, asset: str) -> int:
        return self.oracle.get_price(asset)

    def _accrue(self, pair: PairConfig) -> int:
        return pair.index.accrue(self.clock())

    def _touch(self, position: Position, pair: PairConfig) -> None:
        position.rate_bps = pair.rate_bps
        position.last_update = self.clock()

    def _get_or_create_position(self, borrower: str, pair: PairConfig) -> Position:
        key = (borrower.lower(), pair.collateral_asset, pair.synthetic_asset)
        position = self.positions.get(key)
        if position is None:
            position = Position(
                borrower=key[0],
                collateral_asset=key[1],
                synthetic_asset=key[2],
                rate_bps=pair.rate_bps,
                last_update=self.clock(),
            )
            self.positions[position.key] = position
        return position

    def _require_position(self, borrower: str, pair: PairConfig) -> Position:
        position = self.positions.get((borrower.lower(), pair.collateral_asset, pair.synthetic_asset))
        if position is None or position.is_empty():
            raise StateError(
                "Position not found",
                details={"borrower": borrower, "collateral": pair.collateral_asset},
            )
        return position

    def _require_within_ltv(self, pair: PairConfig, collateral_amount: int, debt: int) -> None:
        debt_value = asset_value(debt, self._price(pair.synthetic_asset), self._token(pair.synthetic_asset).decimals)
        collateral_value = asset_value(
            collateral_amount, self._price(pair.collateral_asset), self._token(pair.collateral_asset).decimals
        )
        if not within_ltv(debt_value, collateral_value, pair.ltv_bps):
            raise SolvencyError(
                "Debt exceeds LTV bound",
                details={"debt_value": debt_value, "collateral_value": collateral_value, "ltv_bps": pair.ltv_bps},
            )

    def _require_collateral_capacity(self, config: CollateralConfig, amount: int) -> None:
        if config.supply_cap == 0:
            raise StateError(f"Collateral {config.asset} is paused")
        if config.total_deposited + amount > config.supply_cap:
            raise CapacityError(
                "Collateral cap exceeded",
                details={"asset": config.asset, "deposited": config.total_deposited, "cap": config.supply_cap},
            )

    def _require_mint_capacity(self, asset: str, amount: int) -> None:
        config = self._synthetic_config(asset)
        if config.mint_cap == 0:
            raise StateError(f"Synthetic {config.asset} is paused")
        token = self.tokens[config.asset]
        # Supply already queued for burning does not count against the cap
        circulating = token.total_supply - self.pending_burn.pending_for(config.asset)
        if circulating + amount > config.mint_cap:
            raise CapacityError(
                "Mint cap exceeded",
                details={"asset": config.asset, "supply": circulating, "cap": config.mint_cap},
            )

    def _pull(self, asset: str, from_addr: str, amount: int, to: str = "") -> None:
        if amount > 0:
            self._token(asset).transfer_from(self.address, from_addr, to or self.address, amount)

    def _push(self, asset: str, to: str, amount: int) -> None:
        if amount > 0:
            self._token(asset).transfer(self.address, to, amount)

    def _mint(self, asset: str, to: str, amount: int) -> None:
        self._synthetic_token(asset).mint(self.address, to, amount)

    def _burn(self, asset: str, from_addr: str, amount: int) -> None:
        self._synthetic_token(asset).burn(self.address, from_addr, amount)

    def _track(self, update: Callable[[LedgerMetrics], None]) -> None:
        """Queue a metric update, published only if the operation commits."""
        self._metric_updates.append(update)

    def _close_metrics(self, operation: str, committed: bool, elapsed: float) -> None:
        updates, self._metric_updates = self._metric_updates, []
        self.metrics.operations_total.labels(
            operation=operation, status="committed" if committed else "reverted"
        ).inc()
        if not committed:
            return

        self.metrics.operation_latency.labels(operation=operation).observe(elapsed)
        for update in updates:
            update(self.metrics)
        if self.anchor_pool is not None:
            pool = self.anchor_pool
            self.metrics.pool_reserves.labels(denom=self._symbol(pool.token0)).set(pool.reserve0)
            self.metrics.pool_reserves.labels(denom=self._symbol(pool.token1)).set(pool.reserve1)
            self.metrics.lp_share_supply.set(pool.total_shares)
        self.metrics.pending_burn_amount.set(self.pending_burn.amount)

    def _symbol(self, asset: str) -> str:
        token = self.tokens.get(asset)
        return token.symbol if token is not None else asset[:10]

    def _emit(self, name: str, **data: Any) -> None:
        self.events.append(LedgerEvent(name=name, data=data, timestamp=self.clock()))

    @staticmethod
    def _validate_cap(cap: int) -> None:
        if cap < 0:
            raise ValidationError("Cap cannot be negative")

    @staticmethod
    def _validate_fees(*fees_bps: int) -> None:
        for fee in fees_bps:
            if not 0 <= fee < BPS:
                raise ValidationError(f"Fee out of range: {fee}")
