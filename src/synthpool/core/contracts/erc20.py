"""
ERC20 token model used by the ledger.

Every asset the ledger touches is an ``ERC20Token``. The engine moves
them with ``transfer``/``transfer_from`` under its own address, and
changes synthetic supply through ``SyntheticToken``, which only the
owning core may mint or burn.

Amounts are bounded to uint256 and the zero address is rejected as a
recipient. Token state is snapshottable so a failed ledger operation can
roll token state back together with the engine.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict

from ..exceptions import (
    AuthorizationError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "0" * 40


@dataclass
class TokenEvent:
    """Represents an ERC20 event."""

    event_type: str  # "Transfer" or "Approval"
    from_address: str
    to_address: str
    value: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class ERC20Token:
    """
    ERC20 token held in memory.

    The owner is the only account allowed to mint. Holders may burn their
    own balance; the owner may burn from any holder.
    """

    # Token metadata
    name: str
    symbol: str
    decimals: int = 18
    total_supply: int = 0

    # Contract address
    address: str = ""

    # Owner (minting permission)
    owner: str = ""

    # State
    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)

    # Event log
    events: list[TokenEvent] = field(default_factory=list)

    # Constants
    UINT256_MAX: int = 2**256 - 1

    def __post_init__(self) -> None:
        """Initialize token after dataclass creation."""
        if not self.address:
            addr_input = f"{self.name}{self.symbol}{time.time_ns()}".encode()
            addr_hash = hashlib.sha3_256(addr_input).digest()
            self.address = f"0x{addr_hash[-20:].hex()}"
        self.address = self._normalize(self.address)
        self.owner = self._normalize(self.owner)

    # ==================== View Functions ====================

    def balance_of(self, account: str) -> int:
        return self.balances.get(self._normalize(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        owner_norm = self._normalize(owner)
        spender_norm = self._normalize(spender)
        return self.allowances.get(owner_norm, {}).get(spender_norm, 0)

    # ==================== State-Changing Functions ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Transfer tokens from sender to recipient.

        Raises:
            ValidationError: On zero recipient or invalid amount
            InsufficientBalanceError: If sender balance is too low
        """
        sender_norm = self._normalize(sender)
        recipient_norm = self._normalize(recipient)

        self._validate_address(recipient_norm, "recipient")
        self._validate_amount(amount)
        self._move(sender_norm, recipient_norm, amount)

        logger.debug(
            "ERC20 transfer",
            extra={
                "event": "erc20.transfer",
                "token": self.symbol,
                "from": sender_norm[:10],
                "to": recipient_norm[:10],
                "amount": amount,
            }
        )
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        owner_norm = self._normalize(owner)
        spender_norm = self._normalize(spender)

        self._validate_address(spender_norm, "spender")
        self._validate_amount(amount)

        self.allowances.setdefault(owner_norm, {})[spender_norm] = amount
        self._emit("Approval", owner_norm, spender_norm, amount)
        return True

    def transfer_from(
        self, spender: str, from_addr: str, to_addr: str, amount: int
    ) -> bool:
        """
        Transfer tokens using an allowance.

        Raises:
            InsufficientAllowanceError: If the allowance is too low
            InsufficientBalanceError: If the owner balance is too low
        """
        spender_norm = self._normalize(spender)
        from_norm = self._normalize(from_addr)
        to_norm = self._normalize(to_addr)

        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)

        current_allowance = self.allowance(from_norm, spender_norm)
        if current_allowance < amount:
            raise InsufficientAllowanceError(
                f"ERC20 {self.symbol}: insufficient allowance ({current_allowance} < {amount})",
                details={"owner": from_norm, "spender": spender_norm},
            )

        self._move(from_norm, to_norm, amount)

        # Unlimited approvals are never decremented
        if current_allowance != self.UINT256_MAX:
            self.allowances[from_norm][spender_norm] = current_allowance - amount
        return True

    # ==================== Minting & Burning ====================

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """
        Mint new tokens (owner only).

        Raises:
            AuthorizationError: If minter is not the owner
        """
        self._require_owner(minter)

        to_norm = self._normalize(to)
        self._validate_address(to_norm, "recipient")
        self._validate_amount(amount)
        if self.total_supply + amount > self.UINT256_MAX:
            raise ValidationError(f"ERC20 {self.symbol}: mint exceeds uint256 supply")

        self.total_supply += amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
        self._emit("Transfer", ZERO_ADDRESS, to_norm, amount)

        logger.info(
            "ERC20 mint",
            extra={
                "event": "erc20.mint",
                "token": self.symbol,
                "to": to_norm[:10],
                "amount": amount,
                "new_supply": self.total_supply,
            }
        )
        return True

    def burn(self, caller: str, from_addr: str, amount: int) -> bool:
        """
        Burn tokens from ``from_addr``.

        Raises:
            AuthorizationError: If caller may not burn from ``from_addr``
            InsufficientBalanceError: If the balance is too low
        """
        caller_norm = self._normalize(caller)
        from_norm = self._normalize(from_addr)
        self._authorize_burn(caller_norm, from_norm)
        self._validate_amount(amount)

        balance = self.balances.get(from_norm, 0)
        if balance < amount:
            raise InsufficientBalanceError(
                f"ERC20 {self.symbol}: burn amount exceeds balance ({amount} > {balance})",
                details={"account": from_norm, "amount": amount, "balance": balance},
            )

        self.balances[from_norm] = balance - amount
        self.total_supply -= amount
        self._emit("Transfer", from_norm, ZERO_ADDRESS, amount)

        logger.info(
            "ERC20 burn",
            extra={
                "event": "erc20.burn",
                "token": self.symbol,
                "from": from_norm[:10],
                "amount": amount,
                "new_supply": self.total_supply,
            }
        )
        return True

    # ==================== Snapshots ====================

    def snapshot(self) -> Dict[str, Any]:
        """
        Copy of mutable token state for rollback.

        The event log is append-only, so only its length is recorded and
        rollback truncates it.
        """
        return {
            "total_supply": self.total_supply,
            "balances": dict(self.balances),
            "allowances": {owner: dict(spenders) for owner, spenders in self.allowances.items()},
            "event_count": len(self.events),
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self.total_supply = snapshot["total_supply"]
        self.balances = snapshot["balances"]
        self.allowances = snapshot["allowances"]
        del self.events[snapshot["event_count"]:]

    # ==================== Helpers ====================

    def _move(self, from_norm: str, to_norm: str, amount: int) -> None:
        from_balance = self.balances.get(from_norm, 0)
        if from_balance < amount:
            raise InsufficientBalanceError(
                f"ERC20 {self.symbol}: transfer amount exceeds balance "
                f"({amount} > {from_balance})",
                details={"account": from_norm, "amount": amount, "balance": from_balance},
            )
        self.balances[from_norm] = from_balance - amount
        self.balances[to_norm] = self.balances.get(to_norm, 0) + amount
        self._emit("Transfer", from_norm, to_norm, amount)

    def _authorize_burn(self, caller: str, from_addr: str) -> None:
        if caller != from_addr and caller != self.owner:
            raise AuthorizationError(f"ERC20 {self.symbol}: caller may not burn from {from_addr}")

    def _normalize(self, address: str) -> str:
        return address.lower()

    def _validate_address(self, address: str, field: str) -> None:
        if address == ZERO_ADDRESS or not address:
            raise ValidationError(f"ERC20: {field} is zero address")

    def _validate_amount(self, amount: int) -> None:
        if amount < 0:
            raise ValidationError("ERC20: amount cannot be negative")
        if amount > self.UINT256_MAX:
            raise ValidationError("ERC20: amount exceeds uint256")

    def _require_owner(self, caller: str) -> None:
        if self._normalize(caller) != self.owner:
            raise AuthorizationError(f"ERC20 {self.symbol}: caller is not owner")

    def _emit(self, event_type: str, from_addr: str, to_addr: str, amount: int) -> None:
        self.events.append(
            TokenEvent(
                event_type=event_type,
                from_address=from_addr,
                to_address=to_addr,
                value=amount,
            )
        )

    # ==================== Serialization ====================

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": self.total_supply,
            "address": self.address,
            "owner": self.owner,
            "balances": dict(self.balances),
        }


@dataclass
class SyntheticToken(ERC20Token):
    """
    Synthetic asset issued by the core.

    Only the owning core may mint or burn; holders cannot burn directly.
    """

    def _authorize_burn(self, caller: str, from_addr: str) -> None:
        if caller != self.owner:
            raise AuthorizationError(f"Synthetic {self.symbol}: only the core may burn")
