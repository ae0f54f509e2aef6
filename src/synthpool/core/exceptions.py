"""
Ledger exception hierarchy for SynthPool.

Every failure raised by a public ledger operation is a ``LedgerError``.
Errors are fatal to the current atomic operation: the engine rolls back
all state touched during the call and re-raises. Retry policy belongs to
the caller.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class LedgerError(Exception):
    """Base exception for all ledger errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried as-is
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable


# ==================== Validation Errors ====================


class ValidationError(LedgerError):
    """Raised for malformed input.

    Examples: zero address, zero amount, mismatched array lengths,
    unknown asset.
    """
    pass


class InsufficientBalanceError(ValidationError):
    """Raised when an account lacks the balance an operation needs."""
    pass


class InsufficientAllowanceError(ValidationError):
    """Raised when a spender's allowance does not cover a transfer."""
    pass


class SlippageError(ValidationError):
    """Raised when a result falls outside the caller's min/max bound."""
    pass


# ==================== Capacity Errors ====================


class CapacityError(LedgerError):
    """Raised when a mint, flash-loan or collateral cap would be exceeded."""
    pass


# ==================== Solvency Errors ====================


class SolvencyError(LedgerError):
    """Raised when an operation would break loan-to-value bounds.

    Covers borrow and withdraw LTV breaches, liquidation of a healthy
    position, and claiming collateral while debt remains.
    """
    pass


# ==================== Math Errors ====================


class MathError(LedgerError):
    """Raised on fixed-point overflow, division by zero or solver failure."""
    pass


class InvariantViolationError(LedgerError):
    """Raised when a ledger invariant does not hold.

    This always indicates an implementation bug, never a user error.
    """
    pass


# ==================== State Errors ====================


class StateError(LedgerError):
    """Raised when the ledger is not in a state that permits the operation.

    Examples: no pending burn to settle, paused asset, missing position.
    """
    pass


class ReentrancyError(StateError):
    """Raised when an entry point is re-entered on the same call stack."""
    pass


class InitializationError(StateError):
    """Raised when the engine is used before, or initialized twice."""
    pass


# ==================== Authorization Errors ====================


class AuthorizationError(LedgerError):
    """Raised when the caller lacks the role an operation requires."""
    pass


# ==================== Configuration Errors ====================


class ConfigurationError(LedgerError):
    """Raised when engine settings are missing or invalid."""
    pass


def is_recoverable_error(exc: Exception) -> bool:
    """Check if an exception represents a recoverable error.

    Ledger errors are only recoverable when explicitly flagged; nothing
    inside the engine retries on its own.
    """
    if isinstance(exc, LedgerError):
        return exc.recoverable
    return False
