"""
Single-writer transactional section.

Every public ledger operation runs inside an ``AtomicSection``: participant
state is snapshotted on begin, discarded on commit, and restored on
rollback. The section doubles as the reentrancy guard, so a callback
invoked mid-operation cannot enter another operation and observe
half-applied state.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Protocol, Sequence

from .exceptions import ReentrancyError, StateError

logger = logging.getLogger(__name__)


class Snapshottable(Protocol):
    def snapshot(self) -> Dict[str, Any]:
        ...

    def restore(self, snapshot: Dict[str, Any]) -> None:
        ...


class AtomicSection:
    """Explicit begin/commit/rollback over a set of participants."""

    def __init__(self) -> None:
        self._active = False
        self._operation = ""
        self._snapshots: list[tuple[Snapshottable, Dict[str, Any]]] = []

    @property
    def active(self) -> bool:
        return self._active

    @property
    def operation(self) -> str:
        return self._operation

    def begin(self, operation: str, participants: Sequence[Snapshottable]) -> None:
        if self._active:
            logger.warning(
                "Reentrant call blocked",
                extra={"event": "atomic.reentrancy", "operation": operation, "active": self._operation},
            )
            raise ReentrancyError(
                f"Reentrant call to {operation} during {self._operation}",
                details={"operation": operation, "active": self._operation},
                recoverable=True,
            )
        self._snapshots = [(p, p.snapshot()) for p in participants]
        self._active = True
        self._operation = operation

    def commit(self) -> None:
        if not self._active:
            raise StateError("No atomic section to commit")
        self._reset()

    def rollback(self) -> None:
        if not self._active:
            raise StateError("No atomic section to roll back")
        # Restore in reverse order of capture
        for participant, state in reversed(self._snapshots):
            participant.restore(state)
        logger.info(
            "Atomic section rolled back",
            extra={"event": "atomic.rollback", "operation": self._operation},
        )
        self._reset()

    @contextmanager
    def run(self, operation: str, participants: Sequence[Snapshottable]) -> Iterator[None]:
        """Run the body atomically; any exception rolls back and re-raises."""
        self.begin(operation, participants)
        try:
            yield
        except BaseException:
            self.rollback()
            raise
        else:
            self.commit()

    def _reset(self) -> None:
        self._snapshots = []
        self._active = False
        self._operation = ""
