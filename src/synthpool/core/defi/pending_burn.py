"""
Deferred destruction of swapped-in synthetic tokens.

Inbound synthetic legs of oracle-priced swaps are held by the core instead
of being burned on the spot. A single global slot records which asset and
how much is waiting. Recording a different asset burns the previous one
first; recording the same asset accumulates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from ..exceptions import StateError

logger = logging.getLogger(__name__)

# Burns ``amount`` of ``asset`` held by the core
BurnFn = Callable[[str, int], None]


@dataclass
class PendingBurn:
    """The single pending-burn slot. An empty slot has asset ``""``."""

    asset: str = ""
    amount: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.asset or self.amount == 0

    def record(self, asset: str, amount: int, burn: BurnFn) -> int:
        """
        Queue ``amount`` of ``asset`` for destruction.

        Returns:
            Amount of the previously pending asset that was burned (0 if none)
        """
        burned = 0
        if not self.is_empty and self.asset != asset:
            burned = self.settle(burn)

        if self.asset == asset:
            self.amount += amount
        else:
            self.asset = asset
            self.amount = amount

        logger.debug(
            "Pending burn recorded",
            extra={"event": "pending_burn.record", "asset": asset[:10], "amount": self.amount},
        )
        return burned

    def settle(self, burn: BurnFn) -> int:
        """
        Burn whatever is pending and clear the slot.

        Raises:
            StateError: If nothing is pending
        """
        if self.is_empty:
            raise StateError("No pending burn to settle")

        asset, amount = self.asset, self.amount
        burn(asset, amount)
        self.asset = ""
        self.amount = 0

        logger.info(
            "Pending burn settled",
            extra={"event": "pending_burn.settle", "asset": asset[:10], "amount": amount},
        )
        return amount

    def settle_if_pending(self, burn: BurnFn) -> int:
        if self.is_empty:
            return 0
        return self.settle(burn)

    def pending_for(self, asset: str) -> int:
        return self.amount if self.asset == asset else 0
