"""
Price oracle interface.

The engine reads USD prices (WAD) per asset through ``PriceOracle``.
Sources may quote with fewer places, e.g. 8-decimal aggregator answers,
and are rescaled to WAD on read. Each asset is bound to a price source;
the anchor asset always prices at one unit. Aggregation across providers
lives outside the core.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Protocol

from ..exceptions import StateError, ValidationError
from .safe_math import WAD

logger = logging.getLogger(__name__)


class PriceSource(Protocol):
    """Interface that price sources must implement."""

    def latest_price(self) -> int:
        """Current USD price in WAD."""
        ...


def scale_to_wad(price: int, decimals: int) -> int:
    """Rescale a feed answer with ``decimals`` places to WAD."""
    if decimals < 0:
        raise ValidationError(f"Feed decimals cannot be negative: {decimals}")
    if decimals <= 18:
        return price * 10 ** (18 - decimals)
    return price // 10 ** (decimals - 18)


@dataclass
class FixedPriceSource:
    """Source that always reports the same price, quoted with ``decimals`` places."""

    price: int = WAD
    decimals: int = 18

    def latest_price(self) -> int:
        return scale_to_wad(self.price, self.decimals)


@dataclass
class ManualPriceFeed:
    """
    Pushed price feed, updated by an off-ledger feeder.

    Answers are stored as pushed, with ``decimals`` places (8 for the
    usual USD aggregators), and read back in WAD.
    """

    price: int = 0
    decimals: int = 18
    updated_at: float = 0.0
    history: list[tuple[float, int]] = field(default_factory=list)

    def set_price(self, price: int) -> None:
        if price <= 0:
            raise ValidationError("Price must be positive")
        self.price = price
        self.updated_at = time.time()
        self.history.append((self.updated_at, price))
        logger.info(
            "Price updated",
            extra={"event": "oracle.price_update", "price": price, "decimals": self.decimals},
        )

    def latest_price(self) -> int:
        return scale_to_wad(self.price, self.decimals)


@dataclass
class PriceOracle:
    """
    Per-asset price lookup.

    Example usage:
        oracle = PriceOracle()
        oracle.set_price_source(btc.address, ManualPriceFeed(price=104_000 * WAD))
        oracle.get_price(btc.address)
    """

    anchor_asset: str = ""
    sources: dict[str, PriceSource] = field(default_factory=dict)

    def set_anchor_asset(self, asset: str) -> None:
        self.anchor_asset = asset.lower()

    def set_price_source(self, asset: str, source: PriceSource) -> None:
        if source is None:
            raise ValidationError("Price source is required")
        self.sources[asset.lower()] = source

    def get_price(self, asset: str) -> int:
        asset = asset.lower()
        if asset == self.anchor_asset:
            return WAD

        source = self.sources.get(asset)
        if source is None:
            raise StateError(f"No price source for asset {asset}")

        price = source.latest_price()
        if price <= 0:
            raise StateError(f"Invalid price for asset {asset}: {price}")
        return price
