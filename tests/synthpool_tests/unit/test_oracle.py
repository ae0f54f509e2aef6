"""
Unit tests for price sources and the oracle lookup.
"""

import pytest

from synthpool.core.defi.oracle import FixedPriceSource, ManualPriceFeed, PriceOracle
from synthpool.core.exceptions import StateError, ValidationError

WAD = 10**18


def test_anchor_asset_prices_at_one():
    oracle = PriceOracle()
    oracle.set_anchor_asset("0xANCHOR")
    assert oracle.get_price("0xanchor") == WAD


def test_source_lookup_is_case_insensitive():
    oracle = PriceOracle()
    oracle.set_price_source("0xBTC", FixedPriceSource(100_000 * WAD))
    assert oracle.get_price("0xbtc") == 100_000 * WAD


def test_missing_source():
    with pytest.raises(StateError):
        PriceOracle().get_price("0xunknown")


def test_non_positive_price_rejected_at_read():
    oracle = PriceOracle()
    oracle.set_price_source("0xbtc", FixedPriceSource(0))
    with pytest.raises(StateError):
        oracle.get_price("0xbtc")


def test_manual_feed_history():
    feed = ManualPriceFeed(price=WAD)
    feed.set_price(2 * WAD)
    assert feed.latest_price() == 2 * WAD
    assert feed.history[-1][1] == 2 * WAD
    with pytest.raises(ValidationError):
        feed.set_price(0)


def test_missing_source_object_rejected():
    with pytest.raises(ValidationError):
        PriceOracle().set_price_source("0xbtc", None)


def test_eight_decimal_feed_reads_as_wad():
    feed = ManualPriceFeed(price=104_000 * 10**8, decimals=8)
    oracle = PriceOracle()
    oracle.set_price_source("0xbtc", feed)
    assert oracle.get_price("0xbtc") == 104_000 * WAD

    feed.set_price(99_500_12345678)
    assert oracle.get_price("0xbtc") == 99_500_12345678 * 10**10
    assert feed.history[-1][1] == 99_500_12345678


def test_fixed_source_with_more_than_eighteen_decimals_truncates():
    assert FixedPriceSource(price=3 * 10**20 + 7, decimals=20).latest_price() == 3 * WAD
    assert FixedPriceSource(price=2 * 10**6, decimals=6).latest_price() == 2 * WAD


def test_negative_feed_decimals_rejected():
    with pytest.raises(ValidationError):
        FixedPriceSource(price=1, decimals=-1).latest_price()
