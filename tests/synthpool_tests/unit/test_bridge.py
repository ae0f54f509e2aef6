"""
Unit tests for the burn-and-mint bridge relay.
"""

import pytest

from synthpool.core.config import EngineSettings
from synthpool.core.contracts.erc20 import ERC20Token
from synthpool.core.defi.bridge import BridgeRelay
from synthpool.core.defi.oracle import FixedPriceSource, PriceOracle
from synthpool.core.engine import SynthPoolEngine
from synthpool.core.exceptions import (
    AuthorizationError,
    InsufficientBalanceError,
    StateError,
    ValidationError,
)

WAD = 10**18
ADMIN = "0xadmin"
ALICE = "0xalice"
BOB = "0xbob"
RELAY = "0xrelay"


def _ledger(clock, address):
    engine = SynthPoolEngine(settings=EngineSettings(), clock=clock, address=address)
    usdc = ERC20Token(name="USD Coin", symbol="USDC", owner=ADMIN)
    engine.initialize("0xdeployer", ADMIN, usdc, PriceOracle())
    ybtc = engine.create_synthetic_asset(
        ADMIN, "Synthetic BTC", "yBTC", 18, FixedPriceSource(100_000 * WAD), 10**30, 10**30
    )
    engine.register_bridge(ADMIN, RELAY)
    return engine, ybtc


@pytest.fixture
def networks(clock, fund):
    mainnet, ybtc_main = _ledger(clock, "0xcore-main")
    sidechain, ybtc_side = _ledger(clock, "0xcore-side")
    fund(ybtc_main, ALICE, 5 * WAD)

    relay = BridgeRelay(address=RELAY)
    relay.register_endpoint("mainnet", mainnet)
    relay.register_endpoint("sidechain", sidechain)
    relay.map_asset("mainnet", ybtc_main.address, "sidechain", ybtc_side.address)
    relay.map_asset("sidechain", ybtc_side.address, "mainnet", ybtc_main.address)
    return {
        "relay": relay,
        "mainnet": mainnet,
        "sidechain": sidechain,
        "ybtc_main": ybtc_main,
        "ybtc_side": ybtc_side,
    }


def test_send_burns_and_deliver_mints(networks):
    relay, ybtc_main, ybtc_side = networks["relay"], networks["ybtc_main"], networks["ybtc_side"]

    message = relay.send("mainnet", "sidechain", ybtc_main.address, ALICE, BOB, 2 * WAD)
    assert ybtc_main.balance_of(ALICE) == 3 * WAD
    assert ybtc_main.total_supply == 3 * WAD
    assert ybtc_side.total_supply == 0

    assert relay.deliver(message) is True
    assert ybtc_side.balance_of(BOB) == 2 * WAD
    assert message.destination_asset == ybtc_side.address
    assert networks["sidechain"].events[-1].name == "BridgeMint"
    assert networks["mainnet"].events[-1].name == "BridgeBurn"


def test_duplicate_delivery_ignored(networks):
    relay, ybtc_main, ybtc_side = networks["relay"], networks["ybtc_main"], networks["ybtc_side"]
    message = relay.send("mainnet", "sidechain", ybtc_main.address, ALICE, ALICE, WAD)
    assert relay.deliver(message)
    assert relay.deliver(message) is False
    assert ybtc_side.total_supply == WAD


def test_round_trip_preserves_combined_supply(networks):
    relay, ybtc_main, ybtc_side = networks["relay"], networks["ybtc_main"], networks["ybtc_side"]
    relay.transfer("mainnet", "sidechain", ybtc_main.address, ALICE, ALICE, 4 * WAD)
    relay.transfer("sidechain", "mainnet", ybtc_side.address, ALICE, ALICE, WAD)
    assert ybtc_main.total_supply + ybtc_side.total_supply == 5 * WAD
    assert ybtc_main.balance_of(ALICE) == 2 * WAD
    assert ybtc_side.balance_of(ALICE) == 3 * WAD


def test_transfer_ids_unique_per_send(networks):
    relay, ybtc_main = networks["relay"], networks["ybtc_main"]
    first = relay.send("mainnet", "sidechain", ybtc_main.address, ALICE, ALICE, WAD)
    second = relay.send("mainnet", "sidechain", ybtc_main.address, ALICE, ALICE, WAD)
    assert first.transfer_id != second.transfer_id
    assert second.nonce == first.nonce + 1


def test_send_more_than_balance_reverts(networks):
    relay, ybtc_main = networks["relay"], networks["ybtc_main"]
    with pytest.raises(InsufficientBalanceError):
        relay.send("mainnet", "sidechain", ybtc_main.address, ALICE, ALICE, 6 * WAD)
    assert ybtc_main.balance_of(ALICE) == 5 * WAD
    assert relay.nonce == 0


def test_unmapped_route_rejected(networks):
    relay = networks["relay"]
    anchor = networks["mainnet"].anchor_asset
    with pytest.raises(StateError):
        relay.send("mainnet", "sidechain", anchor, ALICE, ALICE, WAD)


def test_invalid_sends_rejected(networks):
    relay, ybtc_main = networks["relay"], networks["ybtc_main"]
    with pytest.raises(ValidationError):
        relay.send("mainnet", "mainnet", ybtc_main.address, ALICE, ALICE, WAD)
    with pytest.raises(ValidationError):
        relay.send("mainnet", "sidechain", ybtc_main.address, ALICE, ALICE, 0)


def test_map_asset_requires_synthetics(networks):
    relay = networks["relay"]
    usdc = networks["mainnet"].base_stable
    with pytest.raises(ValidationError):
        relay.map_asset("mainnet", usdc, "sidechain", networks["ybtc_side"].address)


def test_bridge_entry_points_require_role(networks):
    mainnet, ybtc_main = networks["mainnet"], networks["ybtc_main"]
    with pytest.raises(AuthorizationError):
        mainnet.bridge_mint(ALICE, ybtc_main.address, ALICE, WAD)
    with pytest.raises(AuthorizationError):
        mainnet.bridge_burn(ALICE, ybtc_main.address, ALICE, WAD)
    assert ybtc_main.total_supply == 5 * WAD


def test_bridge_cannot_touch_non_synthetic(networks):
    mainnet = networks["mainnet"]
    with pytest.raises(ValidationError):
        mainnet.bridge_mint(RELAY, mainnet.base_stable, ALICE, WAD)
