"""
Shared fixtures for SynthPool tests.

Addresses are plain lower-case strings; the ledger only requires them to
be non-empty and distinct from the zero address.
"""

import pytest

from synthpool.core.config import EngineSettings
from synthpool.core.contracts.erc20 import ERC20Token
from synthpool.core.defi.oracle import FixedPriceSource, ManualPriceFeed, PriceOracle
from synthpool.core.engine import SynthPoolEngine

WAD = 10**18
DAY = 24 * 60 * 60

DEPLOYER = "0xdeployer"
ADMIN = "0xadmin"
TREASURY = "0xtreasury"
ALICE = "0xalice"
BOB = "0xbob"
CAROL = "0xcarol"

BIG_CAP = 10**40


class FakeClock:
    """Deterministic clock injected into the engine."""

    def __init__(self, start: int = 1_700_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def oracle():
    return PriceOracle()


@pytest.fixture
def usdc():
    return ERC20Token(name="USD Coin", symbol="USDC", decimals=18, owner=ADMIN)


@pytest.fixture
def engine(clock, oracle, usdc):
    engine = SynthPoolEngine(settings=EngineSettings(), clock=clock, address="0xcore")
    engine.initialize(
        caller=DEPLOYER,
        admin=ADMIN,
        base_stable=usdc,
        oracle=oracle,
        treasury=TREASURY,
    )
    return engine


@pytest.fixture
def anchor(engine):
    return engine.tokens[engine.anchor_asset]


@pytest.fixture
def approve():
    """Grant the engine unlimited allowance on every registered token."""

    def _approve(engine, *accounts):
        for token in engine.tokens.values():
            for account in accounts:
                token.approve(account, engine.address, token.UINT256_MAX)

    return _approve


@pytest.fixture
def fund():
    """Credit tokens directly, impersonating the token owner."""

    def _fund(token, account, amount):
        token.mint(token.owner, account, amount)

    return _fund


@pytest.fixture
def btc_feed():
    return ManualPriceFeed(price=104_000 * WAD)


@pytest.fixture
def lending(engine, anchor, btc_feed, approve, fund):
    """
    Engine with BTC collateral and three synthetics configured:
    yJPY (0.0066 USD), yBTC (100,000 USD), yETH (4,000 USD) and the anchor.
    """
    btc = ERC20Token(name="Bitcoin", symbol="BTC", decimals=18, owner=ADMIN)
    engine.register_collateral(ADMIN, btc, supply_cap=BIG_CAP, price_source=btc_feed)

    yjpy = engine.create_synthetic_asset(
        ADMIN, "Synthetic JPY", "yJPY", 18, FixedPriceSource(66 * 10**14), BIG_CAP, BIG_CAP
    )
    ybtc = engine.create_synthetic_asset(
        ADMIN, "Synthetic BTC", "yBTC", 18, FixedPriceSource(100_000 * WAD), BIG_CAP, BIG_CAP
    )
    yeth = engine.create_synthetic_asset(
        ADMIN, "Synthetic ETH", "yETH", 18, FixedPriceSource(4_000 * WAD), BIG_CAP, BIG_CAP
    )
    engine.set_synthetic_config(ADMIN, anchor.address, mint_cap=BIG_CAP, flash_cap=BIG_CAP)

    for synthetic in (yjpy, ybtc, yeth, anchor):
        engine.set_pair_config(
            ADMIN, btc.address, synthetic.address, rate_bps=500, ltv_bps=8000, penalty_bps=500
        )

    for account in (ALICE, BOB, CAROL):
        fund(btc, account, 10 * WAD)
    approve(engine, ALICE, BOB, CAROL, TREASURY)

    return {
        "engine": engine,
        "btc": btc,
        "btc_feed": btc_feed,
        "yjpy": yjpy,
        "ybtc": ybtc,
        "yeth": yeth,
        "anchor": anchor,
    }
