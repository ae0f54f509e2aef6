"""
Unit tests for the single pending-burn slot.
"""

import pytest

from synthpool.core.defi.pending_burn import PendingBurn
from synthpool.core.exceptions import StateError


class BurnRecorder:
    def __init__(self):
        self.burns = []

    def __call__(self, asset, amount):
        self.burns.append((asset, amount))


def test_same_asset_accumulates():
    slot = PendingBurn()
    burn = BurnRecorder()
    slot.record("ybtc", 10, burn)
    slot.record("ybtc", 5, burn)
    assert (slot.asset, slot.amount) == ("ybtc", 15)
    assert burn.burns == []


def test_different_asset_burns_previous_first():
    slot = PendingBurn()
    burn = BurnRecorder()
    slot.record("ybtc", 10, burn)
    burned = slot.record("yeth", 3, burn)
    assert burned == 10
    assert burn.burns == [("ybtc", 10)]
    assert (slot.asset, slot.amount) == ("yeth", 3)


def test_settle_clears_slot():
    slot = PendingBurn()
    burn = BurnRecorder()
    slot.record("ybtc", 7, burn)
    assert slot.settle(burn) == 7
    assert slot.is_empty
    assert burn.burns == [("ybtc", 7)]


def test_settle_empty_raises():
    with pytest.raises(StateError):
        PendingBurn().settle(BurnRecorder())


def test_settle_if_pending_on_empty_is_noop():
    burn = BurnRecorder()
    assert PendingBurn().settle_if_pending(burn) == 0
    assert burn.burns == []


def test_pending_for():
    slot = PendingBurn()
    slot.record("ybtc", 4, BurnRecorder())
    assert slot.pending_for("ybtc") == 4
    assert slot.pending_for("yeth") == 0


def test_failed_burn_leaves_slot_untouched():
    slot = PendingBurn()
    slot.record("ybtc", 4, BurnRecorder())

    def failing_burn(asset, amount):
        raise RuntimeError("burn failed")

    with pytest.raises(RuntimeError):
        slot.settle(failing_burn)
    assert (slot.asset, slot.amount) == ("ybtc", 4)
