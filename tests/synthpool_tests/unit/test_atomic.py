"""
Unit tests for the atomic section and reentrancy guard.
"""

import pytest

from synthpool.core.atomic import AtomicSection
from synthpool.core.exceptions import ReentrancyError, StateError, is_recoverable_error


class Counter:
    def __init__(self):
        self.value = 0

    def snapshot(self):
        return {"value": self.value}

    def restore(self, snapshot):
        self.value = snapshot["value"]


def test_commit_keeps_changes():
    section = AtomicSection()
    counter = Counter()
    with section.run("increment", [counter]):
        counter.value += 1
    assert counter.value == 1
    assert not section.active


def test_exception_rolls_back():
    section = AtomicSection()
    counter = Counter()
    with pytest.raises(RuntimeError):
        with section.run("increment", [counter]):
            counter.value += 5
            raise RuntimeError("boom")
    assert counter.value == 0
    assert not section.active


def test_nested_begin_is_reentrancy():
    section = AtomicSection()
    counter = Counter()
    with pytest.raises(ReentrancyError) as exc_info:
        with section.run("outer", [counter]):
            counter.value = 3
            with section.run("inner", [counter]):
                pass
    assert counter.value == 0
    # Retrying once the outer operation has finished is safe
    assert is_recoverable_error(exc_info.value)


def test_operation_name_tracked():
    section = AtomicSection()
    with section.run("borrow", []):
        assert section.operation == "borrow"
        assert section.active
    assert section.operation == ""


def test_commit_without_begin():
    with pytest.raises(StateError):
        AtomicSection().commit()
    with pytest.raises(StateError):
        AtomicSection().rollback()


def test_rollback_restores_every_participant():
    section = AtomicSection()
    first, second = Counter(), Counter()
    section.begin("multi", [first, second])
    first.value, second.value = 1, 2
    section.rollback()
    assert (first.value, second.value) == (0, 0)
