"""
Unit tests for the lazy interest index.
"""

import pytest

from synthpool.core.defi.interest import InterestIndex, compute_index, to_actual, to_scaled
from synthpool.core.defi.safe_math import RAY, SECONDS_PER_YEAR
from synthpool.core.exceptions import ValidationError

WAD = 10**18


def test_compute_index_one_year_simple_step():
    # 10% over one year in a single step
    assert compute_index(RAY, 1_000, SECONDS_PER_YEAR) == RAY + RAY // 10


def test_compute_index_no_time_or_rate():
    assert compute_index(RAY, 500, 0) == RAY
    assert compute_index(RAY, 0, SECONDS_PER_YEAR) == RAY


def test_accrue_same_timestamp_is_noop():
    index = InterestIndex(rate_bps=500, value=RAY, last_update=100)
    first = index.accrue(100 + 86_400)
    second = index.accrue(100 + 86_400)
    assert first == second
    assert index.last_update == 100 + 86_400


def test_accrue_ignores_past_timestamps():
    index = InterestIndex(rate_bps=500, value=RAY, last_update=1_000)
    assert index.accrue(500) == RAY
    assert index.last_update == 1_000


def test_preview_does_not_mutate():
    index = InterestIndex(rate_bps=500, value=RAY, last_update=0)
    preview = index.preview(SECONDS_PER_YEAR)
    assert preview > RAY
    assert index.value == RAY
    assert index.last_update == 0


def test_index_compounds_across_touches():
    single = InterestIndex(rate_bps=1_000, value=RAY, last_update=0)
    single.accrue(SECONDS_PER_YEAR)

    stepped = InterestIndex(rate_bps=1_000, value=RAY, last_update=0)
    for month in range(1, 13):
        stepped.accrue(month * SECONDS_PER_YEAR // 12)

    assert stepped.value > single.value


def test_set_rate_accrues_under_old_rate_first():
    index = InterestIndex(rate_bps=1_000, value=RAY, last_update=0)
    index.set_rate(0, SECONDS_PER_YEAR)
    assert index.value == RAY + RAY // 10
    assert index.rate_bps == 0
    assert index.accrue(2 * SECONDS_PER_YEAR) == RAY + RAY // 10


def test_negative_rate_rejected():
    with pytest.raises(ValidationError):
        InterestIndex(rate_bps=-1)
    index = InterestIndex()
    with pytest.raises(ValidationError):
        index.set_rate(-5, 10)


def test_scaled_round_trip_rounding():
    index = RAY + RAY // 3
    amount = 1_000 * WAD + 7
    scaled_up = to_scaled(amount, index, round_up=True)
    assert to_actual(scaled_up, index, round_up=True) >= amount
    scaled_down = to_scaled(amount, index)
    assert to_actual(scaled_down, index) <= amount
