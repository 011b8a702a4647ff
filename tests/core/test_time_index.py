# tests/core/test_time_index.py
from __future__ import annotations

from datetime import datetime

import numpy as np
import pytest

from simsum.core.time_index import TimeIndex
from simsum.utils.errors import NotFoundError, OutOfOrderDataError, OutOfRangeError


@pytest.fixture
def index() -> TimeIndex:
    idx = TimeIndex(datetime(2020, 1, 1))
    idx.append([0.0, 1.0, 2.0], [1, 1, 2])
    idx.append([3.0, 3.0, 5.0], [2, 3, 5])
    return idx


def test_step_count_and_time(index):
    assert index.step_count() == 6
    assert index.time_at(0) == datetime(2020, 1, 1)
    assert index.time_at(5) == datetime(2020, 1, 6)
    assert index.days_at(3) == 3.0


def test_time_at_out_of_range(index):
    with pytest.raises(OutOfRangeError):
        index.time_at(6)
    with pytest.raises(OutOfRangeError):
        index.time_at(-1)


def test_report_ranges_partition_all_steps(index):
    covered = []
    for report in index.report_steps():
        first, last = index.report_range(report)
        assert first <= last
        covered.extend(range(first, last + 1))
    assert covered == list(range(index.step_count()))


def test_report_range_continues_across_batches(index):
    assert index.report_range(1) == (0, 1)
    assert index.report_range(2) == (2, 3)
    assert index.report_range(5) == (5, 5)
    assert (index.first_report, index.last_report) == (1, 5)


def test_report_range_unknown(index):
    with pytest.raises(NotFoundError):
        index.report_range(4)


def test_substep(index):
    assert [index.substep(s) for s in range(6)] == [0, 1, 0, 1, 0, 0]


def test_default_ministeps_continue(index):
    np.testing.assert_array_equal(index.ministeps(), np.arange(6))


def test_append_earlier_time_fails_and_keeps_index(index):
    with pytest.raises(OutOfOrderDataError):
        index.append([4.0], [5])
    assert index.step_count() == 6
    assert index.report_range(5) == (5, 5)


def test_append_repeated_ministep_fails(index):
    with pytest.raises(OutOfOrderDataError):
        index.append([6.0], [5], ministeps=[5])


def test_append_earlier_report_fails(index):
    with pytest.raises(OutOfOrderDataError):
        index.append([6.0], [3])


def test_unsorted_batch_fails():
    idx = TimeIndex(datetime(2020, 1, 1))
    with pytest.raises(OutOfOrderDataError):
        idx.append([0.0, 2.0, 1.0], [1, 1, 1])
    assert idx.step_count() == 0


def test_step_at_days_exact_and_nearest(index):
    assert index.step_at_days(2.0) == 2
    assert index.step_at_days(3.0) == 3
    assert index.step_at_days(2.4) is None
    assert index.step_at_days(2.4, nearest=True) == 2
    assert index.step_at_days(4.6, nearest=True) == 5
    assert index.step_at_days(100.0, nearest=True) == 5


def test_step_at_time(index):
    assert index.step_at_time(datetime(2020, 1, 2)) == 1


def test_clear(index):
    index.clear()
    assert index.step_count() == 0
    assert index.report_steps() == []
