# tests/analytics/test_max_min.py
from __future__ import annotations

import numpy as np
import pytest

from simsum.analytics.max_min import MaxMin, max_min, scan_slots, well_max_min, wells_max_min
from simsum.core.summary_set import SummarySet
from simsum.query.accessor import SummaryQuery
from simsum.utils.errors import NotFoundError, OutOfRangeError


def test_well_max_min_example(query):
    result = well_max_min(query, "W1", ["WOPR"], (0, 2))
    assert result["WOPR"].as_tuple() == (20.0, 10.0)


def test_max_min_by_key(query):
    result = max_min(query, ["FOPT", "RPR:1"], (1, 2))
    assert result["FOPT"] == MaxMin(350.0, 200.0)
    assert result["RPR:1"] == MaxMin(245.0, 240.0)


def test_absent_cells_are_ignored(query):
    assert max_min(query, ["WOPR:W2"], (0, 2))["WOPR:W2"].as_tuple() == (5.0, 0.0)


def test_all_absent_is_no_data_not_zero(query):
    result = max_min(query, ["WWCT:W2"], (0, 2))["WWCT:W2"]
    assert not result.has_data
    assert result.as_tuple() is None
    assert result == MaxMin.no_data()


def test_exclude_zero(query):
    result = max_min(query, ["WOPR:W2", "FOPT"], (0, 0), include_zero=False)
    assert not result["WOPR:W2"].has_data
    assert not result["FOPT"].has_data


def test_bad_range(query):
    with pytest.raises(OutOfRangeError):
        max_min(query, ["FOPT"], (0, 3))
    with pytest.raises(OutOfRangeError):
        max_min(query, ["FOPT"], (2, 1))


def test_unknown_key(query):
    with pytest.raises(NotFoundError):
        well_max_min(query, "W1", ["WBAD"], (0, 2))


def test_wells_max_min(query):
    result = wells_max_min(query, ["W1", "W2"], ["WOPR"], (0, 2))
    assert result["W1"]["WOPR"].as_tuple() == (20.0, 10.0)
    assert result["W2"]["WOPR"].as_tuple() == (5.0, 0.0)


def test_parallel_scan_matches_sequential():
    rng = np.random.default_rng(7)
    n = 1000
    data = rng.normal(size=(n, 3))
    data[rng.random(size=(n, 3)) < 0.3] = np.nan
    data[:, 2] = np.nan

    s = SummarySet(case="BIG")
    s.set_header_metadata(start_time="2020-01-01", units={"FOPR": "", "FWPR": "", "FGPR": ""})
    s.extend(
        days=np.arange(n, dtype=float),
        reports=np.repeat(np.arange(10), n // 10),
        values={"FOPR": data[:, 0], "FWPR": data[:, 1], "FGPR": data[:, 2]},
    )
    q = SummaryQuery(s)

    seq = scan_slots(q, [0, 1, 2], (5, 990), workers=1)
    par = scan_slots(q, [0, 1, 2], (5, 990), workers=4)

    assert seq == par
    assert seq[0].max == np.nanmax(data[5:991, 0])
    assert seq[1].min == np.nanmin(data[5:991, 1])
    assert not seq[2].has_data
