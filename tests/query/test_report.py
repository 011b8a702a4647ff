# tests/query/test_report.py
from __future__ import annotations

import io

import numpy as np
import pandas as pd
import pytest

from simsum.core.summary_set import SummarySet
from simsum.query.accessor import SummaryQuery
from simsum.query.report import dump, to_frame
from simsum.utils.errors import NotFoundError


def test_dump_table(query):
    out = io.StringIO()
    dump(query, ["WOPR:W1", "WOPR:W2"], stream=out)

    lines = out.getvalue().splitlines()
    assert len(lines) == 4
    assert lines[0].split() == ["DATE", "DAYS", "WOPR:W1", "WOPR:W2"]
    assert lines[2].split() == ["2020-01-11", "10.000", "20.000", "5.000"]
    assert lines[3].split() == ["2020-01-21", "20.000", "15.000", "-"]


def test_dump_columns_are_aligned(query):
    out = io.StringIO()
    dump(query, ["FOPT", "RPR:1"], first=1, last=2, stream=out)

    lines = out.getvalue().splitlines()
    assert len(lines) == 3
    assert len({len(line) for line in lines}) == 1


def test_dump_without_start_time():
    s = SummarySet(case="NOSTART")
    s.register("FOPR", "SM3/DAY")
    s.extend(days=[0.0, 5.0], reports=[1, 1], values={"FOPR": [1.0, 2.5]})

    out = io.StringIO()
    dump(SummaryQuery(s), ["FOPR"], stream=out)

    lines = out.getvalue().splitlines()
    assert lines[0].split() == ["DAYS", "FOPR"]
    assert lines[2].split() == ["5.000", "2.500"]
    assert len({len(line) for line in lines}) == 1


def test_dump_unknown_key(query):
    with pytest.raises(NotFoundError):
        dump(query, ["WOPR:NOPE"], stream=io.StringIO())


def test_to_frame(query):
    df = to_frame(query, ["WOPR:W1", "FOPT"])

    assert list(df.columns) == ["WOPR:W1", "FOPT"]
    assert df.index[0] == pd.Timestamp("2020-01-01")
    assert df.index[-1] == pd.Timestamp("2020-01-21")
    np.testing.assert_array_equal(df["FOPT"].to_numpy(), [0.0, 200.0, 350.0])
