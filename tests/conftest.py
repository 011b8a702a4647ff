# tests/conftest.py
from __future__ import annotations

import math

import pytest
from loguru import logger

from simsum.core.summary_set import SummarySet
from simsum.core.types import VariableKey
from simsum.query.accessor import SummaryQuery

NAN = math.nan


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


@pytest.fixture
def summary() -> SummarySet:
    """
    三个 step（day 0 / 10 / 20），report 1 = [0, 0]，report 2 = [1, 2]

        WOPR:W1    10   20   15
        WOPR:W2     0    5    -
        WWCT:W2     -    -    -
        GOPR:G1    10   25   15
        FOPT        0  200  350
        RPR:1     250  245  240
        COPR:W1:1   4    8    6
        TIME        0   10   20
    """
    s = SummarySet(case="BASE")
    s.set_header_metadata(
        start_time="2020-01-01",
        well_names=["W1", "W2"],
        group_names=["G1"],
        units={
            VariableKey.well("WOPR", "W1"): "SM3/DAY",
            VariableKey.well("WOPR", "W2"): "SM3/DAY",
            VariableKey.well("WWCT", "W2"): "",
            VariableKey.group("GOPR", "G1"): "SM3/DAY",
            VariableKey.field("FOPT"): "SM3",
            VariableKey.region("RPR", 1): "BARSA",
            VariableKey.completion_of("COPR", "W1", 1): "SM3/DAY",
            VariableKey.misc("TIME"): "DAYS",
        },
    )
    s.extend(
        days=[0.0, 10.0, 20.0],
        reports=[1, 2, 2],
        values={
            "WOPR:W1": [10.0, 20.0, 15.0],
            "WOPR:W2": [0.0, 5.0, NAN],
            "GOPR:G1": [10.0, 25.0, 15.0],
            "FOPT": [0.0, 200.0, 350.0],
            "RPR:1": [250.0, 245.0, 240.0],
            "COPR:W1:1": [4.0, 8.0, 6.0],
            "TIME": [0.0, 10.0, 20.0],
        },
    )
    return s


@pytest.fixture
def query(summary: SummarySet) -> SummaryQuery:
    return SummaryQuery(summary)
