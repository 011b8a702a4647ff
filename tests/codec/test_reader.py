# tests/codec/test_reader.py
from __future__ import annotations

import shutil
from pathlib import Path

import numpy as np
import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from simsum.codec import load, load_data, load_interactive, save
from simsum.codec.batch_codec import read_batch, write_batch
from simsum.config.summary_config import FormatMode
from simsum.core.summary_set import SummarySet
from simsum.utils.errors import (
    AmbiguousSourceError,
    CorruptDataError,
    OutOfOrderDataError,
    SummaryIOError,
    UnitMismatchError,
)


@pytest.fixture
def saved(summary, tmp_path: Path) -> Path:
    save(summary, tmp_path / "BASE")
    return tmp_path / "BASE"


def test_non_recursive_loads_first_batch_only(saved):
    s = load(saved)
    assert s.step_count() == 1
    assert s.time_index.report_steps() == [1]


def test_recursive_loads_all_batches(saved):
    s = load(saved, recursive=True)
    assert s.step_count() == 3
    assert s.time_index.report_range(2) == (1, 2)


def test_recursive_stops_at_gap(saved, tmp_path: Path):
    shutil.copy(tmp_path / "BASE.S0002", tmp_path / "BASE.S0004")
    assert load(saved, recursive=True).step_count() == 3


def test_explicit_path_list(saved, tmp_path: Path):
    s = load([tmp_path / "BASE.SMSPEC", tmp_path / "BASE.S0002"])
    assert s.step_count() == 2
    assert s.time_index.report_steps() == [2]


def test_explicit_list_then_recursive(saved, tmp_path: Path):
    s = load([tmp_path / "BASE.SMSPEC", tmp_path / "BASE.S0001"], recursive=True)
    assert s.step_count() == 3


def test_load_data_into_existing_header(saved, tmp_path: Path):
    s = load(saved)
    added = load_data(s, [tmp_path / "BASE.S0002"])
    assert added == 2
    assert s.step_count() == 3


def test_reload_after_free_data(saved, tmp_path: Path):
    s = load(saved, recursive=True)
    s.free_data()
    load_data(s, [tmp_path / "BASE.S0001", tmp_path / "BASE.S0002"])
    assert s.step_count() == 3


def test_out_of_order_batch_rejected_and_set_unchanged(saved, tmp_path: Path):
    s = load(saved, recursive=True)
    before = s.store.view().copy()

    with pytest.raises(OutOfOrderDataError):
        load_data(s, [tmp_path / "BASE.S0002"])

    assert s.step_count() == 3
    np.testing.assert_array_equal(s.store.view(), before)


def test_missing_source(tmp_path: Path):
    with pytest.raises(SummaryIOError):
        load(tmp_path / "NOPE")
    with pytest.raises(SummaryIOError):
        load(tmp_path / "NOPE.SMSPEC")


def test_missing_explicit_batch(saved, tmp_path: Path):
    with pytest.raises(SummaryIOError):
        load([tmp_path / "BASE.SMSPEC", tmp_path / "BASE.S0009"])


def test_corrupt_header(tmp_path: Path):
    (tmp_path / "BAD.SMSPEC").write_bytes(b"not a parquet file")
    with pytest.raises(CorruptDataError):
        load(tmp_path / "BAD")

    (tmp_path / "BAD2.FSMSPEC").write_text("{ broken json", encoding="utf-8")
    with pytest.raises(CorruptDataError):
        load(tmp_path / "BAD2")


def test_corrupt_batch(saved, tmp_path: Path):
    (tmp_path / "BASE.S0001").write_bytes(b"garbage")
    with pytest.raises(CorruptDataError):
        load(saved)


def test_batch_missing_time_columns(saved, tmp_path: Path):
    pq.write_table(pa.table({"STEP": [0], "FOPT": [1.0]}), tmp_path / "BASE.S0001")
    with pytest.raises(CorruptDataError):
        load(saved)


def test_batch_non_numeric_days(saved, tmp_path: Path):
    pq.write_table(
        pa.table({"STEP": [0], "REPORT": [1], "DAYS": pa.array(["abc"]), "FOPT": [1.0]}),
        tmp_path / "BASE.S0001",
    )
    with pytest.raises(CorruptDataError):
        load(saved)


def test_header_metadata_not_utf8(tmp_path: Path):
    table = pa.table(
        {
            "category": ["field"],
            "keyword": ["FOPT"],
            "entity": pa.array([None], pa.string()),
            "completion": pa.array([None], pa.int64()),
            "unit": ["SM3"],
        }
    ).replace_schema_metadata({b"simsum.version": b"\xff\xfe"})
    pq.write_table(table, tmp_path / "C.SMSPEC")

    with pytest.raises(CorruptDataError):
        load(tmp_path / "C")


def test_batch_with_undeclared_variable(saved, tmp_path: Path):
    write_batch(
        tmp_path / "BASE.S0001",
        FormatMode.BINARY,
        np.array([0]),
        np.array([1]),
        np.array([0.0]),
        [("WOPR:W9", "SM3/DAY", np.array([1.0]))],
    )
    with pytest.raises(CorruptDataError):
        load(saved)


def _write_unit_batch(path: Path, unit: str) -> None:
    write_batch(
        path,
        FormatMode.BINARY,
        np.array([0]),
        np.array([1]),
        np.array([0.0]),
        [("WOPR:W1", unit, np.array([10.0]))],
    )


def test_unit_mismatch_strict(saved, tmp_path: Path):
    _write_unit_batch(tmp_path / "BASE.S0001", "STB/DAY")
    with pytest.raises(UnitMismatchError):
        load(saved)


def test_unit_mismatch_lenient(saved, tmp_path: Path):
    _write_unit_batch(tmp_path / "BASE.S0001", "STB/DAY")
    s = load(saved, strict_units=False)
    assert s.catalog.unit_of(s.catalog.keys()[0]) == "SM3/DAY"
    assert s.step_count() == 1


def test_formatted_batch_units_parsed(summary, tmp_path: Path):
    save(summary, tmp_path / "TXT", FormatMode.FORMATTED)
    batch = read_batch(tmp_path / "TXT.A0001")
    assert batch.units["WOPR:W1"] == "SM3/DAY"
    assert batch.units["WWCT:W2"] == ""
    assert np.isnan(batch.columns["WWCT:W2"]).all()


# -----------------------------------------------------------------------------
# interactive selection
# -----------------------------------------------------------------------------
def test_interactive_single_candidate(saved, tmp_path: Path):
    s = load_interactive(tmp_path)
    assert s.step_count() == 3


def test_interactive_no_candidate(tmp_path: Path):
    with pytest.raises(SummaryIOError):
        load_interactive(tmp_path)


def test_interactive_ambiguous(summary, tmp_path: Path):
    save(summary, tmp_path / "A")
    save(summary, tmp_path / "B", FormatMode.FORMATTED)

    with pytest.raises(AmbiguousSourceError) as err:
        load_interactive(tmp_path)
    assert err.value.candidates == ["A", "B"]

    assert load_interactive(tmp_path, selection="B").format_mode is FormatMode.FORMATTED
    assert load_interactive(tmp_path, prompt=lambda c: c[0]).format_mode is FormatMode.BINARY

    with pytest.raises(AmbiguousSourceError):
        load_interactive(tmp_path, selection="C")


def test_load_never_returns_partial_set(saved, tmp_path: Path):
    (tmp_path / "BASE.S0002").write_bytes(b"garbage")
    result = None
    with pytest.raises(CorruptDataError):
        result = load(saved, recursive=True)
    assert result is None


def test_programmatic_set_can_be_saved(tmp_path: Path):
    s = SummarySet(case="PROG")
    s.set_header_metadata(start_time="2020-06-01", units={"FOPT": "SM3"})
    s.extend(days=[0.0, 1.0], reports=[1, 2], values={"FOPT": [0.0, 5.0]})
    save(s, tmp_path / "PROG")
    assert load(tmp_path / "PROG", recursive=True).step_count() == 2
