# simsum/codec/batch_codec.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

import numpy as np
import pyarrow as pa
import pyarrow.csv as pacsv
import pyarrow.parquet as pq

from simsum.codec.naming import SummaryFileName
from simsum.config.summary_config import FormatMode
from simsum.core.types import DAYS_COL, REPORT_COL, RESERVED_KEYS, STEP_COL
from simsum.utils.errors import CorruptDataError, SummaryIOError
from simsum.utils.filesystem import FileSystem

TIME_COLS = RESERVED_KEYS

_UNIT_RE = re.compile(r"^(?P<key>.*?)\s*\[(?P<unit>[^\]]*)\]$")


@dataclass
class BatchData:
    """
    一个数据批次：若干连续 step + 每个变量一列数值

    columns / units 以规范键文本（WOPR:W1）为 key，保持文件列顺序。
    """

    path: Path
    ministeps: np.ndarray
    reports: np.ndarray
    days: np.ndarray
    columns: Dict[str, np.ndarray] = field(default_factory=dict)
    units: Dict[str, str] = field(default_factory=dict)

    @property
    def rows(self) -> int:
        return int(self.days.shape[0])


# ======================================================================
# write
# ======================================================================
def write_batch(
    path: Path,
    format_mode: FormatMode,
    ministeps: np.ndarray,
    reports: np.ndarray,
    days: np.ndarray,
    columns: Sequence[Tuple[str, str, np.ndarray]],
) -> None:
    """
    columns: [(key_text, unit, values)]，values 中 NaN 表示缺省单元格
    """
    if FormatMode(format_mode) is FormatMode.FORMATTED:
        data = _encode_formatted(ministeps, reports, days, columns)
    else:
        data = _encode_binary(ministeps, reports, days, columns)

    try:
        FileSystem.safe_write(path, data)
    except OSError as exc:
        raise SummaryIOError(f"[Batch] cannot write {path}: {exc}") from exc


def _time_arrays(ministeps, reports, days) -> Tuple[List[pa.Field], List[pa.Array]]:
    fields = [
        pa.field(STEP_COL, pa.int64(), nullable=False),
        pa.field(REPORT_COL, pa.int64(), nullable=False),
        pa.field(DAYS_COL, pa.float64(), nullable=False),
    ]
    arrays = [
        pa.array(np.asarray(ministeps, dtype=np.int64)),
        pa.array(np.asarray(reports, dtype=np.int64)),
        pa.array(np.asarray(days, dtype=np.float64)),
    ]
    return fields, arrays


def _encode_binary(ministeps, reports, days, columns) -> bytes:
    fields, arrays = _time_arrays(ministeps, reports, days)
    for key_text, unit, values in columns:
        fields.append(pa.field(key_text, pa.float64(), metadata={"unit": unit or ""}))
        # parquet 原样保留 NaN
        arrays.append(pa.array(np.asarray(values, dtype=np.float64)))

    table = pa.Table.from_arrays(arrays, schema=pa.schema(fields))
    sink = pa.BufferOutputStream()
    pq.write_table(table, sink)
    return sink.getvalue().to_pybytes()


def _encode_formatted(ministeps, reports, days, columns) -> bytes:
    fields, arrays = _time_arrays(ministeps, reports, days)
    for key_text, unit, values in columns:
        name = f"{key_text} [{unit}]" if unit else key_text
        fields.append(pa.field(name, pa.float64()))
        # 文本格式中缺省单元格写为空字段
        arrays.append(pa.array(np.asarray(values, dtype=np.float64), from_pandas=True))

    table = pa.Table.from_arrays(arrays, schema=pa.schema(fields))
    sink = pa.BufferOutputStream()
    pacsv.write_csv(table, sink)
    return sink.getvalue().to_pybytes()


# ======================================================================
# read
# ======================================================================
def read_batch(path: Path, format_mode: FormatMode | None = None) -> BatchData:
    path = Path(path)
    if format_mode is None:
        name = SummaryFileName.parse(path)
        if name is None or name.is_header:
            raise SummaryIOError(f"[Batch] not a data batch file name: {path}")
        format_mode = name.format_mode

    if not path.exists():
        raise SummaryIOError(f"[Batch] not found: {path}")

    try:
        if FormatMode(format_mode) is FormatMode.FORMATTED:
            table, units = _decode_formatted(path)
        else:
            table, units = _decode_binary(path)
    except (pa.ArrowInvalid, pa.ArrowTypeError, UnicodeDecodeError) as exc:
        raise CorruptDataError(f"[Batch] malformed batch {path}: {exc}") from exc
    except OSError as exc:
        raise SummaryIOError(f"[Batch] cannot read {path}: {exc}") from exc

    return _to_batch(path, table, units)


def _decode_binary(path: Path) -> Tuple[pa.Table, Dict[str, str]]:
    table = pq.read_table(path)
    units = {}
    for f in table.schema:
        if f.name in TIME_COLS:
            continue
        meta = f.metadata or {}
        units[f.name] = meta.get(b"unit", b"").decode("utf-8")
    return table, units


def _decode_formatted(path: Path) -> Tuple[pa.Table, Dict[str, str]]:
    table = pacsv.read_csv(
        path,
        convert_options=pacsv.ConvertOptions(
            column_types={
                STEP_COL: pa.int64(),
                REPORT_COL: pa.int64(),
                DAYS_COL: pa.float64(),
            },
        ),
    )

    names = []
    units = {}
    for name in table.column_names:
        if name in TIME_COLS:
            names.append(name)
            continue
        m = _UNIT_RE.match(name)
        key_text, unit = (m.group("key"), m.group("unit").strip()) if m else (name.strip(), "")
        names.append(key_text)
        units[key_text] = unit

    return table.rename_columns(names), units


def _to_batch(path: Path, table: pa.Table, units: Dict[str, str]) -> BatchData:
    missing = [c for c in TIME_COLS if c not in table.column_names]
    if missing:
        raise CorruptDataError(f"[Batch] {path.name} missing columns: {missing}")

    if len(set(table.column_names)) != len(table.column_names):
        raise CorruptDataError(f"[Batch] {path.name} has duplicate columns")

    for name in (STEP_COL, REPORT_COL):
        col = table.column(name)
        if not pa.types.is_integer(col.type):
            raise CorruptDataError(f"[Batch] {path.name} column {name} must be integer, got {col.type}")
        if col.null_count:
            raise CorruptDataError(f"[Batch] {path.name} column {name} has empty cells")
    days_col = table.column(DAYS_COL)
    if not (pa.types.is_floating(days_col.type) or pa.types.is_integer(days_col.type)):
        raise CorruptDataError(f"[Batch] {path.name} column {DAYS_COL} is not numeric ({days_col.type})")
    if days_col.null_count:
        raise CorruptDataError(f"[Batch] {path.name} column {DAYS_COL} has empty cells")

    columns: Dict[str, np.ndarray] = {}
    for name in table.column_names:
        if name in TIME_COLS:
            continue
        col = table.column(name)
        if not (pa.types.is_floating(col.type) or pa.types.is_integer(col.type) or pa.types.is_null(col.type)):
            raise CorruptDataError(f"[Batch] {path.name} column {name} is not numeric ({col.type})")
        # 空单元格（null）→ NaN
        columns[name] = col.cast(pa.float64()).to_numpy().astype(np.float64)

    return BatchData(
        path=path,
        ministeps=table.column(STEP_COL).to_numpy().astype(np.int64),
        reports=table.column(REPORT_COL).to_numpy().astype(np.int64),
        days=days_col.cast(pa.float64()).to_numpy().astype(np.float64),
        columns=columns,
        units={k: units.get(k, "") for k in columns},
    )
