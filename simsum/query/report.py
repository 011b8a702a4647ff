# simsum/query/report.py
from __future__ import annotations

import sys
from typing import List, Optional, Sequence, TextIO, Tuple, Union

import numpy as np
import pandas as pd

from simsum.core.types import VariableKey
from simsum.query.accessor import SummaryQuery
from simsum.utils.datetime_utils import DateTimeUtils

KeyLike = Union[VariableKey, str]

ABSENT_TEXT = "-"


def _resolve_keys(query: SummaryQuery, keys: Sequence[KeyLike]) -> List[Tuple[str, int]]:
    out = []
    for key in keys:
        slot = query.get_key_index(key)
        out.append((query.summary.catalog.key_at(slot).gen_key(), slot))
    return out


def _step_bounds(query: SummaryQuery, first: int, last: Optional[int]) -> Tuple[int, int]:
    if last is None:
        last = query.get_size() - 1
    return first, last


def dump(
    query: SummaryQuery,
    keys: Sequence[KeyLike],
    first: int = 0,
    last: Optional[int] = None,
    stream: Optional[TextIO] = None,
    precision: int = 3,
) -> None:
    """
    列对齐文本表：

        DATE        DAYS        WOPR:W1   FOPT
        2020-01-01  0.000       10.000    ...

    缺省单元格输出为 '-'；未设置起始时间时省略 DATE 列
    """
    stream = stream or sys.stdout
    cols = _resolve_keys(query, keys)
    first, last = _step_bounds(query, first, last)
    with_date = query.summary.start_time is not None

    header = (["DATE"] if with_date else []) + ["DAYS"] + [name for name, _ in cols]
    rows: List[List[str]] = []

    if last >= first:
        data = [query.get_vector(slot, first, last) for _, slot in cols]
        for offset, step in enumerate(range(first, last + 1)):
            row = [query.get_sim_time(step).strftime("%Y-%m-%d")] if with_date else []
            row.append(f"{query.get_sim_days(step):.{precision}f}")
            for values in data:
                v = values[offset]
                row.append(ABSENT_TEXT if np.isnan(v) else f"{v:.{precision}f}")
            rows.append(row)

    widths = [len(h) for h in header]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]

    def _line(cells: List[str]) -> str:
        # DATE 左对齐，数值列右对齐
        parts = [
            c.ljust(w) if with_date and i == 0 else c.rjust(w)
            for i, (c, w) in enumerate(zip(cells, widths))
        ]
        return "  ".join(parts).rstrip()

    stream.write(_line(header) + "\n")
    for row in rows:
        stream.write(_line(row) + "\n")


def to_frame(
    query: SummaryQuery,
    keys: Sequence[KeyLike],
    first: int = 0,
    last: Optional[int] = None,
) -> pd.DataFrame:
    """
    选定变量 → DataFrame（index = 日历时间，列 = 规范键文本，缺省为 NaN）
    """
    cols = _resolve_keys(query, keys)
    first, last = _step_bounds(query, first, last)

    summary = query.summary
    if last >= first:
        days = summary.time_index.days()[first: last + 1]
        if summary.start_time is None:
            index = pd.Index(days, name="days")
        else:
            index = pd.DatetimeIndex(
                DateTimeUtils.to_datetime64(summary.start_time, days), name="time"
            )
        data = {name: query.get_vector(slot, first, last) for name, slot in cols}
    else:
        index = pd.DatetimeIndex([], name="time")
        data = {name: np.empty(0, dtype=np.float64) for name, _ in cols}

    return pd.DataFrame(data, index=index, columns=[name for name, _ in cols])
