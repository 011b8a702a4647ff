# simsum/core/value_store.py
from __future__ import annotations

import numpy as np

from simsum.core.types import ABSENT
from simsum.utils.errors import OutOfRangeError


class ValueStore:
    """
    ValueStore（step × slot 二维数值表）

    - float64，未赋值单元格为 ABSENT（NaN）
    - 行、列均按倍增容量增长（append-only）
    - 行数必须始终与 TimeIndex.step_count() 一致，由 SummarySet.extend 保证
    """

    def __init__(self, slots: int = 0) -> None:
        self._rows = 0
        self._cols = slots
        self._data = np.full((0, max(slots, 0)), ABSENT, dtype=np.float64)

    # --------------------------------------------------
    # growth
    # --------------------------------------------------
    def _reserve(self, rows: int, cols: int) -> None:
        cap_rows, cap_cols = self._data.shape
        if rows <= cap_rows and cols <= cap_cols:
            return

        new_rows = cap_rows if rows <= cap_rows else max(rows, 2 * cap_rows, 16)
        new_cols = cap_cols if cols <= cap_cols else max(cols, 2 * cap_cols, 8)

        data = np.full((new_rows, new_cols), ABSENT, dtype=np.float64)
        data[: self._rows, : self._cols] = self._data[: self._rows, : self._cols]
        self._data = data

    def append_rows(self, count: int) -> int:
        """
        追加 count 行（全部 ABSENT），返回第一行新序号。
        """
        if count < 0:
            raise ValueError(f"row count must be >= 0, got {count}")
        first = self._rows
        self._reserve(self._rows + count, self._cols)
        self._rows += count
        return first

    def ensure_slots(self, slots: int) -> None:
        if slots <= self._cols:
            return
        self._reserve(self._rows, slots)
        self._cols = slots

    def clear(self) -> None:
        """释放数据行，保留列数"""
        self._rows = 0
        self._data = np.full((0, self._cols), ABSENT, dtype=np.float64)

    # --------------------------------------------------
    # access
    # --------------------------------------------------
    def step_count(self) -> int:
        return self._rows

    def slot_count(self) -> int:
        return self._cols

    def _check(self, step: int, slot: int) -> None:
        if not 0 <= step < self._rows:
            raise OutOfRangeError(f"step {step} out of range (step_count={self._rows})")
        if not 0 <= slot < self._cols:
            raise OutOfRangeError(f"slot {slot} out of range (slot_count={self._cols})")

    def get(self, step: int, slot: int) -> float:
        self._check(step, slot)
        return float(self._data[step, slot])

    def set(self, step: int, slot: int, value: float) -> None:
        self._check(step, slot)
        self._data[step, slot] = value

    def set_block(self, first_step: int, slot: int, values: np.ndarray) -> None:
        values = np.asarray(values, dtype=np.float64).reshape(-1)
        last = first_step + values.shape[0] - 1
        if values.shape[0] == 0:
            return
        self._check(first_step, slot)
        self._check(last, slot)
        self._data[first_step: last + 1, slot] = values

    def column(self, slot: int, first: int = 0, last: int | None = None) -> np.ndarray:
        """
        slot 列 [first, last]（闭区间）的拷贝
        """
        if last is None:
            last = self._rows - 1
        if self._rows == 0 and first == 0 and last == -1:
            if not 0 <= slot < self._cols:
                raise OutOfRangeError(f"slot {slot} out of range (slot_count={self._cols})")
            return np.empty(0, dtype=np.float64)
        self._check(first, slot)
        self._check(last, slot)
        if last < first:
            raise OutOfRangeError(f"empty step range [{first}, {last}]")
        return self._data[first: last + 1, slot].copy()

    def view(self) -> np.ndarray:
        """只读视图（rows × cols）"""
        v = self._data[: self._rows, : self._cols]
        v = v.view()
        v.flags.writeable = False
        return v
