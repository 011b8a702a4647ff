# simsum/core/summary_set.py
from __future__ import annotations

import threading
from datetime import date, datetime
from typing import Dict, Iterable, Mapping, Optional, Sequence, Union

import numpy as np

from simsum import logs
from simsum.config.summary_config import FormatMode
from simsum.core.key_catalog import KeyCatalog
from simsum.core.time_index import TimeIndex
from simsum.core.types import VariableKey
from simsum.core.value_store import ValueStore
from simsum.utils.datetime_utils import DateTimeUtils
from simsum.utils.errors import NotFoundError

SlotRef = Union[int, VariableKey, str]


class SummarySet:
    """
    SummarySet（模拟结果汇总集）

    独占：
      - KeyCatalog  变量键 → slot
      - TimeIndex   step → 时间 / report
      - ValueStore  step × slot 数值表
      - header 元数据（case, start_time, format_mode）

    唯一的数据变更入口是 extend()：TimeIndex 与 ValueStore 在写锁内同步增长，
    校验全部通过后才修改任何结构（单批次 all-or-nothing）。
    查询不加锁：装载完成后只读访问线程安全。
    """

    def __init__(
        self,
        case: str = "CASE",
        start_time: Optional[datetime] = None,
        format_mode: FormatMode = FormatMode.BINARY,
    ) -> None:
        self.case = case
        self.format_mode = FormatMode(format_mode)

        self.catalog = KeyCatalog()
        self.time_index = TimeIndex(start_time)
        self.store = ValueStore()

        self._write_lock = threading.Lock()

    # --------------------------------------------------
    # header
    # --------------------------------------------------
    @property
    def start_time(self) -> Optional[datetime]:
        return self.time_index.start_time

    @start_time.setter
    def start_time(self, value: Union[str, date, datetime, None]) -> None:
        self.time_index.start_time = None if value is None else DateTimeUtils.parse(value)

    def set_header_metadata(
        self,
        start_time: Union[str, date, datetime],
        well_names: Iterable[str] = (),
        group_names: Iterable[str] = (),
        units: Optional[Mapping[Union[VariableKey, str], str]] = None,
    ) -> None:
        """
        以编程方式构造 header（非文件装载时使用）。

        units: {VariableKey 或 "WOPR:W1" : unit}，依次注册。
        """
        with self._write_lock:
            self.start_time = start_time
            self.catalog.declare_wells(well_names)
            self.catalog.declare_groups(group_names)

            for key, unit in (units or {}).items():
                self._register(_as_key(key), unit)

    def register(self, key: Union[VariableKey, str], unit: str = "") -> int:
        with self._write_lock:
            return self._register(_as_key(key), unit)

    def _register(self, key: VariableKey, unit: str) -> int:
        slot = self.catalog.register(key, unit)
        self.store.ensure_slots(self.catalog.size)
        return slot

    @property
    def well_names(self) -> list[str]:
        return self.catalog.well_names()

    @property
    def group_names(self) -> list[str]:
        return self.catalog.group_names()

    # --------------------------------------------------
    # data
    # --------------------------------------------------
    def step_count(self) -> int:
        return self.time_index.step_count()

    def resolve_slot(self, ref: SlotRef) -> int:
        if isinstance(ref, (int, np.integer)):
            self.catalog.key_at(int(ref))
            return int(ref)
        try:
            key = _as_key(ref)
        except ValueError as exc:
            raise NotFoundError(str(exc)) from exc
        return self.catalog.resolve_key(key)

    def extend(
        self,
        days: Sequence[float],
        reports: Sequence[int],
        ministeps: Optional[Sequence[int]] = None,
        values: Optional[Mapping[SlotRef, Sequence[float]]] = None,
    ) -> int:
        """
        追加一批 step 并写入数值，返回第一个新 step 序号。

        失败（NotFoundError / OutOfOrderDataError / ValueError）时集合保持不变。
        """
        with self._write_lock:
            days_arr, reports_arr, ministeps_arr = self.time_index.normalize(
                days, reports, ministeps
            )
            count = days_arr.shape[0]

            columns: Dict[int, np.ndarray] = {}
            for ref, column in (values or {}).items():
                slot = self.resolve_slot(ref)
                arr = np.asarray(column, dtype=np.float64).reshape(-1)
                if arr.shape[0] != count:
                    raise ValueError(
                        f"column {self.catalog.key_at(slot).gen_key()} has {arr.shape[0]} values, "
                        f"expected {count}"
                    )
                columns[slot] = arr

            first = self.store.step_count()
            self.time_index.append(days_arr, reports_arr, ministeps_arr)
            self.store.append_rows(count)
            for slot, arr in columns.items():
                self.store.set_block(first, slot, arr)

            logs.debug(
                f"[Summary] {self.case} extend steps={count} "
                f"total={self.store.step_count()} slots={len(columns)}"
            )
            return first

    def free_data(self) -> None:
        """
        释放数据（TimeIndex + ValueStore），保留 header 与 catalog，
        以便针对同一 header 重新装载数据批次。
        """
        with self._write_lock:
            self.time_index.clear()
            self.store.clear()
        logs.debug(f"[Summary] {self.case} data released")

    def __repr__(self) -> str:
        return (
            f"SummarySet(case={self.case!r}, vars={self.catalog.size}, "
            f"steps={self.step_count()}, format={self.format_mode.value})"
        )


def _as_key(ref: Union[VariableKey, str]) -> VariableKey:
    if isinstance(ref, VariableKey):
        return ref
    return VariableKey.parse(ref)
