# simsum/query/accessor.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple, Union

import numpy as np

from simsum.core.summary_set import SummarySet
from simsum.core.types import VarCategory, VariableKey


class SummaryQuery:
    """
    SummaryQuery（只读查询层）

    每个 typed getter = KeyCatalog.resolve + ValueStore.get：
      1. 键解析失败 → NotFoundError（与 step 是否合法无关）
      2. 之后才检查 step → OutOfRangeError

    只借用 SummarySet，不持有、不修改。
    """

    def __init__(self, summary: SummarySet) -> None:
        self._summary = summary
        self._catalog = summary.catalog
        self._index = summary.time_index
        self._store = summary.store

    @property
    def summary(self) -> SummarySet:
        return self._summary

    # --------------------------------------------------
    # slot lookup
    # --------------------------------------------------
    def get_well_var_index(self, well: str, var: str) -> int:
        return self._catalog.resolve(VarCategory.WELL, var, well)

    def get_group_var_index(self, group: str, var: str) -> int:
        return self._catalog.resolve(VarCategory.GROUP, var, group)

    def get_region_var_index(self, region: int, var: str) -> int:
        return self._catalog.resolve(VarCategory.REGION, var, region)

    def get_field_var_index(self, var: str) -> int:
        return self._catalog.resolve(VarCategory.FIELD, var)

    def get_misc_var_index(self, var: str) -> int:
        return self._catalog.resolve(VarCategory.MISC, var)

    def get_well_completion_var_index(self, well: str, var: str, completion: int) -> int:
        return self._catalog.resolve(VarCategory.COMPLETION, var, well, completion)

    def get_key_index(self, key: Union[VariableKey, str]) -> int:
        return self._summary.resolve_slot(key)

    # --------------------------------------------------
    # typed getters
    # --------------------------------------------------
    def get_well_var(self, step: int, well: str, var: str) -> float:
        return self._store.get(step, self.get_well_var_index(well, var))

    def get_group_var(self, step: int, group: str, var: str) -> float:
        return self._store.get(step, self.get_group_var_index(group, var))

    def get_region_var(self, step: int, region: int, var: str) -> float:
        return self._store.get(step, self.get_region_var_index(region, var))

    def get_field_var(self, step: int, var: str) -> float:
        return self._store.get(step, self.get_field_var_index(var))

    def get_misc_var(self, step: int, var: str) -> float:
        return self._store.get(step, self.get_misc_var_index(var))

    def get_well_completion_var(self, step: int, well: str, var: str, completion: int) -> float:
        return self._store.get(step, self.get_well_completion_var_index(well, var, completion))

    def get(self, step: int, key: Union[VariableKey, str]) -> float:
        return self._store.get(step, self.get_key_index(key))

    def get_with_index(self, step: int, slot: int) -> float:
        """按 slot 直接取值（跳过名称解析，批量遍历用）"""
        return self._store.get(step, slot)

    def get_vector(
        self,
        key: Union[VariableKey, str, int],
        first: int = 0,
        last: Optional[int] = None,
    ) -> np.ndarray:
        """整列 [first, last] 拷贝；缺省单元格为 NaN"""
        slot = self._summary.resolve_slot(key)
        return self._store.column(slot, first, last)

    # --------------------------------------------------
    # existence
    # --------------------------------------------------
    def has_well_var(self, well: str, var: str) -> bool:
        return self._catalog.has(VarCategory.WELL, var, well)

    def has_var(self, var: str) -> bool:
        return self._catalog.has_var(var)

    def has_key(self, key: Union[VariableKey, str]) -> bool:
        if isinstance(key, str):
            try:
                key = VariableKey.parse(key)
            except ValueError:
                return False
        return self._catalog.has_key(key)

    # --------------------------------------------------
    # time
    # --------------------------------------------------
    def get_size(self) -> int:
        return self._index.step_count()

    def get_start_time(self) -> Optional[datetime]:
        return self._index.start_time

    def get_sim_time(self, step: int) -> datetime:
        return self._index.time_at(step)

    def get_sim_days(self, step: int) -> float:
        return self._index.days_at(step)

    def report_range(self, report: int) -> Tuple[int, int]:
        return self._index.report_range(report)

    def report_steps(self) -> List[int]:
        return self._index.report_steps()

    def get_report_size(self) -> Tuple[int, int]:
        """(first_report, last_report)"""
        return self._index.first_report, self._index.last_report

    # --------------------------------------------------
    # header / enumeration
    # --------------------------------------------------
    def get_unit(self, var: str) -> str:
        return self._catalog.get_unit(var)

    def well_names(self) -> List[str]:
        return self._catalog.well_names()

    def group_names(self) -> List[str]:
        return self._catalog.group_names()

    def region_numbers(self) -> List[int]:
        return self._catalog.region_numbers()

    @property
    def num_wells(self) -> int:
        return self._catalog.num_wells

    @property
    def num_groups(self) -> int:
        return self._catalog.num_groups

    @property
    def num_regions(self) -> int:
        return self._catalog.num_regions

    def get_var_type(self, slot: int) -> VarCategory:
        return self._catalog.key_at(slot).category
