# simsum/core/key_catalog.py
from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Union

from simsum.core.types import RESERVED_KEYS, VarCategory, VariableKey
from simsum.utils.errors import NotFoundError, OutOfRangeError, UnitMismatchError
from simsum.utils.stringlist import Ownership, StringList


class KeyCatalog:
    """
    KeyCatalog（变量键 → 稠密 slot）

    职责：
      - 复合键 (category, keyword, entity, completion) → slot
      - slot 从 0 连续分配，一经分配永不复用（不支持删除）
      - 反向数组 slot → key，用于枚举
      - 井 / 组 / 区域 按首次注册顺序枚举（不排序）

    register() 只由 codec / SummarySet 调用。
    """

    def __init__(self) -> None:
        self._slots: Dict[VariableKey, int] = {}
        self._keys: List[VariableKey] = []
        self._units: List[str] = []
        self._keyword_unit: Dict[str, str] = {}

        self._wells = StringList()
        self._groups = StringList()
        self._regions: List[int] = []

    # --------------------------------------------------
    # registration
    # --------------------------------------------------
    def register(self, key: VariableKey, unit: str = "") -> int:
        """
        分配下一个空闲 slot；重复注册返回已有 slot（幂等）。

        已有 slot 以不同的非空单位重复注册 → UnitMismatchError。
        STEP / REPORT / DAYS 是批次时间列名 → ValueError。
        """
        unit = (unit or "").strip()
        if key.gen_key() in RESERVED_KEYS:
            raise ValueError(f"[Catalog] {key.gen_key()} is reserved for batch time columns")

        slot = self._slots.get(key)
        if slot is not None:
            current = self._units[slot]
            if unit and current and unit != current:
                raise UnitMismatchError(
                    f"[Catalog] {key.gen_key()} registered with unit '{current}', got '{unit}'"
                )
            if unit and not current:
                self._units[slot] = unit
                self._keyword_unit.setdefault(key.keyword, unit)
            return slot

        slot = len(self._keys)
        self._slots[key] = slot
        self._keys.append(key)
        self._units.append(unit)
        if unit:
            self._keyword_unit.setdefault(key.keyword, unit)

        self._note_entity(key)
        return slot

    def _note_entity(self, key: VariableKey) -> None:
        if key.category in (VarCategory.WELL, VarCategory.COMPLETION):
            if key.entity not in self._wells:
                self._wells.append_copy(key.entity)
        elif key.category is VarCategory.GROUP:
            if key.entity not in self._groups:
                self._groups.append_copy(key.entity)
        elif key.category is VarCategory.REGION:
            if key.entity not in self._regions:
                self._regions.append(key.entity)

    def declare_wells(self, names, ownership: Ownership = Ownership.REF) -> None:
        """
        预声明井名：
          - REF  名称来自调用方已持有的 header 存储
          - COPY 名称由 codec 从文件解析
        """
        _declare(self._wells, names, ownership)

    def declare_groups(self, names, ownership: Ownership = Ownership.REF) -> None:
        _declare(self._groups, names, ownership)

    # --------------------------------------------------
    # resolution
    # --------------------------------------------------
    def resolve_key(self, key: VariableKey) -> int:
        slot = self._slots.get(key)
        if slot is None:
            raise NotFoundError(f"variable not registered: {key.gen_key()}")
        return slot

    def resolve(
        self,
        category: VarCategory,
        keyword: str,
        entity: Optional[Union[str, int]] = None,
        completion: Optional[int] = None,
    ) -> int:
        try:
            key = VariableKey(category, keyword, entity, completion)
        except ValueError as exc:
            raise NotFoundError(f"invalid variable key: {exc}") from exc
        return self.resolve_key(key)

    def has_key(self, key: VariableKey) -> bool:
        return key in self._slots

    def has(
        self,
        category: VarCategory,
        keyword: str,
        entity: Optional[Union[str, int]] = None,
        completion: Optional[int] = None,
    ) -> bool:
        try:
            key = VariableKey(category, keyword, entity, completion)
        except ValueError:
            return False
        return key in self._slots

    def has_var(self, keyword: str) -> bool:
        keyword = keyword.strip()
        return any(k.keyword == keyword for k in self._keys)

    # --------------------------------------------------
    # slot / unit access
    # --------------------------------------------------
    def key_at(self, slot: int) -> VariableKey:
        if not 0 <= slot < len(self._keys):
            raise OutOfRangeError(f"slot {slot} out of range (size={len(self._keys)})")
        return self._keys[slot]

    def unit_at(self, slot: int) -> str:
        self.key_at(slot)
        return self._units[slot]

    def unit_of(self, key: VariableKey) -> str:
        return self._units[self.resolve_key(key)]

    def get_unit(self, keyword: str) -> str:
        unit = self._keyword_unit.get(keyword.strip())
        if unit is None:
            raise NotFoundError(f"no unit registered for keyword: {keyword}")
        return unit

    def keys(self) -> List[VariableKey]:
        return list(self._keys)

    def units(self) -> List[str]:
        return list(self._units)

    @property
    def size(self) -> int:
        return len(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[VariableKey]:
        return iter(self._keys)

    # --------------------------------------------------
    # enumeration
    # --------------------------------------------------
    def well_names(self) -> List[str]:
        return self._wells.to_list()

    def group_names(self) -> List[str]:
        return self._groups.to_list()

    def region_numbers(self) -> List[int]:
        return list(self._regions)

    @property
    def num_wells(self) -> int:
        return len(self._wells)

    @property
    def num_groups(self) -> int:
        return len(self._groups)

    @property
    def num_regions(self) -> int:
        return len(self._regions)

    def keys_for_well(self, well: str) -> List[VariableKey]:
        well = well.strip()
        return [
            k for k in self._keys
            if k.category is VarCategory.WELL and k.entity == well
        ]


def _declare(target: StringList, names, ownership: Ownership) -> None:
    for name in names:
        name = str(name).strip()
        if not name or name in target:
            continue
        if ownership is Ownership.COPY:
            target.append_copy(name)
        elif ownership is Ownership.OWNED_REF:
            target.append_owned_ref(name)
        else:
            target.append_ref(name)
