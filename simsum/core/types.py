# simsum/core/types.py
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

# 未赋值单元格（不是合法测量值，区别于真实的 0.0）
ABSENT = float("nan")

# 数据批次的时间列名，不可用作变量键
STEP_COL = "STEP"
REPORT_COL = "REPORT"
DAYS_COL = "DAYS"
RESERVED_KEYS = (STEP_COL, REPORT_COL, DAYS_COL)


def is_absent(value: float) -> bool:
    return math.isnan(value)


class VarCategory(str, Enum):
    WELL = "well"
    GROUP = "group"
    REGION = "region"
    FIELD = "field"
    COMPLETION = "completion"
    MISC = "misc"

    @classmethod
    def from_keyword(cls, keyword: str) -> "VarCategory":
        """
        按关键字首字母推断类别：
            W → well, G → group, R → region, F → field, C → completion
            其他 → misc（TIME, YEARS, DAY ...）
        """
        kw = keyword.strip().upper()
        if not kw:
            raise ValueError("empty keyword")
        return _PREFIX_CATEGORY.get(kw[0], cls.MISC)


_PREFIX_CATEGORY = {
    "W": VarCategory.WELL,
    "G": VarCategory.GROUP,
    "R": VarCategory.REGION,
    "F": VarCategory.FIELD,
    "C": VarCategory.COMPLETION,
}

# 需要实体的类别
_NAMED = {VarCategory.WELL, VarCategory.GROUP, VarCategory.COMPLETION}


@dataclass(frozen=True)
class VariableKey:
    """
    VariableKey（变量身份）

        (category, keyword, entity?, completion?)

    - well / group : entity = 名称
    - region       : entity = 区域编号（int）
    - completion   : entity = 井名, completion = 射孔编号
    - field / misc : 无 entity

    名称与关键字去除首尾空白后参与比较。
    """

    category: VarCategory
    keyword: str
    entity: Optional[Union[str, int]] = None
    completion: Optional[int] = None

    def __post_init__(self) -> None:
        category = VarCategory(self.category)
        keyword = str(self.keyword).strip()
        if not keyword:
            raise ValueError("VariableKey keyword must not be empty")

        entity = self.entity
        completion = self.completion

        if category in _NAMED:
            if entity is None or not str(entity).strip():
                raise ValueError(f"{category.value} key '{keyword}' requires an entity name")
            entity = str(entity).strip()
        elif category is VarCategory.REGION:
            if entity is None:
                raise ValueError(f"region key '{keyword}' requires a region number")
            entity = int(entity)
        else:
            entity = None

        if category is VarCategory.COMPLETION:
            if completion is None:
                raise ValueError(f"completion key '{keyword}' requires a completion number")
            completion = int(completion)
        else:
            completion = None

        object.__setattr__(self, "category", category)
        object.__setattr__(self, "keyword", keyword)
        object.__setattr__(self, "entity", entity)
        object.__setattr__(self, "completion", completion)

    # --------------------------------------------------
    # factories
    # --------------------------------------------------
    @classmethod
    def well(cls, keyword: str, well: str) -> "VariableKey":
        return cls(VarCategory.WELL, keyword, well)

    @classmethod
    def group(cls, keyword: str, group: str) -> "VariableKey":
        return cls(VarCategory.GROUP, keyword, group)

    @classmethod
    def region(cls, keyword: str, region: int) -> "VariableKey":
        return cls(VarCategory.REGION, keyword, region)

    @classmethod
    def field(cls, keyword: str) -> "VariableKey":
        return cls(VarCategory.FIELD, keyword)

    @classmethod
    def completion_of(cls, keyword: str, well: str, completion: int) -> "VariableKey":
        return cls(VarCategory.COMPLETION, keyword, well, completion)

    @classmethod
    def misc(cls, keyword: str) -> "VariableKey":
        return cls(VarCategory.MISC, keyword)

    # --------------------------------------------------
    # canonical text form
    # --------------------------------------------------
    def gen_key(self) -> str:
        """
        WOPR:OP1 / GOPR:G1 / RPR:3 / FOPT / COPR:OP1:12 / TIME
        """
        if self.category is VarCategory.COMPLETION:
            return f"{self.keyword}:{self.entity}:{self.completion}"
        if self.entity is None:
            return self.keyword
        return f"{self.keyword}:{self.entity}"

    @classmethod
    def parse(cls, text: str) -> "VariableKey":
        parts = [p.strip() for p in str(text).split(":")]
        if not parts[0]:
            raise ValueError(f"malformed variable key: {text!r}")

        keyword = parts[0]
        category = VarCategory.from_keyword(keyword)

        try:
            if category is VarCategory.COMPLETION:
                if len(parts) != 3:
                    raise ValueError(f"completion key needs KEYWORD:WELL:NUM, got {text!r}")
                return cls(category, keyword, parts[1], int(parts[2]))

            if category in (VarCategory.FIELD, VarCategory.MISC):
                if len(parts) != 1:
                    raise ValueError(f"{category.value} key takes no entity, got {text!r}")
                return cls(category, keyword)

            if len(parts) != 2:
                raise ValueError(f"{category.value} key needs KEYWORD:ENTITY, got {text!r}")
            if category is VarCategory.REGION:
                return cls(category, keyword, int(parts[1]))
            return cls(category, keyword, parts[1])
        except (TypeError, ValueError) as exc:
            raise ValueError(f"malformed variable key: {text!r}") from exc

    def __str__(self) -> str:
        return self.gen_key()
