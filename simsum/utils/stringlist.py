# simsum/utils/stringlist.py
from __future__ import annotations

from enum import Enum
from typing import Iterable, Iterator, List


class Ownership(str, Enum):
    """
    Who is responsible for the text of an entry.

    REF        borrowed from storage the caller keeps alive (e.g. header names)
    OWNED_REF  a reference the list has adopted
    COPY       a private copy taken by the list (names parsed from a file)
    """

    REF = "ref"
    OWNED_REF = "owned_ref"
    COPY = "copy"


class StringList:
    """
    StringList（有序实体名列表）

    - 保持插入顺序，不排序
    - 每个元素记录 ownership，便于 shallow / deep copy 时保持语义
    """

    def __init__(self) -> None:
        self._strings: List[str] = []
        self._owner: List[Ownership] = []

    # --------------------------------------------------
    @classmethod
    def from_iterable(
        cls,
        items: Iterable[str],
        ownership: Ownership = Ownership.COPY,
    ) -> "StringList":
        sl = cls()
        for s in items:
            sl._append(s, ownership)
        return sl

    # --------------------------------------------------
    def _append(self, s: str, ownership: Ownership) -> None:
        if ownership is Ownership.COPY:
            s = "".join(s)
        self._strings.append(s)
        self._owner.append(ownership)

    def append_copy(self, s: str) -> None:
        self._append(s, Ownership.COPY)

    def append_ref(self, s: str) -> None:
        self._append(s, Ownership.REF)

    def append_owned_ref(self, s: str) -> None:
        self._append(s, Ownership.OWNED_REF)

    # --------------------------------------------------
    def iget(self, index: int) -> str:
        if not 0 <= index < len(self._strings):
            raise IndexError(
                f"StringList index {index} out of range (size={len(self._strings)})"
            )
        return self._strings[index]

    def owner(self, index: int) -> Ownership:
        self.iget(index)
        return self._owner[index]

    def contains(self, s: str) -> bool:
        return s in self._strings

    def index_of(self, s: str) -> int:
        try:
            return self._strings.index(s)
        except ValueError:
            return -1

    # --------------------------------------------------
    def shallow_copy(self) -> "StringList":
        """新列表仅借用原字符串"""
        return StringList.from_iterable(self._strings, Ownership.REF)

    def deep_copy(self) -> "StringList":
        return StringList.from_iterable(self._strings, Ownership.COPY)

    def to_list(self) -> List[str]:
        return list(self._strings)

    # --------------------------------------------------
    def __len__(self) -> int:
        return len(self._strings)

    def __iter__(self) -> Iterator[str]:
        return iter(self._strings)

    def __contains__(self, s: object) -> bool:
        return s in self._strings

    def __repr__(self) -> str:
        return f"StringList({self._strings!r})"
