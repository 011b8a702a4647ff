# simsum/analytics/max_min.py
from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from simsum import logs
from simsum.core.types import VarCategory, VariableKey
from simsum.query.accessor import SummaryQuery
from simsum.utils.errors import OutOfRangeError

KeyLike = Union[VariableKey, str]


@dataclass(frozen=True)
class MaxMin:
    """
    单变量扫描结果；区间内没有有效单元格时 max / min 为 None（"no data"），
    绝不返回误导性的 (0, 0)。
    """

    max: Optional[float]
    min: Optional[float]

    @classmethod
    def no_data(cls) -> "MaxMin":
        return cls(None, None)

    @property
    def has_data(self) -> bool:
        return self.max is not None

    def as_tuple(self) -> Optional[Tuple[float, float]]:
        if not self.has_data:
            return None
        return self.max, self.min


def _step_range(query: SummaryQuery, step_range) -> Tuple[int, int]:
    n = query.get_size()
    if step_range is None:
        first, last = 0, n - 1
    else:
        first, last = (int(s) for s in step_range)
    if n == 0 or not (0 <= first <= last < n):
        raise OutOfRangeError(f"step range [{first}, {last}] invalid (step_count={n})")
    return first, last


def _scan(block: np.ndarray, include_zero: bool) -> Tuple[np.ndarray, np.ndarray]:
    """
    block: steps × vars → (max, min)；无有效值的列为 NaN
    """
    valid = ~np.isnan(block)
    if not include_zero:
        valid &= block != 0.0

    hi = np.where(valid, block, -np.inf).max(axis=0, initial=-np.inf)
    lo = np.where(valid, block, np.inf).min(axis=0, initial=np.inf)

    empty = ~valid.any(axis=0)
    hi[empty] = np.nan
    lo[empty] = np.nan
    return hi, lo


def _partitions(first: int, last: int, workers: int) -> List[Tuple[int, int]]:
    total = last - first + 1
    workers = max(1, min(workers, total))
    edges = np.linspace(first, last + 1, workers + 1).astype(int)
    return [(int(a), int(b)) for a, b in zip(edges[:-1], edges[1:]) if b > a]


def _resolve_workers(workers: int) -> int:
    cpu = os.cpu_count() or 1
    return max(1, min(workers, cpu))


def scan_slots(
    query: SummaryQuery,
    slots: Sequence[int],
    step_range=None,
    include_zero: bool = True,
    workers: int = 1,
) -> List[MaxMin]:
    """
    按 slot 扫描 [first, last]（闭区间），忽略缺省单元格。

    workers > 1 时按 step 区间切分并行扫描，max / min 归约与切分无关。
    """
    first, last = _step_range(query, step_range)
    slots = list(slots)
    if not slots:
        return []

    table = query.summary.store.view()
    for slot in slots:
        if not 0 <= slot < table.shape[1]:
            raise OutOfRangeError(f"slot {slot} out of range (slot_count={table.shape[1]})")

    parts = _partitions(first, last, _resolve_workers(workers))

    def _work(bounds: Tuple[int, int]) -> Tuple[np.ndarray, np.ndarray]:
        a, b = bounds
        return _scan(table[a:b, slots], include_zero)

    if len(parts) == 1:
        results = [_work(parts[0])]
    else:
        logs.debug(f"[MaxMin] parallel scan steps=[{first}, {last}] parts={len(parts)}")
        with ThreadPoolExecutor(max_workers=len(parts)) as pool:
            results = list(pool.map(_work, parts))

    hi = np.fmax.reduce([r[0] for r in results])
    lo = np.fmin.reduce([r[1] for r in results])

    return [
        MaxMin.no_data() if np.isnan(h) else MaxMin(float(h), float(l))
        for h, l in zip(hi, lo)
    ]


def max_min(
    query: SummaryQuery,
    keys: Sequence[KeyLike],
    step_range=None,
    include_zero: bool = True,
    workers: int = 1,
) -> Dict[str, MaxMin]:
    """
    keys → {规范键文本: MaxMin}
    """
    names = []
    slots = []
    for key in keys:
        slot = query.get_key_index(key)
        slots.append(slot)
        names.append(query.summary.catalog.key_at(slot).gen_key())

    return dict(zip(names, scan_slots(query, slots, step_range, include_zero, workers)))


def well_max_min(
    query: SummaryQuery,
    well: str,
    keywords: Sequence[str],
    step_range=None,
    include_zero: bool = True,
    workers: int = 1,
) -> Dict[str, MaxMin]:
    """
    单井多个变量 → {keyword: MaxMin}
    """
    slots = [query.get_well_var_index(well, kw) for kw in keywords]
    results = scan_slots(query, slots, step_range, include_zero, workers)
    return {str(kw).strip(): r for kw, r in zip(keywords, results)}


def wells_max_min(
    query: SummaryQuery,
    wells: Sequence[str],
    keywords: Sequence[str],
    step_range=None,
    include_zero: bool = True,
    workers: int = 1,
) -> Dict[str, Dict[str, MaxMin]]:
    """
    多井 × 多变量（井 / 变量组合必须全部存在）
    """
    slots = []
    pairs = []
    for well in wells:
        for kw in keywords:
            slots.append(query.summary.catalog.resolve(VarCategory.WELL, kw, well))
            pairs.append((str(well).strip(), str(kw).strip()))

    out: Dict[str, Dict[str, MaxMin]] = {str(w).strip(): {} for w in wells}
    for (well, kw), r in zip(pairs, scan_slots(query, slots, step_range, include_zero, workers)):
        out[well][kw] = r
    return out
