# simsum/codec/reader.py
from __future__ import annotations

from pathlib import Path
from time import perf_counter
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Union

import numpy as np

from simsum import logs
from simsum.codec.batch_codec import BatchData, read_batch
from simsum.codec.header_codec import read_header
from simsum.codec.naming import (
    SummaryFileName,
    existing_batch,
    find_headers,
    header_path,
    iter_batches,
    resolve_header,
)
from simsum.core.summary_set import SummarySet
from simsum.core.types import VariableKey
from simsum.utils.errors import (
    AmbiguousSourceError,
    CorruptDataError,
    SummaryIOError,
    UnitMismatchError,
)

PathLike = Union[str, Path]


# ======================================================================
# public API
# ======================================================================
@logs.catch(msg="summary load failed", log_time=False)
def load(
    path_or_paths: Union[PathLike, Sequence[PathLike]],
    recursive: bool = False,
    strict_units: bool = True,
) -> SummarySet:
    """
    装载 header + 数据批次 → SummarySet

    path_or_paths:
      - 单个路径：header 文件或 case 基名（dir/CASE）
          recursive=False → 只装载第一个批次
          recursive=True  → 从第一个批次连续扫描至缺口
      - 序列：[header, batch, batch, ...] 按顺序装载；
          recursive=True 时在最后一个显式批次之后继续扫描

    任一批次失败则异常抛出，调用方拿不到半成品 SummarySet。
    """
    if isinstance(path_or_paths, (str, Path)):
        header_arg, explicit = path_or_paths, []
    else:
        items = list(path_or_paths)
        if not items:
            raise SummaryIOError("[Reader] empty path list")
        header_arg, explicit = items[0], [Path(p) for p in items[1:]]

    name = resolve_header(header_arg)
    hdr_path = header_path(name.base, name.format_mode)

    start = perf_counter()
    summary = read_header(hdr_path, name.format_mode).build_summary()
    logs.info(
        f"[Reader] header {hdr_path.name} vars={summary.catalog.size} "
        f"wells={summary.catalog.num_wells} format={name.format_mode.value}"
    )

    batches = _plan_batches(name, explicit, recursive)
    load_data(summary, batches, strict_units=strict_units)

    logs.info(
        f"[Reader] loaded {summary.case} batches={len(batches)} "
        f"steps={summary.step_count()} in {perf_counter() - start:.3f}s"
    )
    return summary


def load_data(
    summary: SummarySet,
    paths: Iterable[PathLike],
    strict_units: bool = True,
) -> int:
    """
    针对已有 header 追加数据批次，返回新增 step 数。

    每个批次 all-or-nothing：失败批次之前的批次保持已装载。
    """
    added = 0
    for path in paths:
        batch = read_batch(Path(path))
        added += apply_batch(summary, batch, strict_units=strict_units)
    return added


def apply_batch(summary: SummarySet, batch: BatchData, strict_units: bool = True) -> int:
    key_map: Dict[str, VariableKey] = {k.gen_key(): k for k in summary.catalog}

    values: Dict[int, np.ndarray] = {}
    for key_text, column in batch.columns.items():
        key = key_map.get(key_text)
        if key is None:
            raise CorruptDataError(
                f"[Reader] {batch.path.name} references undeclared variable {key_text}"
            )
        slot = summary.catalog.resolve_key(key)
        _check_unit(summary, slot, batch.units.get(key_text, ""), batch, strict_units)
        values[slot] = column

    try:
        summary.extend(batch.days, batch.reports, batch.ministeps, values)
    except ValueError as exc:
        raise CorruptDataError(f"[Reader] {batch.path.name}: {exc}") from exc

    logs.info(f"[Reader] batch {batch.path.name} rows={batch.rows} vars={len(values)}")
    return batch.rows


def load_interactive(
    directory: PathLike,
    selection: Optional[str] = None,
    prompt: Optional[Callable[[List[str]], Optional[str]]] = None,
    recursive: bool = True,
    strict_units: bool = True,
) -> SummarySet:
    """
    在目录中挑选一个 case 装载：
      - 恰好一个候选 → 直接装载
      - 没有候选     → SummaryIOError
      - 多个候选     → selection / prompt(candidates) 决定，否则 AmbiguousSourceError
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise SummaryIOError(f"[Reader] not a directory: {directory}")

    headers = find_headers(directory)
    if not headers:
        raise SummaryIOError(f"[Reader] no summary header found in {directory}")

    by_case: Dict[str, Path] = {}
    for h in headers:
        by_case.setdefault(SummaryFileName.parse(h).case, h)
    candidates = list(by_case)

    if len(candidates) == 1:
        chosen = candidates[0]
    else:
        chosen = selection
        if chosen is None and prompt is not None:
            chosen = prompt(candidates)
        if chosen is None:
            raise AmbiguousSourceError(
                f"[Reader] {len(candidates)} candidates in {directory}: {candidates}",
                candidates,
            )
        if chosen not in by_case:
            raise AmbiguousSourceError(
                f"[Reader] selection {chosen!r} is not one of {candidates}",
                candidates,
            )

    logs.info(f"[Reader] interactive selection: {chosen}")
    return load(by_case[chosen], recursive=recursive, strict_units=strict_units)


# ======================================================================
# internal
# ======================================================================
def _plan_batches(
    name: SummaryFileName,
    explicit: List[Path],
    recursive: bool,
) -> List[Path]:
    if explicit:
        batches = list(explicit)
        if recursive:
            last = SummaryFileName.parse(batches[-1])
            if last is None or last.is_header:
                raise SummaryIOError(f"[Reader] not a data batch file name: {batches[-1]}")
            batches.extend(iter_batches(last.base, last.format_mode, start=last.batch + 1))
        return batches

    if recursive:
        return list(iter_batches(name.base, name.format_mode))

    first = existing_batch(name.base, name.format_mode, 1)
    return [first] if first is not None else []


def _check_unit(
    summary: SummarySet,
    slot: int,
    unit: str,
    batch: BatchData,
    strict_units: bool,
) -> None:
    expected = summary.catalog.unit_at(slot)
    if not unit or not expected or unit == expected:
        return

    key_text = summary.catalog.key_at(slot).gen_key()
    message = (
        f"[Reader] {batch.path.name} declares unit '{unit}' for {key_text}, "
        f"header has '{expected}'"
    )
    if strict_units:
        raise UnitMismatchError(message)
    logs.warning(message + " (header unit kept)")
