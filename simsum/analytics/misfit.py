# simsum/analytics/misfit.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from simsum import logs
from simsum.config.analytics_config import MisfitConfig, MisfitNorm, MissingPolicy, TimeMatch
from simsum.query.accessor import SummaryQuery
from simsum.utils.errors import NotFoundError, OutOfRangeError


@dataclass(frozen=True)
class ObservationPoint:
    """
    一个观测值；时间定位三选一：step / time / days
    """

    value: float
    weight: float = 1.0
    step: Optional[int] = None
    time: Optional[datetime] = None
    days: Optional[float] = None

    def __post_init__(self) -> None:
        given = sum(x is not None for x in (self.step, self.time, self.days))
        if given != 1:
            raise ValueError("ObservationPoint needs exactly one of step / time / days")


@dataclass
class ObservationVector:
    keyword: str
    points: List[ObservationPoint] = field(default_factory=list)

    @classmethod
    def from_steps(
        cls,
        keyword: str,
        steps: Sequence[int],
        values: Sequence[float],
        weights: Optional[Sequence[float]] = None,
    ) -> "ObservationVector":
        weights = [1.0] * len(values) if weights is None else list(weights)
        if not len(steps) == len(values) == len(weights):
            raise ValueError("steps / values / weights must have equal length")
        return cls(
            keyword,
            [
                ObservationPoint(float(v), float(w), step=int(s))
                for s, v, w in zip(steps, values, weights)
            ],
        )

    @classmethod
    def from_times(
        cls,
        keyword: str,
        times: Sequence[datetime],
        values: Sequence[float],
        weights: Optional[Sequence[float]] = None,
    ) -> "ObservationVector":
        weights = [1.0] * len(values) if weights is None else list(weights)
        if not len(times) == len(values) == len(weights):
            raise ValueError("times / values / weights must have equal length")
        return cls(
            keyword,
            [
                ObservationPoint(float(v), float(w), time=t)
                for t, v, w in zip(times, values, weights)
            ],
        )

    def __len__(self) -> int:
        return len(self.points)


@dataclass
class WellMisfit:
    well: str
    total: float
    per_keyword: Dict[str, float]
    used: int
    skipped: int

    @property
    def partial(self) -> bool:
        return self.skipped > 0


@dataclass
class MisfitReport:
    """
    多井汇总：total = Σ weight[well] · per_well[well].total
    """

    total: float
    per_well: Dict[str, WellMisfit]
    weights: Dict[str, float]

    @property
    def partial(self) -> bool:
        return any(m.partial for m in self.per_well.values())


class _MissingData(Exception):
    pass


# ======================================================================
# evaluation
# ======================================================================
def _unique(names: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(str(n).strip() for n in names))


def _locate(query: SummaryQuery, point: ObservationPoint, config: MisfitConfig) -> Optional[int]:
    index = query.summary.time_index
    nearest = config.time_match is TimeMatch.NEAREST
    tol = config.time_tolerance_days

    if point.step is not None:
        return point.step if 0 <= point.step < index.step_count() else None
    if point.time is not None:
        return index.step_at_time(point.time, nearest=nearest, tolerance=tol)
    return index.step_at_days(float(point.days), nearest=nearest, tolerance=tol)


def _deviation(sim: float, obs: float, weight: float, norm: MisfitNorm) -> float:
    diff = sim - obs
    if norm is MisfitNorm.ABSOLUTE:
        return weight * abs(diff)
    return weight * diff * diff


def eval_well_misfit(
    query: SummaryQuery,
    well: str,
    keywords: Sequence[str],
    observations: Mapping[str, ObservationVector],
    config: Optional[MisfitConfig] = None,
) -> WellMisfit:
    """
    单井 misfit：对每个观测点找到模拟值（exact / nearest 时间匹配），
    累加加权平方（或绝对）偏差。

    模拟值缺失（变量未注册、时间无匹配、单元格缺省）：
      - missing=abort → NotFoundError
      - missing=skip  → 跳过并计入 skipped，结果 partial=True
    """
    config = config or MisfitConfig()
    abort = config.missing is MissingPolicy.ABORT

    well = str(well).strip()
    by_keyword = {str(k).strip(): v for k, v in observations.items()}

    per_keyword: Dict[str, float] = {}
    used = 0
    skipped = 0

    # 重复的关键字只计算一次
    for kw in _unique(keywords):
        vector = by_keyword.get(kw)
        if vector is None:
            raise NotFoundError(f"[Misfit] no observations for {kw} on well {well}")
        if not vector.points:
            per_keyword[kw] = 0.0
            continue

        try:
            slot = query.get_well_var_index(well, kw)
        except NotFoundError:
            if abort:
                raise
            logs.warning(f"[Misfit] {kw}:{well} not simulated, {len(vector)} observations skipped")
            per_keyword[kw] = 0.0
            skipped += len(vector)
            continue

        acc = 0.0
        for point in vector.points:
            try:
                step = _locate(query, point, config)
                if step is None:
                    raise _MissingData(f"no simulated step matches observation {point}")
                sim = query.get_with_index(step, slot)
                if np.isnan(sim):
                    raise _MissingData(f"simulated value absent at step {step}")
            except (_MissingData, OutOfRangeError) as exc:
                if abort:
                    raise NotFoundError(f"[Misfit] {kw}:{well}: {exc}") from exc
                skipped += 1
                continue

            acc += _deviation(sim, point.value, point.weight, config.norm)
            used += 1

        per_keyword[kw] = acc

    result = WellMisfit(
        well=well,
        total=float(sum(per_keyword.values())),
        per_keyword=per_keyword,
        used=used,
        skipped=skipped,
    )
    if result.partial:
        logs.warning(
            f"[Misfit] well {result.well} partial coverage: used={used} skipped={skipped}"
        )
    return result


def eval_misfit(
    query: SummaryQuery,
    wells: Sequence[str],
    keywords: Sequence[str],
    observations: Mapping[str, Mapping[str, ObservationVector]],
    well_weights: Optional[Mapping[str, float]] = None,
    config: Optional[MisfitConfig] = None,
) -> MisfitReport:
    """
    多井 misfit，保留逐井明细（诊断依赖 per_well，而不只是总和）
    """
    by_well = {str(k).strip(): v for k, v in observations.items()}
    weight_of = {str(k).strip(): float(v) for k, v in (well_weights or {}).items()}

    per_well: Dict[str, WellMisfit] = {}
    weights: Dict[str, float] = {}
    total = 0.0

    for well in _unique(wells):
        well_obs = by_well.get(well)
        if well_obs is None:
            raise NotFoundError(f"[Misfit] no observations for well {well}")

        m = eval_well_misfit(query, well, keywords, well_obs, config)
        w = weight_of.get(well, 1.0)

        per_well[m.well] = m
        weights[m.well] = w
        total += w * m.total

    logs.info(f"[Misfit] wells={len(per_well)} total={total:.6g}")
    return MisfitReport(total=total, per_well=per_well, weights=weights)
