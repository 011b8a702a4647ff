# simsum/core/time_index.py
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from simsum.utils.datetime_utils import DateTimeUtils
from simsum.utils.errors import NotFoundError, OutOfOrderDataError, OutOfRangeError


class TimeIndex:
    """
    TimeIndex（两级时间索引）

    每个 step（0-based 连续序号）记录：
      - days      : 距 start_time 的天数（float64）
      - report    : report step 编号
      - ministep  : 文件声明的步数计数器（严格递增）

    不变量：
      - days 单调不减，ministep 严格递增
      - report 单调不减 ⇒ 每个 report 是一段连续 step，
        所有 report_range 恰好划分 [0, step_count)
    """

    def __init__(self, start_time: Optional[datetime] = None) -> None:
        self.start_time = start_time

        self._n = 0
        self._days = np.empty(0, dtype=np.float64)
        self._reports = np.empty(0, dtype=np.int64)
        self._ministeps = np.empty(0, dtype=np.int64)

        # report -> [first, last]（闭区间）
        self._ranges: Dict[int, List[int]] = {}

    # --------------------------------------------------
    # growth
    # --------------------------------------------------
    def _reserve(self, need: int) -> None:
        cap = self._days.shape[0]
        if need <= cap:
            return
        new_cap = max(need, 2 * cap, 16)
        for name in ("_days", "_reports", "_ministeps"):
            old = getattr(self, name)
            arr = np.empty(new_cap, dtype=old.dtype)
            arr[: self._n] = old[: self._n]
            setattr(self, name, arr)

    def normalize(
        self,
        days: Sequence[float],
        reports: Sequence[int],
        ministeps: Optional[Sequence[int]] = None,
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        校验一批待追加的 step，不修改索引。

        ministeps 缺省时接着最后一个 ministep 连续编号。
        """
        days = np.asarray(days, dtype=np.float64).reshape(-1)
        reports = np.asarray(reports, dtype=np.int64).reshape(-1)
        count = days.shape[0]

        if reports.shape[0] != count:
            raise ValueError(f"days/reports length mismatch: {count} vs {reports.shape[0]}")

        if ministeps is None:
            first = int(self._ministeps[self._n - 1]) + 1 if self._n else 0
            ministeps = np.arange(first, first + count, dtype=np.int64)
        else:
            ministeps = np.asarray(ministeps, dtype=np.int64).reshape(-1)
            if ministeps.shape[0] != count:
                raise ValueError(f"days/ministeps length mismatch: {count} vs {ministeps.shape[0]}")

        if count == 0:
            return days, reports, ministeps

        if np.isnan(days).any():
            raise OutOfOrderDataError("time values must not be NaN")

        if np.any(np.diff(days) < 0):
            raise OutOfOrderDataError("time values decrease inside the batch")
        if np.any(np.diff(ministeps) <= 0):
            raise OutOfOrderDataError("step numbers are not strictly increasing inside the batch")
        if np.any(np.diff(reports) < 0):
            raise OutOfOrderDataError("report steps decrease inside the batch")

        if self._n:
            last = self._n - 1
            if days[0] < self._days[last]:
                raise OutOfOrderDataError(
                    f"batch starts at day {days[0]} before last loaded day {self._days[last]}"
                )
            if ministeps[0] <= self._ministeps[last]:
                raise OutOfOrderDataError(
                    f"batch step {ministeps[0]} does not follow last loaded step {self._ministeps[last]}"
                )
            if reports[0] < self._reports[last]:
                raise OutOfOrderDataError(
                    f"batch report {reports[0]} precedes last loaded report {self._reports[last]}"
                )

        return days, reports, ministeps

    def append(
        self,
        days: Sequence[float],
        reports: Sequence[int],
        ministeps: Optional[Sequence[int]] = None,
    ) -> int:
        """
        追加一批 step，返回新增数量。

        通常只由 SummarySet.extend 调用（与 ValueStore 同步增长）。
        """
        days, reports, ministeps = self.normalize(days, reports, ministeps)
        count = days.shape[0]
        if count == 0:
            return 0

        start = self._n
        self._reserve(start + count)
        self._days[start: start + count] = days
        self._reports[start: start + count] = reports
        self._ministeps[start: start + count] = ministeps
        self._n += count

        for offset, report in enumerate(reports.tolist()):
            step = start + offset
            rng = self._ranges.get(report)
            if rng is None:
                self._ranges[report] = [step, step]
            else:
                rng[1] = step

        return count

    def clear(self) -> None:
        self._n = 0
        self._days = np.empty(0, dtype=np.float64)
        self._reports = np.empty(0, dtype=np.int64)
        self._ministeps = np.empty(0, dtype=np.int64)
        self._ranges = {}

    # --------------------------------------------------
    # queries
    # --------------------------------------------------
    def step_count(self) -> int:
        return self._n

    def __len__(self) -> int:
        return self._n

    def _check(self, step: int) -> int:
        if not 0 <= step < self._n:
            raise OutOfRangeError(f"step {step} out of range (step_count={self._n})")
        return step

    def days_at(self, step: int) -> float:
        return float(self._days[self._check(step)])

    def time_at(self, step: int) -> datetime:
        days = self.days_at(step)
        if self.start_time is None:
            raise NotFoundError("start time is not set")
        return DateTimeUtils.add_days(self.start_time, days)

    def report_at(self, step: int) -> int:
        return int(self._reports[self._check(step)])

    def ministep_at(self, step: int) -> int:
        return int(self._ministeps[self._check(step)])

    def substep(self, step: int) -> int:
        """step 在其 report 内的位置（0-based）"""
        report = self.report_at(step)
        return step - self._ranges[report][0]

    def report_range(self, report: int) -> Tuple[int, int]:
        rng = self._ranges.get(int(report))
        if rng is None:
            raise NotFoundError(f"report step {report} was never loaded")
        return rng[0], rng[1]

    def report_steps(self) -> List[int]:
        return list(self._ranges.keys())

    @property
    def first_report(self) -> int:
        if not self._ranges:
            raise NotFoundError("no report steps loaded")
        return next(iter(self._ranges))

    @property
    def last_report(self) -> int:
        if not self._ranges:
            raise NotFoundError("no report steps loaded")
        return next(reversed(self._ranges))

    def days(self) -> np.ndarray:
        return self._days[: self._n].copy()

    def reports(self) -> np.ndarray:
        return self._reports[: self._n].copy()

    def ministeps(self) -> np.ndarray:
        return self._ministeps[: self._n].copy()

    def step_at_days(
        self,
        days: float,
        nearest: bool = False,
        tolerance: float = 0.0,
    ) -> Optional[int]:
        """
        按天数定位 step：
          - exact  : |Δ| <= tolerance 的第一个 step，否则 None
          - nearest: 距离最近的 step（并列取较早者）
        """
        if self._n == 0:
            return None

        arr = self._days[: self._n]
        pos = int(np.searchsorted(arr, days, side="left"))

        candidates = [p for p in (pos - 1, pos) if 0 <= p < self._n]
        best = min(candidates, key=lambda p: (abs(arr[p] - days), p))

        if nearest:
            return best
        if abs(arr[best] - days) <= tolerance:
            # 相同 days 的多个 step 取第一个
            return int(np.searchsorted(arr, arr[best], side="left"))
        return None

    def step_at_time(
        self,
        ts: datetime,
        nearest: bool = False,
        tolerance: float = 0.0,
    ) -> Optional[int]:
        if self.start_time is None:
            raise NotFoundError("start time is not set")
        days = DateTimeUtils.days_between(self.start_time, ts)
        return self.step_at_days(days, nearest=nearest, tolerance=tolerance)
