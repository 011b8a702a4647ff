#!filepath: simsum/utils/datetime_utils.py
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Union

import numpy as np

SECONDS_PER_DAY = 86400.0


class DateTimeUtils:
    """
    模拟时间工具：
      - 起始时间解析（str / date / datetime）
      - 天数偏移 <-> 日历时间

    模拟器日历无时区，全部使用 naive datetime。
    """

    # ================================================================
    # parse() 解析 start time
    # ================================================================
    @classmethod
    def parse(cls, ts: Union[str, date, datetime]) -> datetime:
        if isinstance(ts, datetime):
            return ts.replace(tzinfo=None) if ts.tzinfo else ts

        if isinstance(ts, date):
            return datetime(ts.year, ts.month, ts.day)

        if isinstance(ts, str):
            s = ts.strip()
            try:
                return datetime.fromisoformat(s).replace(tzinfo=None)
            except ValueError:
                pass

            for fmt in ["%Y/%m/%d %H:%M:%S", "%Y/%m/%d", "%Y%m%d", "%d.%m.%Y"]:
                try:
                    return datetime.strptime(s, fmt)
                except ValueError:
                    pass

            raise ValueError(f"无法解析时间字符串: {ts}")

        raise TypeError(f"不支持的时间类型: {type(ts)}")

    # ================================================================
    # days <-> calendar
    # ================================================================
    @classmethod
    def add_days(cls, start: datetime, days: float) -> datetime:
        return start + timedelta(days=float(days))

    @classmethod
    def days_between(cls, start: datetime, end: Union[str, date, datetime]) -> float:
        return (cls.parse(end) - start).total_seconds() / SECONDS_PER_DAY

    @classmethod
    def to_datetime64(cls, start: datetime, days: np.ndarray) -> np.ndarray:
        """
        批量转换：days(float64) → datetime64[ms]
        """
        base = np.datetime64(start, "ms")
        offsets = np.rint(np.asarray(days, dtype=np.float64) * SECONDS_PER_DAY * 1000.0)
        return base + offsets.astype("timedelta64[ms]")

    @classmethod
    def isoformat(cls, ts: datetime) -> str:
        return ts.isoformat()
