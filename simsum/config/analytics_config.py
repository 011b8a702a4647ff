# simsum/config/analytics_config.py
from enum import Enum

from pydantic import BaseModel, Field


class MisfitNorm(str, Enum):
    SQUARED = "squared"
    ABSOLUTE = "absolute"


class TimeMatch(str, Enum):
    EXACT = "exact"
    NEAREST = "nearest"


class MissingPolicy(str, Enum):
    ABORT = "abort"
    SKIP = "skip"


class MisfitConfig(BaseModel):
    norm: MisfitNorm = MisfitNorm.SQUARED
    time_match: TimeMatch = TimeMatch.EXACT
    missing: MissingPolicy = MissingPolicy.ABORT
    # exact 匹配时允许的时间误差（天）
    time_tolerance_days: float = Field(default=1e-6, ge=0.0)


class AnalyticsConfig(BaseModel):
    include_zero: bool = True
    workers: int = Field(default=1, ge=1)
    misfit: MisfitConfig = Field(default_factory=MisfitConfig)
