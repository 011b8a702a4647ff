from .app_config import AppConfig
from .analytics_config import AnalyticsConfig, MisfitConfig, MisfitNorm, MissingPolicy, TimeMatch
from .log_config import LogConfig
from .summary_config import FormatMode, SummaryConfig

__all__ = [
    "AppConfig",
    "AnalyticsConfig",
    "MisfitConfig",
    "MisfitNorm",
    "MissingPolicy",
    "TimeMatch",
    "LogConfig",
    "FormatMode",
    "SummaryConfig",
]
