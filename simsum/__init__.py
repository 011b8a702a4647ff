#!filepath: simsum/__init__.py

from .utils.logger import Logging, logs, init_logging
from .utils.filesystem import FileSystem
from .utils.datetime_utils import DateTimeUtils
from .config.app_config import AppConfig
from .config.summary_config import FormatMode

from .core.types import ABSENT, VarCategory, VariableKey, is_absent
from .core.summary_set import SummarySet
from .codec import load, load_data, load_interactive, save
from .query import SummaryQuery, dump, to_frame

__version__ = "0.1.0"

# alias 简化调用
fs = FileSystem
datetime_utils = DateTimeUtils

__all__ = [
    "logs", "Logging", "init_logging",
    "fs",
    "datetime_utils",
    "AppConfig",
    "FormatMode",
    "ABSENT", "VarCategory", "VariableKey", "is_absent",
    "SummarySet",
    "load", "load_data", "load_interactive", "save",
    "SummaryQuery", "dump", "to_frame",
]
