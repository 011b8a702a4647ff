# simsum/config/summary_config.py
from enum import Enum

from pydantic import BaseModel, Field


class FormatMode(str, Enum):
    BINARY = "binary"
    FORMATTED = "formatted"


class SummaryConfig(BaseModel):
    default_format: FormatMode = FormatMode.BINARY
    strict_units: bool = True
    recursive: bool = False
    batch_digits: int = Field(default=4, ge=1, le=8)
