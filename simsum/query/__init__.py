from .accessor import SummaryQuery
from .report import dump, to_frame

__all__ = ["SummaryQuery", "dump", "to_frame"]
