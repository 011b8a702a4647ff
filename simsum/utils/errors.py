# simsum/utils/errors.py
from __future__ import annotations


class SummaryError(RuntimeError):
    """
    simsum 所有可恢复错误的基类。

    Core 层（Catalog / TimeIndex / ValueStore）只抛出，不退出进程。
    """


class SummaryIOError(SummaryError):
    """Source cannot be opened / destination cannot be written."""


class CorruptDataError(SummaryError):
    """Structural parse failure in a header or data batch."""


class UnitMismatchError(SummaryError):
    """A batch (or re-registration) declares a unit inconsistent with the header."""


class OutOfOrderDataError(SummaryError):
    """Appended steps would break monotonic time / step ordering."""


class NotFoundError(SummaryError, KeyError):
    """
    Unresolved variable key or report step.

    Also a KeyError so that mapping-style callers can catch it naturally.
    """

    def __str__(self) -> str:
        # KeyError quotes its argument; keep plain messages
        return str(self.args[0]) if self.args else ""


class OutOfRangeError(SummaryError, IndexError):
    """Invalid step or slot index."""


class AmbiguousSourceError(SummaryError):
    """
    Interactive load found several candidates and no selection was given.
    """

    def __init__(self, message: str, candidates: list[str] | None = None):
        super().__init__(message)
        self.candidates = list(candidates or [])
