# simsum/codec/naming.py
from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

from simsum.config.summary_config import FormatMode
from simsum.utils.errors import SummaryIOError
from simsum.utils.filesystem import FileSystem

HEADER_EXT = {
    FormatMode.BINARY: ".SMSPEC",
    FormatMode.FORMATTED: ".FSMSPEC",
}

BATCH_PREFIX = {
    FormatMode.BINARY: "S",
    FormatMode.FORMATTED: "A",
}

_BATCH_RE = re.compile(r"^\.([SA])(\d+)$")


@dataclass(frozen=True)
class SummaryFileName:
    """
    文件命名约定：

        <CASE>.SMSPEC / <CASE>.FSMSPEC     header（binary / formatted）
        <CASE>.S0001  / <CASE>.A0001       第 N 个数据批次

    base = 目录 / CASE（不带后缀）
    """

    base: Path
    format_mode: FormatMode
    batch: Optional[int] = None

    @property
    def is_header(self) -> bool:
        return self.batch is None

    @property
    def case(self) -> str:
        return self.base.name

    # --------------------------------------------------
    @classmethod
    def parse(cls, path: str | Path) -> Optional["SummaryFileName"]:
        """
        识别 header / batch 文件名，其他文件返回 None
        """
        p = Path(path)
        suffix = p.suffix.upper()
        base = p.with_suffix("")

        for mode, ext in HEADER_EXT.items():
            if suffix == ext:
                return cls(base=base, format_mode=mode)

        m = _BATCH_RE.match(suffix)
        if m:
            mode = FormatMode.BINARY if m.group(1) == "S" else FormatMode.FORMATTED
            return cls(base=base, format_mode=mode, batch=int(m.group(2)))

        return None


def header_path(base: str | Path, format_mode: FormatMode) -> Path:
    base = Path(base)
    return base.parent / f"{base.name}{HEADER_EXT[FormatMode(format_mode)]}"


def batch_path(
    base: str | Path,
    format_mode: FormatMode,
    index: int,
    digits: int = 4,
) -> Path:
    base = Path(base)
    prefix = BATCH_PREFIX[FormatMode(format_mode)]
    return base.parent / f"{base.name}.{prefix}{index:0{digits}d}"


def resolve_header(path: str | Path) -> SummaryFileName:
    """
    path 可以是 header 文件本身，也可以是 case 基名（dir/CASE）。
    基名同时存在两种格式时优先 binary。
    """
    p = Path(path)
    name = SummaryFileName.parse(p)
    if name is not None:
        if not name.is_header:
            raise SummaryIOError(f"[Naming] expected a header file, got data batch: {p}")
        if not p.exists():
            raise SummaryIOError(f"[Naming] header not found: {p}")
        return name

    for mode in (FormatMode.BINARY, FormatMode.FORMATTED):
        candidate = header_path(p, mode)
        if candidate.exists():
            return SummaryFileName(base=p, format_mode=mode)

    raise SummaryIOError(f"[Naming] no summary header for case: {p}")


def existing_batch(base: Path, format_mode: FormatMode, index: int) -> Optional[Path]:
    """
    第 index 个批次文件（任意位数的零填充）存在则返回路径
    """
    prefix = BATCH_PREFIX[FormatMode(format_mode)]
    for digits in (4, 1, 2, 3, 5, 6, 7, 8):
        if len(str(index)) > digits:
            continue
        candidate = base.parent / f"{base.name}.{prefix}{index:0{digits}d}"
        if candidate.exists():
            return candidate
    return None


def iter_batches(base: Path, format_mode: FormatMode, start: int = 1) -> Iterator[Path]:
    """
    从 start 开始连续扫描批次文件，遇到第一个缺口停止
    """
    index = start
    while True:
        path = existing_batch(base, format_mode, index)
        if path is None:
            return
        yield path
        index += 1


def find_headers(directory: str | Path) -> List[Path]:
    """
    目录下所有 header 候选（按名称排序）
    """
    headers = []
    for f in FileSystem.scan_dir(directory):
        name = SummaryFileName.parse(f)
        if name is not None and name.is_header:
            headers.append(f)
    return headers
