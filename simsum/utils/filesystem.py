#!filepath: simsum/utils/filesystem.py
import os
from pathlib import Path
from typing import List, Optional

from simsum import logs


class FileSystem:
    """
    统一文件系统工具
    - 自动创建目录
    - 安全写入文件（临时文件 → rename）
    - 扫描目录
    """

    @staticmethod
    def ensure_dir(path: str | Path) -> Path:
        """
        创建目录（如果不存在）
        """
        p = Path(path)
        if not p.exists():
            p.mkdir(parents=True, exist_ok=True)
            logs.debug(f"[FS] 创建目录: {p}")
        return p

    @staticmethod
    def file_exists(path: str | Path) -> bool:
        return Path(path).exists()

    @staticmethod
    def get_file_size(path: str | Path) -> int:
        p = Path(path)
        if not p.exists():
            return 0
        return p.stat().st_size

    @staticmethod
    def safe_write(path: str | Path, data: bytes) -> None:
        """
        原子写入（避免部分写入导致文件损坏）
            1) 先写入 tmp 文件
            2) rename → 正式文件

        tmp 名在原文件名后追加 .tmp，不替换后缀（CASE.S0001 → CASE.S0001.tmp）。
        """
        path = Path(path)
        FileSystem.ensure_dir(path.parent)

        tmp_path = path.with_name(path.name + ".tmp")

        with open(tmp_path, "wb") as f:
            f.write(data)
            logs.debug(f"[FS] 写入临时文件: {tmp_path}")

        os.replace(tmp_path, path)
        logs.debug(f"[FS] 原子写入完成: {path}")

    @staticmethod
    def scan_dir(path: str | Path, suffix: Optional[str] = None) -> List[Path]:
        """
        返回目录下所有文件（可按后缀过滤），按名称排序
        """
        p = Path(path)
        if not p.exists():
            return []

        files = []
        for f in p.iterdir():
            if f.is_file():
                if suffix is None or f.suffix == suffix:
                    files.append(f)

        return sorted(files)
