#!filepath: simsum/config/app_config.py
import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .analytics_config import AnalyticsConfig
from .log_config import LogConfig
from .summary_config import SummaryConfig


def package_root() -> str:
    """
    simsum/config/app_config.py → simsum/config → simsum
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    summary: SummaryConfig = Field(default_factory=SummaryConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - 默认使用 simsum/config/base.yml
        - SIMSUM_LOG_LEVEL 覆盖 log.level
        """
        root = package_root()

        # 1) .env（当前工作目录）
        load_dotenv(os.path.join(os.getcwd(), ".env"))

        # 2) 配置文件路径
        if path is None:
            path = os.path.join(root, "config", "base.yml")

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        # 3) 读取 YAML
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        level = os.getenv("SIMSUM_LOG_LEVEL")
        if level:
            raw.setdefault("log", {})["level"] = level

        return cls(**raw)
