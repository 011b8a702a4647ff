#!filepath: tests/base_test/test_app_config.py
import yaml
import pytest

from simsum.config import AppConfig, FormatMode
from simsum.config.analytics_config import AnalyticsConfig, MisfitNorm, MissingPolicy, TimeMatch
from simsum.config.log_config import LogConfig
from simsum.config.summary_config import SummaryConfig


@pytest.fixture
def sample_config_file(tmp_path):
    """
    创建临时 YAML 配置文件用于测试，
    pytest 会自动清理该目录。
    """
    data = {
        "log": {
            "dir": "logs",
            "rotation": "1 day",
            "retention": "30 days",
            "level": "DEBUG"
        },
        "summary": {
            "default_format": "formatted",
            "strict_units": False,
            "recursive": True,
            "batch_digits": 4
        },
        "analytics": {
            "include_zero": False,
            "workers": 4,
            "misfit": {
                "norm": "absolute",
                "time_match": "nearest",
                "missing": "skip"
            }
        }
    }

    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.safe_dump(data), encoding="utf-8")
    return config_file


@pytest.fixture(autouse=True)
def no_env_level(monkeypatch):
    monkeypatch.delenv("SIMSUM_LOG_LEVEL", raising=False)


def test_app_config_load(sample_config_file):
    """测试 AppConfig 是否能正确加载 YAML"""
    cfg = AppConfig.load(path=str(sample_config_file))

    assert isinstance(cfg, AppConfig)
    assert isinstance(cfg.log, LogConfig)
    assert isinstance(cfg.summary, SummaryConfig)
    assert isinstance(cfg.analytics, AnalyticsConfig)


def test_summary_config_values(sample_config_file):
    cfg = AppConfig.load(path=str(sample_config_file))

    assert cfg.summary.default_format is FormatMode.FORMATTED
    assert cfg.summary.strict_units is False
    assert cfg.summary.recursive is True


def test_analytics_config_values(sample_config_file):
    cfg = AppConfig.load(path=str(sample_config_file))

    assert cfg.analytics.workers == 4
    assert cfg.analytics.misfit.norm is MisfitNorm.ABSOLUTE
    assert cfg.analytics.misfit.time_match is TimeMatch.NEAREST
    assert cfg.analytics.misfit.missing is MissingPolicy.SKIP


def test_default_config_file():
    """无参数时读取包内 base.yml"""
    cfg = AppConfig.load()

    assert cfg.summary.default_format is FormatMode.BINARY
    assert cfg.summary.strict_units is True
    assert cfg.analytics.misfit.missing is MissingPolicy.ABORT


def test_partial_file_uses_defaults(tmp_path):
    """缺少的段落使用默认值"""
    f = tmp_path / "partial.yaml"
    f.write_text(yaml.safe_dump({"log": {"level": "WARNING"}}))

    cfg = AppConfig.load(path=str(f))
    assert cfg.log.level == "WARNING"
    assert cfg.log.dir == "logs"
    assert cfg.summary.batch_digits == 4


def test_env_overrides_log_level(sample_config_file, monkeypatch):
    monkeypatch.setenv("SIMSUM_LOG_LEVEL", "ERROR")
    cfg = AppConfig.load(path=str(sample_config_file))
    assert cfg.log.level == "ERROR"


def test_invalid_value_should_fail(tmp_path):
    """非法枚举值 / 越界值应抛出 ValidationError"""
    bad_file = tmp_path / "bad.yaml"
    bad_file.write_text(yaml.safe_dump({"summary": {"default_format": "ascii", "batch_digits": 0}}))

    with pytest.raises(Exception):
        AppConfig.load(path=str(bad_file))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        AppConfig.load(path=str(tmp_path / "nope.yml"))
