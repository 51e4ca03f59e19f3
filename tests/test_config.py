import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

# Ensure src/ is on sys.path for local test runs without installation
PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from reclog.config import RecordLogConfig  # noqa: E402
from reclog.core.constants import DEFAULT_MAX_BUFFER_CAPACITY  # noqa: E402
from reclog.core.models import FramingMode  # noqa: E402

ENV_VARS = (
    "RECLOG_FRAMING",
    "RECLOG_TIMESTAMPS",
    "RECLOG_MAX_BUFFER_CAPACITY",
    "RECLOG_JSON_LOGS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.mark.unit
def test_defaults_from_env() -> None:
    config = RecordLogConfig.from_env()

    assert config.framing is FramingMode.SIZE_PREFIX
    assert config.with_timestamps is False
    assert config.max_buffer_capacity == DEFAULT_MAX_BUFFER_CAPACITY
    assert config.log_level == "INFO"
    assert config.json_logs is False


@pytest.mark.unit
def test_from_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RECLOG_FRAMING", "separator")
    monkeypatch.setenv("RECLOG_TIMESTAMPS", "yes")
    monkeypatch.setenv("RECLOG_MAX_BUFFER_CAPACITY", "65536")
    monkeypatch.setenv("RECLOG_JSON_LOGS", "1")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    config = RecordLogConfig.from_env()

    assert config.framing is FramingMode.SEPARATOR
    assert config.with_timestamps is True
    assert config.max_buffer_capacity == 65536
    assert config.json_logs is True
    assert config.log_level == "DEBUG"


@pytest.mark.unit
def test_invalid_framing_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RECLOG_FRAMING", "lines")
    with pytest.raises(ValidationError):
        RecordLogConfig.from_env()


@pytest.mark.unit
def test_non_positive_capacity_rejected() -> None:
    with pytest.raises(ValidationError):
        RecordLogConfig(max_buffer_capacity=0)


@pytest.mark.unit
def test_non_numeric_capacity_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RECLOG_MAX_BUFFER_CAPACITY", "lots")
    with pytest.raises(ValueError):
        RecordLogConfig.from_env()
