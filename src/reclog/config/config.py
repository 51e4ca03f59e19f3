from __future__ import annotations

import os

from pydantic import BaseModel, Field

from reclog.core.constants import DEFAULT_MAX_BUFFER_CAPACITY
from reclog.core.models import FramingMode

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


class RecordLogConfig(BaseModel):
    """Record log reader/writer configuration."""

    framing: FramingMode = Field(
        FramingMode.SIZE_PREFIX,
        description="Framing mode: size-prefix or separator",
    )
    with_timestamps: bool = Field(
        False,
        description="Store millisecond timestamps in frame headers (size-prefix only)",
    )
    max_buffer_capacity: int = Field(
        DEFAULT_MAX_BUFFER_CAPACITY,
        gt=0,
        description="Reader scratch buffer is shrunk back under this size",
    )
    log_level: str = Field("INFO", description="Logging level")
    json_logs: bool = Field(False, description="Render logs as JSON")

    @classmethod
    def from_env(cls) -> "RecordLogConfig":
        return cls(
            framing=os.getenv("RECLOG_FRAMING", FramingMode.SIZE_PREFIX.value),
            with_timestamps=_env_flag("RECLOG_TIMESTAMPS"),
            max_buffer_capacity=int(
                os.getenv("RECLOG_MAX_BUFFER_CAPACITY", str(DEFAULT_MAX_BUFFER_CAPACITY))
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            json_logs=_env_flag("RECLOG_JSON_LOGS"),
        )
