"""Configuration for reclog readers, writers and the CLI."""

from reclog.config.config import RecordLogConfig

__all__ = ["RecordLogConfig"]
