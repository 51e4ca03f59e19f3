"""Exceptions raised by the record log codec, reader and writer."""

from __future__ import annotations

from typing import Optional, Union

__all__ = [
    "RecordLogError",
    "DecodeError",
    "TruncatedRecordError",
    "FramingModeError",
    "ReaderStateError",
]


class RecordLogError(Exception):
    """Base class for all record log errors."""


class DecodeError(RecordLogError, ValueError):
    """
    Input does not follow the record grammar.

    Attributes:
        message: Human-readable reason
        line: Offending line or content (truncated for display)
        offset: Stream offset of the record being decoded; the reader fills
                this in before re-raising
    """

    MAX_LINE_REPR = 80

    def __init__(
        self,
        message: str,
        line: Union[bytes, bytearray, memoryview, None] = None,
        offset: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.line = bytes(line[: self.MAX_LINE_REPR]) if line is not None else None
        self.offset = offset

    def __str__(self) -> str:
        details = self.message
        if self.line is not None:
            details = f"{details}: {self.line!r}"
        if self.offset is not None:
            details = f"{details} (record at offset {self.offset})"
        return details


class TruncatedRecordError(DecodeError):
    """Input ended in the middle of a record."""


class FramingModeError(RecordLogError, ValueError):
    """Operation is not available in the configured framing mode."""


class ReaderStateError(RecordLogError):
    """Reader was used after a failed read."""
