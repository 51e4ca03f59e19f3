"""reclog - human-readable key/value record log format."""

__version__ = "0.1.0"

from .core import (
    DecodeError,
    Entry,
    Frame,
    FramingMode,
    FramingModeError,
    ReaderStateError,
    Record,
    RecordIndex,
    RecordIndexEntry,
    RecordLogError,
    RecordReader,
    RecordWriter,
    TruncatedRecordError,
    build_index,
    decode,
    encode,
    read_record_at,
)

__all__ = [
    "Record",
    "Entry",
    "Frame",
    "FramingMode",
    "RecordIndexEntry",
    "encode",
    "decode",
    "RecordWriter",
    "RecordReader",
    "RecordIndex",
    "build_index",
    "read_record_at",
    "RecordLogError",
    "DecodeError",
    "TruncatedRecordError",
    "FramingModeError",
    "ReaderStateError",
]
