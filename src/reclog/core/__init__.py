"""Core record log components: codec, writer, reader and index."""

from reclog.core.codec import (
    decode,
    encode,
    encoded_size,
    format_frame_header,
    is_short_value,
    parse_frame_header,
)
from reclog.core.errors import (
    DecodeError,
    FramingModeError,
    ReaderStateError,
    RecordLogError,
    TruncatedRecordError,
)
from reclog.core.index import RecordIndex, build_index, read_record_at
from reclog.core.models import Entry, Frame, FramingMode, Record, RecordIndexEntry
from reclog.core.reader import RecordReader
from reclog.core.writer import RecordWriter

__all__ = [
    "Entry",
    "Record",
    "Frame",
    "FramingMode",
    "RecordIndexEntry",
    "encode",
    "encoded_size",
    "decode",
    "is_short_value",
    "format_frame_header",
    "parse_frame_header",
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
