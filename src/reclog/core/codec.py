"""
Encoding and decoding of records and size-prefix frame headers.

Each entry is one of:

    key: value\\n               short form: 1..120 printable ASCII bytes
    key:+N\\n<N bytes>[\\n]      long form: everything else

The long form is followed by a newline unless the value already ends with
one, so a blob never runs into the next header line. Separator-framed
records end with a ``---`` line.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from reclog.core.constants import (
    HEADER_FIELD_SEPARATOR,
    KEY_SEPARATOR,
    MAX_SHORT_VALUE_LENGTH,
    NEWLINE,
    NEWLINE_BYTE,
    PRINTABLE_MAX,
    PRINTABLE_MIN,
    RECORD_SEPARATOR,
    RECORD_SEPARATOR_LINE,
    TAG_LONG_BYTE,
    TAG_SHORT_BYTE,
)
from reclog.core.errors import DecodeError, TruncatedRecordError
from reclog.core.models import Record, ms_to_timestamp, timestamp_to_ms

Buffer = Union[bytes, bytearray, memoryview]

_PRINTABLE = bytes(range(PRINTABLE_MIN, PRINTABLE_MAX))
_SHORT_SEP = KEY_SEPARATOR + bytes([TAG_SHORT_BYTE])
_LONG_SEP = KEY_SEPARATOR + bytes([TAG_LONG_BYTE])


def is_short_value(value: bytes) -> bool:
    """True if ``value`` can be written as ``key: value`` on one line."""
    if not value or len(value) > MAX_SHORT_VALUE_LENGTH:
        return False
    # deleting every printable byte must leave nothing behind
    return not value.translate(None, _PRINTABLE)


def _layout(record: Record) -> tuple[list[tuple[bytes, bytes, Optional[bytes]]], int]:
    """Pre-encode keys and length prefixes; return them with the exact size."""
    items: list[tuple[bytes, bytes, Optional[bytes]]] = []
    size = 0
    for entry in record.entries:
        key = entry.key.encode("utf-8")
        value = entry.value
        if is_short_value(value):
            items.append((key, value, None))
            size += len(key) + 2 + len(value) + 1
        else:
            length = str(len(value)).encode("ascii")
            items.append((key, value, length))
            size += len(key) + 2 + len(length) + 1 + len(value)
            if not value.endswith(NEWLINE):
                size += 1
    return items, size


def encoded_size(record: Record, separator: bool = False) -> int:
    """Exact number of bytes ``encode(record, separator)`` produces."""
    _, size = _layout(record)
    if separator:
        size += len(RECORD_SEPARATOR_LINE)
    return size


def encode(record: Record, separator: bool = False) -> bytes:
    """
    Serialize ``record`` entries in order.

    The output buffer is allocated once at its exact final size.

    Args:
        record: Record to encode (not modified)
        separator: Append the ``---`` terminator line (separator framing)
    """
    items, size = _layout(record)
    if separator:
        size += len(RECORD_SEPARATOR_LINE)

    buf = bytearray(size)
    pos = 0
    for key, value, length in items:
        end = pos + len(key)
        buf[pos:end] = key
        pos = end
        if length is None:
            buf[pos : pos + 2] = _SHORT_SEP
            pos += 2
        else:
            buf[pos : pos + 2] = _LONG_SEP
            pos += 2
            end = pos + len(length)
            buf[pos:end] = length
            buf[end] = NEWLINE_BYTE
            pos = end + 1
        end = pos + len(value)
        buf[pos:end] = value
        pos = end
        if length is None or not value.endswith(NEWLINE):
            buf[pos] = NEWLINE_BYTE
            pos += 1

    if separator:
        end = pos + len(RECORD_SEPARATOR_LINE)
        buf[pos:end] = RECORD_SEPARATOR_LINE
        pos = end

    if pos != size:
        raise RuntimeError(f"encoded {pos} bytes, expected {size}")
    return bytes(buf)


def _parse_decimal(raw: bytes, what: str, line: Buffer) -> int:
    # bytes.isdigit() is ASCII-only; int() alone would accept "+5", " 5", "5_0"
    if not raw or not raw.isdigit():
        raise DecodeError(f"invalid {what} {bytes(raw)!r}", line)
    return int(raw)


def parse_entry_header(line: bytes) -> tuple[str, Optional[bytes], int]:
    """
    Split one header line (without its newline) into its parts.

    Returns:
        (key, value, -1) for a short entry, or (key, None, length) for a
        long entry whose value follows in the next ``length`` bytes

    Raises:
        DecodeError: Missing ':', missing or unknown tag, bad length
    """
    idx = line.find(KEY_SEPARATOR)
    if idx == -1:
        raise DecodeError("line in unrecognized format", line)
    if idx + 1 >= len(line):
        raise DecodeError("missing value tag", line)

    try:
        key = line[:idx].decode("utf-8")
    except UnicodeDecodeError:
        raise DecodeError("key is not valid UTF-8", line) from None

    tag = line[idx + 1]
    rest = line[idx + 2 :]
    if tag == TAG_SHORT_BYTE:
        return key, bytes(rest), -1
    if tag != TAG_LONG_BYTE:
        raise DecodeError("unrecognized value tag", line)
    return key, None, _parse_decimal(rest, "value length", line)


def decode(
    data: Buffer,
    record: Optional[Record] = None,
    start: int = 0,
    end: Optional[int] = None,
) -> Record:
    """
    Parse ``data[start:end]`` as produced by ``encode``.

    ``record`` is reset and reused when given, otherwise a new one is
    allocated. On failure the record is left empty. A ``---`` line ends the
    record; anything after it is an error.

    Raises:
        DecodeError: Malformed input
        TruncatedRecordError: A long value runs past the end of the input
    """
    if record is None:
        record = Record()
    else:
        record.reset()
    if isinstance(data, memoryview):
        data = data.tobytes()
    if end is None:
        end = len(data)

    pos = start
    try:
        while pos < end:
            nl = data.find(NEWLINE, pos, end)
            if nl == -1:
                raise DecodeError(
                    "missing newline marking end of header", data[pos:end]
                )
            line = data[pos:nl]
            pos = nl + 1

            if line == RECORD_SEPARATOR:
                if pos != end:
                    raise DecodeError(
                        "unexpected data after record separator", data[pos:end]
                    )
                break

            key, value, length = parse_entry_header(line)
            if value is None:
                remaining = end - pos
                if length > remaining:
                    raise TruncatedRecordError(
                        f"length of value {length} greater than remaining "
                        f"data of size {remaining}",
                        line,
                    )
                value = bytes(data[pos : pos + length])
                pos += length
                # encoder adds a newline after blobs not ending in one
                if pos < end and data[pos] == NEWLINE_BYTE:
                    pos += 1
            record._append_raw(key, value)
    except DecodeError:
        record.reset()
        raise
    return record


def format_frame_header(
    size: int, name: str = "", timestamp: Optional[datetime] = None
) -> bytes:
    """Build ``SIZE[ MS][ NAME]\\n`` for size-prefix framing."""
    parts = [str(size).encode("ascii")]
    if timestamp is not None:
        parts.append(str(timestamp_to_ms(timestamp)).encode("ascii"))
    if name:
        parts.append(name.encode("utf-8"))
    return HEADER_FIELD_SEPARATOR.join(parts) + NEWLINE


def parse_frame_header(
    line: bytes, with_timestamps: bool = False
) -> tuple[int, str, Optional[datetime]]:
    """
    Parse a size-prefix frame header line (without its newline).

    Returns:
        (size, name, timestamp); name is "" and timestamp None when absent
    """
    raw_size, _, rest = line.partition(HEADER_FIELD_SEPARATOR)
    size = _parse_decimal(raw_size, "frame size", line)

    timestamp = None
    if with_timestamps:
        raw_ms, _, rest = rest.partition(HEADER_FIELD_SEPARATOR)
        negative = raw_ms.startswith(b"-")
        ms = _parse_decimal(raw_ms[1:] if negative else raw_ms, "frame timestamp", line)
        timestamp = ms_to_timestamp(-ms if negative else ms)

    try:
        name = rest.decode("utf-8")
    except UnicodeDecodeError:
        raise DecodeError("frame name is not valid UTF-8", line) from None
    return size, name, timestamp


__all__ = [
    "encode",
    "encoded_size",
    "decode",
    "is_short_value",
    "parse_entry_header",
    "format_frame_header",
    "parse_frame_header",
]
