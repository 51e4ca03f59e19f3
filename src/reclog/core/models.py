"""
Record log data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Iterator, Optional, Union

Value = Union[str, bytes, bytearray, memoryview]

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class FramingMode(str, Enum):
    """How whole records are delimited inside a stream."""

    SEPARATOR = "separator"
    SIZE_PREFIX = "size-prefix"


@dataclass(frozen=True)
class Entry:
    """Single key/value pair. Value is opaque binary data."""

    key: str
    value: bytes

    def __repr__(self) -> str:
        return f"Entry({self.key!r}, {self.value!r})"


def _as_bytes(value: Value) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"value must be str or bytes-like, got {type(value).__name__}")


def _check_key(key: object) -> str:
    if not isinstance(key, str):
        raise TypeError(f"key must be str, got {type(key).__name__}")
    if ":" in key or "\n" in key:
        raise ValueError(f"Invalid key: {key!r} (must not contain ':' or newline)")
    return key


@dataclass
class Record:
    """
    Ordered list of key/value entries plus optional name and timestamp.

    Duplicate keys are allowed; lookups return the first match.

    Records are meant to be reused in tight loops: ``reset()`` clears the
    record but keeps the same entries list, and the reader/decoder populate
    a caller-supplied record instead of allocating a new one.

    Attributes:
        entries: Entries in insertion order
        name: Optional tag (e.g. log stream name); "" means no name
        timestamp: Optional time; persisted only by size-prefix framing
                   with timestamps enabled
    """

    entries: list[Entry] = field(default_factory=list)
    name: str = ""
    timestamp: Optional[datetime] = None

    def append(self, *args: Value) -> None:
        """
        Append key/value pairs: ``rec.append("k1", "v1", "k2", b"v2")``.

        Raises:
            ValueError: If the number of arguments is zero or odd, or a key
                        contains ':' or a newline
            TypeError: If a key is not str or a value is not str/bytes-like
        """
        n = len(args)
        if n == 0 or n % 2 != 0:
            raise ValueError(f"Invalid number of args: {n}")

        # validate everything first so a bad pair never leaves a partial append
        pairs = [
            Entry(_check_key(args[i]), _as_bytes(args[i + 1]))
            for i in range(0, n, 2)
        ]
        self.entries.extend(pairs)

    def _append_raw(self, key: str, value: bytes) -> None:
        # decoder fast path, key/value already structurally valid
        self.entries.append(Entry(key, value))

    def reset(self) -> None:
        """Clear entries and metadata, keeping the entries list for reuse."""
        del self.entries[:]
        self.name = ""
        self.timestamp = None

    def get(self, key: str) -> Optional[bytes]:
        """Return the value of the first entry with ``key`` or None."""
        for entry in self.entries:
            if entry.key == key:
                return entry.value
        return None

    def get_str(self, key: str, errors: str = "strict") -> Optional[str]:
        """Like ``get`` but decodes the value as UTF-8."""
        value = self.get(key)
        if value is None:
            return None
        return value.decode("utf-8", errors)

    def keys(self) -> list[str]:
        return [e.key for e in self.entries]

    def to_dict(self) -> dict[str, bytes]:
        """Key -> value mapping; for duplicate keys the first value wins."""
        result: dict[str, bytes] = {}
        for entry in self.entries:
            result.setdefault(entry.key, entry.value)
        return result

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries)

    def __repr__(self) -> str:
        parts = [f"entries={len(self.entries)}"]
        if self.name:
            parts.append(f"name={self.name!r}")
        if self.timestamp is not None:
            parts.append(f"timestamp={self.timestamp.isoformat()}")
        return f"Record({', '.join(parts)})"


@dataclass
class Frame:
    """
    One size-prefixed frame as returned by ``RecordReader.read_frame``.

    ``payload`` points into the reader's reusable buffer and is only valid
    until the next read; use ``data`` to keep a copy.
    """

    offset: int
    size: int
    payload: memoryview
    name: str = ""
    timestamp: Optional[datetime] = None

    @property
    def data(self) -> bytes:
        return bytes(self.payload)

    def __repr__(self) -> str:
        name_repr = f", name={self.name!r}" if self.name else ""
        return f"Frame(offset={self.offset}, size={self.size}{name_repr})"


@dataclass
class RecordIndexEntry:
    """
    Position of a single record inside a stream.

    Attributes:
        offset: Absolute byte offset where the record (or its frame header) starts
        length: Bytes consumed from the stream for this record
        name: Record name (size-prefix framing only)
        timestamp: Record timestamp (size-prefix framing with timestamps only)
    """

    offset: int
    length: int
    name: str = ""
    timestamp: Optional[datetime] = None

    @property
    def end(self) -> int:
        return self.offset + self.length

    def __repr__(self) -> str:
        name_repr = f", name={self.name!r}" if self.name else ""
        return (
            f"RecordIndexEntry(offset={self.offset}, "
            f"length={self.length}{name_repr})"
        )


def timestamp_to_ms(ts: datetime) -> int:
    """Milliseconds since the unix epoch. Naive datetimes are taken as UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return (ts - EPOCH) // timedelta(milliseconds=1)


def ms_to_timestamp(ms: int) -> datetime:
    """Inverse of ``timestamp_to_ms``; returns an aware UTC datetime."""
    return EPOCH + timedelta(milliseconds=ms)


__all__ = [
    "Entry",
    "Record",
    "Frame",
    "FramingMode",
    "RecordIndexEntry",
    "timestamp_to_ms",
    "ms_to_timestamp",
]
