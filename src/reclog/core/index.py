"""
Offset index over a record stream.

A single sequential scan records where every record starts and how many
bytes it occupies, so individual records can later be re-read by seeking.
"""

from __future__ import annotations

import os
from typing import BinaryIO, Iterator, Optional, Union

import structlog

from reclog.core.models import FramingMode, Record, RecordIndexEntry
from reclog.core.reader import RecordReader

logger = structlog.get_logger(__name__)


def build_index(
    stream: BinaryIO,
    framing: Union[FramingMode, str] = FramingMode.SIZE_PREFIX,
    with_timestamps: bool = False,
) -> list[RecordIndexEntry]:
    """
    Scan ``stream`` from its current position and index every record.

    Offsets are relative to the position the scan starts at.

    Raises:
        DecodeError: Malformed input (with the failing record's offset)
    """
    reader = RecordReader(stream, framing=framing, with_timestamps=with_timestamps)
    entries: list[RecordIndexEntry] = []
    for offset, record in reader:
        entries.append(
            RecordIndexEntry(
                offset=offset,
                length=reader.next_offset - offset,
                name=record.name,
                timestamp=record.timestamp,
            )
        )
    logger.debug(
        "index_built",
        framing=reader.framing.value,
        records=len(entries),
        size=reader.next_offset,
    )
    return entries


def read_record_at(
    stream: BinaryIO,
    offset: int,
    framing: Union[FramingMode, str] = FramingMode.SIZE_PREFIX,
    with_timestamps: bool = False,
) -> Optional[Record]:
    """
    Seek to ``offset`` and decode the record starting there.

    Returns:
        A new Record, or None if ``offset`` is at the end of the stream
    """
    if offset < 0:
        raise ValueError(f"offset must be non-negative, got {offset}")
    stream.seek(offset, os.SEEK_SET)
    reader = RecordReader(
        stream,
        framing=framing,
        with_timestamps=with_timestamps,
        start_offset=offset,
    )
    return reader.read_record()


class RecordIndex:
    """
    In-memory list of record positions with lookups by position and name.

    Usage:
        with open("events.log", "rb") as f:
            index = RecordIndex.build(f)
            record = index.read(f, 3)
    """

    def __init__(
        self,
        entries: list[RecordIndexEntry],
        framing: Union[FramingMode, str] = FramingMode.SIZE_PREFIX,
        with_timestamps: bool = False,
    ) -> None:
        self.entries = entries
        self.framing = FramingMode(framing)
        self.with_timestamps = with_timestamps

    @classmethod
    def build(
        cls,
        stream: BinaryIO,
        framing: Union[FramingMode, str] = FramingMode.SIZE_PREFIX,
        with_timestamps: bool = False,
    ) -> "RecordIndex":
        entries = build_index(stream, framing=framing, with_timestamps=with_timestamps)
        return cls(entries, framing=framing, with_timestamps=with_timestamps)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, i: int) -> RecordIndexEntry:
        return self.entries[i]

    def __iter__(self) -> Iterator[RecordIndexEntry]:
        return iter(self.entries)

    def find(self, name: str) -> list[RecordIndexEntry]:
        """All entries whose record carries ``name``, in stream order."""
        return [e for e in self.entries if e.name == name]

    def offsets(self) -> list[int]:
        return [e.offset for e in self.entries]

    def read(self, stream: BinaryIO, i: int) -> Record:
        """Re-read the ``i``-th record from ``stream``."""
        entry = self.entries[i]
        record = read_record_at(
            stream,
            entry.offset,
            framing=self.framing,
            with_timestamps=self.with_timestamps,
        )
        if record is None:
            raise IndexError(f"no record at offset {entry.offset}")
        return record

    def __repr__(self) -> str:
        return f"RecordIndex(records={len(self.entries)}, framing={self.framing.value})"


__all__ = ["RecordIndex", "build_index", "read_record_at"]
