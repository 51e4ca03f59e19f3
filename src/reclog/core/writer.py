"""
RecordWriter: appends framed records to a binary stream.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import TYPE_CHECKING, BinaryIO, Optional, Union

import structlog

from reclog.core.codec import encode, format_frame_header
from reclog.core.constants import NEWLINE
from reclog.core.errors import FramingModeError
from reclog.core.models import FramingMode, Record
from reclog.monitoring.metrics import BYTES_WRITTEN, RECORDS_WRITTEN

if TYPE_CHECKING:
    from reclog.config.config import RecordLogConfig

logger = structlog.get_logger(__name__)


class RecordWriter:
    """
    Writes records (or raw blobs) to a stream using one framing mode.

    Framing:
        SEPARATOR:   encoded record followed by a ``---`` line; names and
                     timestamps are not stored
        SIZE_PREFIX: ``SIZE[ MS][ NAME]\\n`` header, payload, and a padding
                     newline when the payload does not end with one

    Every write returns the exact number of bytes written, so callers can
    keep per-record offsets; ``bytes_written`` holds the running total
    (the offset the next frame will start at).
    """

    def __init__(
        self,
        stream: BinaryIO,
        framing: Union[FramingMode, str] = FramingMode.SIZE_PREFIX,
        with_timestamps: bool = False,
        start_offset: int = 0,
    ) -> None:
        """
        Args:
            stream: Writable binary stream; not closed by ``close()``
                    unless the writer was created with ``open()``
            framing: Framing mode, fixed for the writer's lifetime
            with_timestamps: Store a millisecond timestamp in every frame
                             header (size-prefix framing only)
            start_offset: Offset of the stream position at creation, e.g.
                          the current size of a file opened for append

        Raises:
            FramingModeError: If timestamps are requested with separator framing
        """
        self.framing = FramingMode(framing)
        if with_timestamps and self.framing is FramingMode.SEPARATOR:
            raise FramingModeError("timestamps require size-prefix framing")

        self.with_timestamps = with_timestamps
        self._stream = stream
        self._owns_stream = False
        self._closed = False
        self.bytes_written = start_offset
        self.records_written = 0

        self._records_counter = RECORDS_WRITTEN.labels(framing=self.framing.value)
        self._bytes_counter = BYTES_WRITTEN.labels(framing=self.framing.value)

    @classmethod
    def open(
        cls,
        path: Union[str, os.PathLike],
        framing: Union[FramingMode, str] = FramingMode.SIZE_PREFIX,
        with_timestamps: bool = False,
        append: bool = True,
    ) -> "RecordWriter":
        """Open ``path`` for writing; offsets continue from the current file size."""
        f = open(path, "ab" if append else "wb")
        try:
            f.seek(0, os.SEEK_END)
            writer = cls(
                f,
                framing=framing,
                with_timestamps=with_timestamps,
                start_offset=f.tell(),
            )
        except Exception:
            f.close()
            raise
        writer._owns_stream = True
        return writer

    @classmethod
    def from_config(cls, stream: BinaryIO, config: "RecordLogConfig") -> "RecordWriter":
        return cls(stream, framing=config.framing, with_timestamps=config.with_timestamps)

    def write_record(self, record: Record, name: Optional[str] = None) -> int:
        """
        Encode and write one record.

        Args:
            record: Record to write (not modified)
            name: Overrides ``record.name`` for this call (size-prefix only)

        Returns:
            Number of bytes written
        """
        if self.framing is FramingMode.SEPARATOR:
            return self._write(encode(record, separator=True))

        data = encode(record)
        frame_name = record.name if name is None else name
        return self._write_frame(data, frame_name, record.timestamp)

    def write(self, data: Union[bytes, bytearray, memoryview]) -> int:
        """Write an unnamed raw blob (size-prefix framing only)."""
        return self.write_named(data, "")

    def write_named(
        self,
        data: Union[bytes, bytearray, memoryview],
        name: str,
        timestamp: Optional[datetime] = None,
    ) -> int:
        """
        Write a raw blob with an optional name (size-prefix framing only).

        Raises:
            FramingModeError: If the writer uses separator framing
        """
        if self.framing is not FramingMode.SIZE_PREFIX:
            raise FramingModeError("raw blobs require size-prefix framing")
        return self._write_frame(bytes(data), name, timestamp)

    def _write_frame(self, data: bytes, name: str, timestamp: Optional[datetime]) -> int:
        if "\n" in name:
            raise ValueError(f"Invalid record name: {name!r} (must not contain newline)")
        if self.with_timestamps:
            timestamp = timestamp or datetime.now(timezone.utc)
        else:
            timestamp = None

        header = format_frame_header(len(data), name, timestamp)
        parts = [header, data]
        # padding keeps the file readable with tail; readers skip it
        if data and not data.endswith(NEWLINE):
            parts.append(NEWLINE)
        return self._write(b"".join(parts))

    def _write(self, frame: bytes) -> int:
        if self._closed:
            raise RuntimeError("Writer is already closed")
        self._stream.write(frame)
        n = len(frame)
        self.bytes_written += n
        self.records_written += 1
        self._records_counter.inc()
        self._bytes_counter.inc(n)
        return n

    def flush(self) -> None:
        self._stream.flush()

    def close(self) -> None:
        """Flush, and close the stream if this writer opened it."""
        if self._closed:
            return
        self._stream.flush()
        if self._owns_stream:
            self._stream.close()
        self._closed = True
        logger.debug(
            "writer_closed",
            framing=self.framing.value,
            records=self.records_written,
            offset=self.bytes_written,
        )

    def __enter__(self) -> "RecordWriter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
