"""RecordReader for reading framed records back from a stream."""

from __future__ import annotations

import io
import os
from datetime import datetime
from typing import TYPE_CHECKING, Any, BinaryIO, Iterator, Optional, Union

import structlog

from reclog.core.codec import decode, parse_entry_header, parse_frame_header
from reclog.core.constants import (
    DEFAULT_BUFFER_SIZE,
    DEFAULT_MAX_BUFFER_CAPACITY,
    NEWLINE,
    NEWLINE_BYTE,
    READ_CHUNK_SIZE,
    RECORD_SEPARATOR,
)
from reclog.core.errors import (
    DecodeError,
    FramingModeError,
    ReaderStateError,
    TruncatedRecordError,
)
from reclog.core.models import Frame, FramingMode, Record
from reclog.monitoring.metrics import (
    BUFFER_REALLOCATIONS,
    BYTES_READ,
    READ_ERRORS,
    RECORDS_READ,
)

if TYPE_CHECKING:
    from reclog.config.config import RecordLogConfig

logger = structlog.get_logger(__name__)


class RecordReader:
    """
    Incrementally reads records from a binary stream.

    The framing mode must match the one used by the writer; a mismatch is
    not detected.

    The reader owns one ``Record`` and one scratch buffer that are reused on
    every call. A record (or frame payload) returned by a read is only valid
    until the next read; copy what you need to keep. A buffer that grew past
    ``max_buffer_capacity`` for one oversized frame is dropped again as soon
    as a frame fits under the ceiling.

    Offsets are absolute stream positions (``start_offset`` + bytes consumed)
    and match the running totals reported by ``RecordWriter``.

    Usage:
        with RecordReader.open("http.log") as reader:
            for offset, record in reader:
                print(offset, record.get("url"))
    """

    def __init__(
        self,
        stream: BinaryIO,
        framing: Union[FramingMode, str] = FramingMode.SIZE_PREFIX,
        with_timestamps: bool = False,
        max_buffer_capacity: int = DEFAULT_MAX_BUFFER_CAPACITY,
        start_offset: int = 0,
    ) -> None:
        self.framing = FramingMode(framing)
        if with_timestamps and self.framing is FramingMode.SEPARATOR:
            raise FramingModeError("timestamps require size-prefix framing")
        if max_buffer_capacity <= 0:
            raise ValueError("max_buffer_capacity must be positive")

        # separator framing looks one byte ahead for the optional blob newline;
        # streams that can neither peek nor seek back get a buffered wrapper
        if not hasattr(stream, "peek") and not stream.seekable():
            stream = io.BufferedReader(stream)  # type: ignore[arg-type]
        self._stream = stream
        self._owns_stream = False

        self.with_timestamps = with_timestamps
        self.max_buffer_capacity = max_buffer_capacity
        self._buf = bytearray(min(DEFAULT_BUFFER_SIZE, max_buffer_capacity))

        self._record = Record()
        self._frame: Optional[Frame] = None
        self._curr_pos = start_offset
        self._next_pos = start_offset
        self._error: Optional[DecodeError] = None
        self._eof = False

        self._records_counter = RECORDS_READ.labels(framing=self.framing.value)
        self._bytes_counter = BYTES_READ.labels(framing=self.framing.value)

    @classmethod
    def open(
        cls,
        path: Union[str, os.PathLike],
        framing: Union[FramingMode, str] = FramingMode.SIZE_PREFIX,
        with_timestamps: bool = False,
        max_buffer_capacity: int = DEFAULT_MAX_BUFFER_CAPACITY,
    ) -> "RecordReader":
        f = open(path, "rb")
        try:
            reader = cls(
                f,
                framing=framing,
                with_timestamps=with_timestamps,
                max_buffer_capacity=max_buffer_capacity,
            )
        except Exception:
            f.close()
            raise
        reader._owns_stream = True
        return reader

    @classmethod
    def from_config(
        cls, stream: BinaryIO, config: "RecordLogConfig", start_offset: int = 0
    ) -> "RecordReader":
        return cls(
            stream,
            framing=config.framing,
            with_timestamps=config.with_timestamps,
            max_buffer_capacity=config.max_buffer_capacity,
            start_offset=start_offset,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def record(self) -> Record:
        """Record filled by the last successful ``read_record``."""
        return self._record

    @property
    def offset(self) -> int:
        """Offset at which the last read record or frame starts."""
        return self._curr_pos

    @property
    def next_offset(self) -> int:
        """Offset right after everything consumed so far."""
        return self._next_pos

    @property
    def data(self) -> Optional[bytes]:
        """Payload copy of the last frame read with ``read_frame``."""
        return self._frame.data if self._frame is not None else None

    @property
    def name(self) -> str:
        """Name of the last frame read with ``read_frame``."""
        return self._frame.name if self._frame is not None else ""

    @property
    def timestamp(self) -> Optional[datetime]:
        """Timestamp of the last frame, when the reader expects timestamps."""
        return self._frame.timestamp if self._frame is not None else None

    @property
    def buffer_capacity(self) -> int:
        return len(self._buf)

    def read_record(self) -> Optional[Record]:
        """
        Read the next record.

        Returns:
            The reader's reused Record, or None when the stream is exhausted

        Raises:
            DecodeError: Malformed input
            TruncatedRecordError: Stream ended in the middle of a record
            ReaderStateError: A previous read already failed
        """
        if self.framing is FramingMode.SEPARATOR:
            return self._guarded(self._read_separated)
        return self._guarded(self._read_size_prefixed_record)

    def read_frame(self) -> Optional[Frame]:
        """
        Read the next size-prefixed frame without decoding its payload.

        Raises:
            FramingModeError: If the reader uses separator framing
        """
        if self.framing is not FramingMode.SIZE_PREFIX:
            raise FramingModeError("raw frames require size-prefix framing")
        return self._guarded(self._read_frame)

    def read_next(self) -> bool:
        """``read_record`` as a bool; the record is then in ``self.record``."""
        return self.read_record() is not None

    def read_next_data(self) -> bool:
        """``read_frame`` as a bool; payload is then in ``self.data``/``self.name``."""
        return self.read_frame() is not None

    def __iter__(self) -> Iterator[tuple[int, Record]]:
        """Yield ``(offset, record)``; the record object is reused."""
        while True:
            record = self.read_record()
            if record is None:
                return
            yield self._curr_pos, record

    def iter_frames(self) -> Iterator[Frame]:
        while True:
            frame = self.read_frame()
            if frame is None:
                return
            yield frame

    def close(self) -> None:
        if self._owns_stream and not self._stream.closed:
            self._stream.close()

    def __enter__(self) -> "RecordReader":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _guarded(self, read):
        if self._error is not None:
            raise ReaderStateError(
                f"reader failed earlier at offset {self._error.offset}"
            ) from self._error
        if self._eof:
            return None

        start = self._next_pos
        try:
            result = read()
        except DecodeError as exc:
            if exc.offset is None:
                exc.offset = start
            self._error = exc
            kind = "truncated" if isinstance(exc, TruncatedRecordError) else "malformed"
            READ_ERRORS.labels(framing=self.framing.value, kind=kind).inc()
            logger.warning(
                "record_read_failed",
                framing=self.framing.value,
                offset=start,
                kind=kind,
                error=exc.message,
            )
            raise

        if result is None:
            self._eof = True
            return None
        self._records_counter.inc()
        self._bytes_counter.inc(self._next_pos - start)
        return result

    def _read_exact(self, view: memoryview) -> int:
        """Fill ``view`` from the stream; returns bytes read (short only at EOF)."""
        total = 0
        size = len(view)
        while total < size:
            n = self._stream.readinto(view[total:])
            if not n:
                break
            total += n
        return total

    def _reallocate(self, new_capacity: int, keep: int, direction: str) -> None:
        """
        Replace the scratch buffer, copying its first ``keep`` bytes.

        The buffer is replaced, never resized in place, so views handed out
        earlier stay valid (they just see stale data).
        """
        old = self._buf
        self._buf = bytearray(new_capacity)
        if keep:
            self._buf[:keep] = old[:keep]
        BUFFER_REALLOCATIONS.labels(direction=direction).inc()
        logger.debug(
            "reader_buffer_reallocated",
            direction=direction,
            old_capacity=len(old),
            new_capacity=new_capacity,
        )

    def _read_payload(self, size: int, header: bytes) -> memoryview:
        """
        Read ``size`` payload bytes into the scratch buffer.

        The buffer grows at most twofold per step and only after the bytes
        already requested have arrived, so a bogus size in a corrupt header
        fails on the first short read instead of allocating it up front.
        """
        capacity = len(self._buf)
        if capacity > self.max_buffer_capacity and size <= self.max_buffer_capacity:
            self._reallocate(
                max(size, min(DEFAULT_BUFFER_SIZE, self.max_buffer_capacity)),
                0,
                "shrink",
            )

        got = 0
        while got < size:
            capacity = len(self._buf)
            if got == capacity:
                self._reallocate(
                    min(size, max(DEFAULT_BUFFER_SIZE, capacity * 2)), got, "grow"
                )
            end = min(size, len(self._buf))
            got += self._read_exact(memoryview(self._buf)[got:end])
            if got < end:
                raise TruncatedRecordError(
                    f"wanted to read {size} bytes of payload but read {got}", header
                )
        return memoryview(self._buf)[:size]

    def _read_frame(self) -> Optional[Frame]:
        stream = self._stream
        line = stream.readline()
        padding = 0
        # writer pads payloads not ending in a newline, skip that blank line
        if line == NEWLINE:
            padding = 1
            line = stream.readline()
        if not line:
            self._next_pos += padding
            return None
        if line[-1] != NEWLINE_BYTE:
            raise TruncatedRecordError("incomplete frame header", line)

        size, name, timestamp = parse_frame_header(line[:-1], self.with_timestamps)
        view = self._read_payload(size, line)

        self._curr_pos = self._next_pos + padding
        self._next_pos += padding + len(line) + size
        self._frame = Frame(
            offset=self._curr_pos,
            size=size,
            payload=view,
            name=name,
            timestamp=timestamp,
        )
        return self._frame

    def _read_size_prefixed_record(self) -> Optional[Record]:
        frame = self._read_frame()
        if frame is None:
            return None
        record = decode(self._buf, self._record, 0, frame.size)
        record.name = frame.name
        record.timestamp = frame.timestamp
        return record

    def _skip_newline(self) -> bool:
        """Consume the next byte only if it is a newline."""
        stream = self._stream
        if hasattr(stream, "peek"):
            if stream.peek(1)[:1] != NEWLINE:
                return False
            stream.read(1)
            return True
        b = stream.read(1)
        if b == NEWLINE:
            return True
        if b:
            stream.seek(-1, os.SEEK_CUR)
        return False

    def _read_value(self, length: int, header: bytes) -> bytes:
        """Read a long value in bounded chunks, failing on the first short read."""
        chunks = []
        got = 0
        while got < length:
            chunk = self._stream.read(min(length - got, READ_CHUNK_SIZE))
            if not chunk:
                raise TruncatedRecordError(
                    f"wanted to read {length} bytes of value but read {got}", header
                )
            chunks.append(chunk)
            got += len(chunk)
        return b"".join(chunks)

    def _read_separated(self) -> Optional[Record]:
        stream = self._stream
        record = self._record
        record.reset()
        consumed = 0

        while True:
            line = stream.readline()
            if not line:
                if record.entries:
                    raise TruncatedRecordError(
                        f"half-read record with {len(record.entries)} entries "
                        "at end of stream"
                    )
                return None
            consumed += len(line)
            if line[-1] != NEWLINE_BYTE:
                raise TruncatedRecordError("missing newline at end of stream", line)

            line = line[:-1]
            if line == RECORD_SEPARATOR:
                break

            key, value, length = parse_entry_header(line)
            if value is None:
                value = self._read_value(length, line)
                consumed += length
                if self._skip_newline():
                    consumed += 1
            record._append_raw(key, value)

        self._curr_pos = self._next_pos
        self._next_pos += consumed
        return record
