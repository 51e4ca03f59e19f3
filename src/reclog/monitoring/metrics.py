"""Prometheus metrics for record log readers and writers."""

from prometheus_client import (
    Counter,
    generate_latest,
)

# Writer
RECORDS_WRITTEN = Counter(
    "reclog_records_written_total",
    "Number of records or blobs written",
    ["framing"],
)
BYTES_WRITTEN = Counter(
    "reclog_bytes_written_total",
    "Bytes written including frame headers and padding",
    ["framing"],
)

# Reader
RECORDS_READ = Counter(
    "reclog_records_read_total",
    "Number of records or blobs read",
    ["framing"],
)
BYTES_READ = Counter(
    "reclog_bytes_read_total",
    "Bytes consumed from the stream including frame headers and padding",
    ["framing"],
)
READ_ERRORS = Counter(
    "reclog_read_errors_total",
    "Reads that failed on malformed or truncated input",
    ["framing", "kind"],
)
BUFFER_REALLOCATIONS = Counter(
    "reclog_reader_buffer_reallocations_total",
    "Reader scratch buffer grown or shrunk back under the capacity ceiling",
    ["direction"],
)

__all__ = [
    "RECORDS_WRITTEN",
    "BYTES_WRITTEN",
    "RECORDS_READ",
    "BYTES_READ",
    "READ_ERRORS",
    "BUFFER_REALLOCATIONS",
    "generate_latest",
]
