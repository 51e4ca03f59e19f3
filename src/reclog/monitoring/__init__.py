"""
Monitoring utilities for reclog.
"""

from reclog.monitoring.metrics import (
    BUFFER_REALLOCATIONS,
    BYTES_READ,
    BYTES_WRITTEN,
    READ_ERRORS,
    RECORDS_READ,
    RECORDS_WRITTEN,
    generate_latest,
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
