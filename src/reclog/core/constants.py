"""
Record log format constants.

Short value:   key: value\\n
Long value:    key:+N\\n<N raw bytes>[\\n]
Separator:     ---\\n                  (separator framing only)
Frame header:  SIZE[ MS][ NAME]\\n      (size-prefix framing only)
"""

NEWLINE = b"\n"
KEY_SEPARATOR = b":"

# Tag byte following the key separator
TAG_SHORT = b" "
TAG_LONG = b"+"
TAG_SHORT_BYTE = TAG_SHORT[0]
TAG_LONG_BYTE = TAG_LONG[0]
NEWLINE_BYTE = NEWLINE[0]

# Record terminator used by separator framing
RECORD_SEPARATOR = b"---"
RECORD_SEPARATOR_LINE = RECORD_SEPARATOR + NEWLINE

# Frame header field separator used by size-prefix framing
HEADER_FIELD_SEPARATOR = b" "

# Values longer than this (or non-printable, or empty) use the long form
MAX_SHORT_VALUE_LENGTH = 120

# Printable ASCII range [32, 127) allowed in short values
PRINTABLE_MIN = 32
PRINTABLE_MAX = 127

# Reader scratch buffer sizing
DEFAULT_BUFFER_SIZE = 4 * 1024  # 4 KB
DEFAULT_MAX_BUFFER_CAPACITY = 1024 * 1024  # 1 MB

# Upper bound for a single read of a long value from a stream
READ_CHUNK_SIZE = 64 * 1024  # 64 KB
