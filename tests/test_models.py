"""Tests for record log data models."""
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from reclog.core.models import (  # noqa: E402
    Entry,
    FramingMode,
    Record,
    RecordIndexEntry,
    ms_to_timestamp,
    timestamp_to_ms,
)


@pytest.mark.unit
def test_append_pairs_in_order():
    rec = Record()
    rec.append("a", "1", "b", b"2")
    rec.append("a", "3")

    assert rec.keys() == ["a", "b", "a"]
    assert rec.entries[1] == Entry("b", b"2")
    assert len(rec) == 3


@pytest.mark.unit
@pytest.mark.parametrize("args", [(), ("a",), ("a", "1", "b")])
def test_append_rejects_zero_or_odd_args(args):
    rec = Record()
    with pytest.raises(ValueError, match="Invalid number of args"):
        rec.append(*args)
    assert len(rec) == 0


@pytest.mark.unit
@pytest.mark.parametrize("key", ["a:b", "line\nbreak"])
def test_append_rejects_bad_keys(key):
    rec = Record()
    with pytest.raises(ValueError, match="Invalid key"):
        rec.append(key, "v")


@pytest.mark.unit
def test_append_is_atomic():
    rec = Record()
    rec.append("ok", "1")
    with pytest.raises(TypeError):
        rec.append("good", "v", "bad", 42)
    assert rec.keys() == ["ok"]


@pytest.mark.unit
def test_get_returns_first_match():
    rec = Record()
    rec.append("k", "first", "k", "second")

    assert rec.get("k") == b"first"
    assert rec.get_str("k") == "first"
    assert rec.get("missing") is None
    assert rec.get_str("missing") is None
    assert rec.to_dict() == {"k": b"first"}


@pytest.mark.unit
def test_reset_keeps_entries_list():
    rec = Record(name="n", timestamp=datetime.now(timezone.utc))
    rec.append("a", "1")
    entries = rec.entries

    rec.reset()

    assert rec.entries is entries
    assert len(rec) == 0
    assert rec.name == ""
    assert rec.timestamp is None


@pytest.mark.unit
def test_record_repr_is_compact():
    rec = Record(name="api")
    rec.append("a", "1")
    assert repr(rec) == "Record(entries=1, name='api')"


@pytest.mark.unit
def test_framing_mode_from_string():
    assert FramingMode("separator") is FramingMode.SEPARATOR
    assert FramingMode("size-prefix") is FramingMode.SIZE_PREFIX
    with pytest.raises(ValueError):
        FramingMode("lines")


@pytest.mark.unit
def test_index_entry_end():
    entry = RecordIndexEntry(offset=10, length=25, name="x")
    assert entry.end == 35


@pytest.mark.unit
def test_timestamp_ms_conversion():
    ts = datetime(2024, 5, 17, 12, 30, 0, 123000, tzinfo=timezone.utc)
    ms = timestamp_to_ms(ts)

    assert ms == 1715949000123
    assert ms_to_timestamp(ms) == ts
    # naive datetimes are treated as UTC
    assert timestamp_to_ms(ts.replace(tzinfo=None)) == ms
