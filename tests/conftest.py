import io
import sys
from pathlib import Path

import pytest

# Ensure src/ is on sys.path for local test runs without installation
PROJECT_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from reclog.core.models import Record  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: fast unit tests")
    config.addinivalue_line(
        "markers",
        "integration: tests that touch the filesystem or run the CLI end to end",
    )
    config.addinivalue_line("markers", "slow: slow-running tests")


@pytest.fixture
def http_record() -> Record:
    """Record with short, long, binary and empty values."""
    rec = Record()
    rec.append(
        "url", "https://example.com/index.html",
        "status", "200",
        "body", "<html>\n<body>hello</body>\n</html>\n",
        "bin", b"\x00\x01\xff",
        "empty", b"",
    )
    return rec


@pytest.fixture
def sample_records() -> list[Record]:
    records = []
    for i in range(5):
        rec = Record(name=f"rec-{i}" if i % 2 == 0 else "")
        rec.append("id", str(i), "payload", "x" * (i * 60))
        records.append(rec)
    return records


@pytest.fixture
def buf() -> io.BytesIO:
    return io.BytesIO()
