import pytest

from logwatch.categorizer import CategoryEngine
from logwatch.parsers import parse_line


def _make_line(message: str, level: str = "INFO", tag: str | None = None,
               second: int = 34, counter: int = 188191812) -> str:
    prefix = f"2025/11/04 19:24:{second:02d} {counter} 3ef232c2 [{level} Client 7776]"
    if tag:
        prefix += f" [{tag}]"
    return f"{prefix} {message}"


@pytest.fixture
def make_line():
    """Build a well-formed client log line around a message."""
    return _make_line


@pytest.fixture
def engine():
    return CategoryEngine()


@pytest.fixture
def classify(engine):
    """Parse and classify a raw line in one step."""
    def _classify(raw: str):
        return engine.classify(parse_line(raw))
    return _classify


@pytest.fixture
def log_file(tmp_path):
    """Path to an empty client log file."""
    path = tmp_path / "Client.txt"
    path.write_text("")
    return path
