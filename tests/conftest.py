"""Shared test fixtures and utilities."""

import logging
from pathlib import Path
import pytest

from bitrot.store import StateStore


@pytest.fixture(autouse=True)
def reset_bitrot_logging():
    """Drop handlers/levels the CLI installs so tests don't leak logging config."""
    yield
    pkg_logger = logging.getLogger("bitrot")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
    pkg_logger.setLevel(logging.NOTSET)


@pytest.fixture
def root(tmp_path):
    """An empty directory to scan."""
    d = tmp_path / "root"
    d.mkdir()
    return d


@pytest.fixture
def state_dir(tmp_path):
    """State directory outside the scanned root (not yet created)."""
    return tmp_path / "state"


@pytest.fixture
def store(state_dir):
    """StateStore bound to a fresh state directory."""
    s = StateStore(state_dir)
    s.ensure_dir()
    return s


@pytest.fixture
def write_file(root):
    """Factory fixture to write files relative to the scan root."""
    def _write(path: str, content="test content"):
        file_path = root / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            file_path.write_bytes(content)
        else:
            file_path.write_text(content)
        return file_path
    return _write


@pytest.fixture
def test_files(write_file):
    """Create a small tree of common test files."""
    def make_files():
        return {
            "file1.txt": write_file("file1.txt", "content1"),
            "file2.txt": write_file("file2.txt", "content2"),
            "src/main.py": write_file("src/main.py", "print('hello')"),
            "data/data.csv": write_file("data/data.csv", "a,b,c\n1,2,3"),
        }
    return make_files
