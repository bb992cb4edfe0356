"""
Shared fixtures for the EAV test suite.
"""

import tempfile
from pathlib import Path

import pytest

from eavdb.persistence.sqlite import connect, init_tables


@pytest.fixture
def data_dir():
    """Create temporary data directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def handle(data_dir):
    """SQLite handle with tables initialised, inside a transaction rolled back at teardown."""
    h = connect(str(Path(data_dir) / "eav.db"), wal_mode=False)
    init_tables(h)
    h.execute("BEGIN")
    yield h
    h.execute("ROLLBACK")
    h.close()
