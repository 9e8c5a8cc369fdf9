# Copyright (c) Syntropy Systems
"""Pytest fixtures for ptrend tests."""

import os
import sqlite3
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

# Store original cwd at module load time
_original_cwd = Path.cwd()

JMETER_LOG = """timeStamp,elapsed,label,responseCode,success
1527000000000,10,Login,200,true
1527000000100,20,Login,200,true
1527000000200,30,Login,200,true
1527000000300,40,Login,200,true
1527000000400,100,Search,200,true
1527000000500,oops,Search,200,true
1527000000600,5,OPTIONS /api,200,true
"""

WPT_RESULT = """{
  "data": {
    "id": "180612_AB_1",
    "location": "Dulles:Chrome",
    "average": {"firstView": {"loadTime": 2100.5, "firstPaint": 800, "cpu.Idle": 12.5}},
    "standardDeviation": {"firstView": {"loadTime": 110, "firstPaint": 40}},
    "median": {"firstView": {"loadTime": 2000, "firstPaint": 790, "responses_200": 42}}
  }
}
"""


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def ptrend_project(temp_dir: Path) -> Generator[Path, None, None]:
    """Create a temporary ptrend project directory."""
    from ptrend.db import init_db

    ptrend_dir = temp_dir / ".ptrend"
    ptrend_dir.mkdir()

    # Initialize database
    db_path = ptrend_dir / "ptrend.db"
    init_db(db_path)

    # Change to temp directory
    os.chdir(temp_dir)

    yield temp_dir

    # Always return to original cwd
    os.chdir(_original_cwd)


@pytest.fixture
def db_connection(ptrend_project: Path) -> Generator[sqlite3.Connection, None, None]:
    """Get a database connection for the test project."""
    from ptrend.db import get_connection

    db_path = ptrend_project / ".ptrend" / "ptrend.db"
    conn = get_connection(db_path)
    yield conn
    conn.close()


@pytest.fixture
def jmeter_log(temp_dir: Path) -> Path:
    """A small JMeter CSV log with a header, a malformed row and an OPTIONS call."""
    path = temp_dir / "run.csv"
    path.write_text(JMETER_LOG)
    return path


@pytest.fixture
def wpt_result(temp_dir: Path) -> Path:
    """A trimmed WebPageTest JSON result."""
    path = temp_dir / "wpt.json"
    path.write_text(WPT_RESULT)
    return path
