# Copyright (c) Syntropy Systems
"""SQLite database layer with WAL mode and atomic operations."""

from __future__ import annotations

import itertools
import logging
import sqlite3
from typing import TYPE_CHECKING, Optional

from ptrend.align import align_series
from ptrend.errors import DuplicateDescription
from ptrend.models.report import LabelSeries
from ptrend.models.stats import (
    LOAD_TEST_METRICS,
    TEST_TYPE_IDS,
    WPT_KINDS,
    StatisticRecord,
    TestRecord,
    WptMetrics,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from ptrend.models.report import AlignedMatrix

logger = logging.getLogger(__name__)

_WPT_COLUMNS = WptMetrics.columns()

# SQL schema for ptrend database
SCHEMA = f"""
-- Kinds of tests; every report is built from one kind only
CREATE TABLE IF NOT EXISTS test_types (
    type_id INTEGER PRIMARY KEY,
    type_description TEXT NOT NULL
);

INSERT OR IGNORE INTO test_types (type_id, type_description) VALUES (1, 'load test');
INSERT OR IGNORE INTO test_types (type_id, type_description) VALUES (2, 'web page test');

-- Tests table (one row per ingested run, id order is the report column order)
CREATE TABLE IF NOT EXISTS tests (
    test_id INTEGER PRIMARY KEY AUTOINCREMENT,
    description TEXT UNIQUE NOT NULL,
    type_id INTEGER NOT NULL REFERENCES test_types(type_id) ON DELETE CASCADE,
    created_at TEXT DEFAULT (datetime('now'))
);

-- Per-label statistics of load tests
CREATE TABLE IF NOT EXISTS request_statistics (
    request_id INTEGER PRIMARY KEY AUTOINCREMENT,
    test_id INTEGER NOT NULL REFERENCES tests(test_id) ON DELETE CASCADE,
    label TEXT NOT NULL,
    samples INTEGER NOT NULL,
    average REAL NOT NULL,
    median REAL NOT NULL,
    perc90 REAL NOT NULL,
    perc95 REAL NOT NULL,
    min INTEGER NOT NULL,
    max INTEGER NOT NULL
);

-- WebPageTest summary views (average, standard deviation, median)
CREATE TABLE IF NOT EXISTS wpt_statistics (
    wpt_id INTEGER PRIMARY KEY AUTOINCREMENT,
    test_id INTEGER NOT NULL REFERENCES tests(test_id) ON DELETE CASCADE,
    metric TEXT NOT NULL CHECK (metric IN ('avg', 'std', 'med')),
    {", ".join(f"{column} REAL NOT NULL" for column in _WPT_COLUMNS)}
);

-- Indexes for performance
CREATE INDEX IF NOT EXISTS idx_tests_type ON tests(type_id);
CREATE INDEX IF NOT EXISTS idx_request_statistics_label ON request_statistics(label);
CREATE INDEX IF NOT EXISTS idx_request_statistics_test ON request_statistics(test_id);
CREATE INDEX IF NOT EXISTS idx_wpt_statistics_test ON wpt_statistics(test_id);
"""


def get_connection(db_path: Path) -> sqlite3.Connection:
    """
    Get a database connection with proper settings for concurrent access.

    - isolation_level=None for explicit transaction control
    - WAL mode for concurrent readers/writers
    - busy_timeout to wait for locks instead of failing immediately
    - Row factory for dict-like access
    """
    conn = sqlite3.connect(str(db_path), timeout=5.0, isolation_level=None)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Path) -> None:
    """Initialize the database with the schema."""
    conn = get_connection(db_path)
    try:
        conn.executescript(SCHEMA)
    finally:
        conn.close()


def _type_id(test_type: str) -> int:
    try:
        return TEST_TYPE_IDS[test_type]
    except KeyError:
        msg = f"Test type is not one of the following: {list(TEST_TYPE_IDS)}"
        raise ValueError(msg) from None


# --- Test Operations ---

def create_test(conn: sqlite3.Connection, description: str, test_type: str) -> int:
    """Create a new test (run) and return its ID."""
    try:
        cursor = conn.execute(
            "INSERT INTO tests (description, type_id) VALUES (?, ?)",
            (description, _type_id(test_type)),
        )
    except sqlite3.IntegrityError as e:
        if "UNIQUE constraint" in str(e):
            raise DuplicateDescription(description) from e
        raise
    return cursor.lastrowid


def get_test(conn: sqlite3.Connection, test_id: int) -> Optional[TestRecord]:
    """Get a test by ID."""
    row = conn.execute(
        "SELECT * FROM tests WHERE test_id = ?",
        (test_id,),
    ).fetchone()

    if row is None:
        return None

    return TestRecord.model_validate(dict(row))


def get_tests(conn: sqlite3.Connection, test_type: str = "jmeter") -> list[TestRecord]:
    """Get all tests of one type in canonical (creation) order."""
    rows = conn.execute(
        "SELECT * FROM tests WHERE type_id = ? ORDER BY test_id ASC",
        (_type_id(test_type),),
    ).fetchall()
    return [TestRecord.model_validate(dict(row)) for row in rows]


def insert_request_statistics(
    conn: sqlite3.Connection,
    test_id: int,
    records: Iterable[StatisticRecord],
) -> int:
    """Store per-label statistics for a test. Returns the number of rows."""
    cursor = conn.executemany(
        """
        INSERT INTO request_statistics
            (test_id, label, samples, average, median, perc90, perc95, min, max)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        [
            (
                test_id,
                rs.label,
                rs.samples,
                rs.average,
                rs.median,
                rs.perc90,
                rs.perc95,
                rs.min,
                rs.max,
            )
            for rs in records
        ],
    )
    return cursor.rowcount


def insert_wpt_statistics(
    conn: sqlite3.Connection,
    test_id: int,
    kind: str,
    metrics: WptMetrics,
) -> None:
    """Store one WebPageTest summary view for a test."""
    if kind not in WPT_KINDS:
        msg = f"WebPageTest kind is not one of the following: {list(WPT_KINDS)}"
        raise ValueError(msg)
    placeholders = ", ".join("?" for _ in range(len(_WPT_COLUMNS) + 2))
    values = metrics.model_dump()
    conn.execute(
        f"INSERT INTO wpt_statistics (test_id, metric, {', '.join(_WPT_COLUMNS)}) "  # noqa: S608
        f"VALUES ({placeholders})",
        (test_id, kind, *(values[column] for column in _WPT_COLUMNS)),
    )


def store_load_test(
    conn: sqlite3.Connection,
    description: str,
    records: Iterable[StatisticRecord],
) -> int:
    """Atomically create a load test and its statistics. Returns the test ID."""
    conn.execute("BEGIN IMMEDIATE")
    try:
        test_id = create_test(conn, description, "jmeter")
        count = insert_request_statistics(conn, test_id, records)
        conn.execute("COMMIT")
    except Exception:
        conn.execute("ROLLBACK")
        raise

    logger.info("Stored test #%d %r with %d label(s)", test_id, description, count)
    return test_id


def store_wpt_test(
    conn: sqlite3.Connection,
    description: str,
    views: dict[str, WptMetrics],
) -> int:
    """Atomically create a WebPageTest test and its summary views."""
    conn.execute("BEGIN IMMEDIATE")
    try:
        test_id = create_test(conn, description, "wpt")
        for kind, metrics in views.items():
            insert_wpt_statistics(conn, test_id, kind, metrics)
        conn.execute("COMMIT")
    except Exception:
        conn.execute("ROLLBACK")
        raise

    logger.info("Stored WebPageTest #%d %r", test_id, description)
    return test_id


def get_request_statistics(
    conn: sqlite3.Connection,
    test_id: int,
) -> list[StatisticRecord]:
    """Get all label statistics stored for a test, ordered by label."""
    rows = conn.execute(
        """
        SELECT label, samples, average, median, perc90, perc95, min, max
        FROM request_statistics
        WHERE test_id = ?
        ORDER BY label
        """,
        (test_id,),
    ).fetchall()
    return [StatisticRecord.model_validate(dict(row)) for row in rows]


def count_labels(conn: sqlite3.Connection) -> dict[int, int]:
    """Number of stored labels per load test."""
    rows = conn.execute(
        "SELECT test_id, COUNT(*) AS labels FROM request_statistics GROUP BY test_id"
    ).fetchall()
    return {row["test_id"]: row["labels"] for row in rows}


# --- Report Queries ---

def get_label_series(conn: sqlite3.Connection) -> list[LabelSeries]:
    """
    Get every load-test label with the runs that recorded it.

    Rows come back ordered by label and then by test id, so each label's
    runs are already in canonical order when they are grouped.
    """
    rows = conn.execute(
        """
        SELECT r.label, t.description, r.samples, r.average, r.median,
               r.perc90, r.perc95, r.min, r.max
        FROM request_statistics AS r
        JOIN tests AS t ON r.test_id = t.test_id
        WHERE t.type_id = ?
        ORDER BY r.label, t.test_id
        """,
        (TEST_TYPE_IDS["jmeter"],),
    ).fetchall()

    series_list: list[LabelSeries] = []
    for label, group in itertools.groupby(rows, key=lambda row: row["label"]):
        series = LabelSeries(label=label)
        for row in group:
            series.append(
                row["description"],
                {name: row[name] for name in ("samples", *LOAD_TEST_METRICS)},
            )
        series_list.append(series)
    return series_list


def get_wpt_series(conn: sqlite3.Connection, kind: str = "med") -> list[LabelSeries]:
    """Get one series per WebPageTest field for the chosen summary view."""
    if kind not in WPT_KINDS:
        msg = f"WebPageTest kind is not one of the following: {list(WPT_KINDS)}"
        raise ValueError(msg)

    rows = conn.execute(
        """
        SELECT t.description, w.*
        FROM wpt_statistics AS w
        JOIN tests AS t ON w.test_id = t.test_id
        WHERE t.type_id = ? AND w.metric = ?
        ORDER BY t.test_id
        """,
        (TEST_TYPE_IDS["wpt"], kind),
    ).fetchall()

    series_list = [LabelSeries(label=column) for column in _WPT_COLUMNS]
    for row in rows:
        for series in series_list:
            series.append(row["description"], {kind: row[series.label]})
    return [series for series in series_list if series.descriptions]


def build_matrix(
    conn: sqlite3.Connection,
    test_type: str = "jmeter",
    kind: str = "med",
) -> AlignedMatrix:
    """Load one test type from the database and align it."""
    canonical = [test.description for test in get_tests(conn, test_type)]

    if test_type == "wpt":
        return align_series(get_wpt_series(conn, kind), canonical, [kind])

    return align_series(
        get_label_series(conn),
        canonical,
        ["samples", *LOAD_TEST_METRICS],
    )
