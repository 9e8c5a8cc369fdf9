# Copyright (c) Syntropy Systems
"""Tests for ptrend database operations."""

import sqlite3
from pathlib import Path

import pytest

from ptrend.db import (
    build_matrix,
    create_test,
    get_connection,
    get_label_series,
    get_request_statistics,
    get_test,
    get_tests,
    get_wpt_series,
    store_load_test,
    store_wpt_test,
)
from ptrend.errors import DuplicateDescription
from ptrend.models.report import ABSENT
from ptrend.models.stats import WptMetrics
from ptrend.stats import aggregate


class TestTestOperations:
    """Tests for test (run) CRUD operations."""

    def test_create_test(self, db_connection: sqlite3.Connection) -> None:
        test_id = create_test(db_connection, "baseline", "jmeter")

        assert test_id == 1

        test = get_test(db_connection, test_id)
        assert test is not None
        assert test.description == "baseline"
        assert test.type_id == 1
        assert test.type_name == "load test"
        assert test.created_at is not None

    def test_duplicate_description(self, db_connection: sqlite3.Connection) -> None:
        _ = create_test(db_connection, "baseline", "jmeter")

        with pytest.raises(DuplicateDescription):
            _ = create_test(db_connection, "baseline", "wpt")

    def test_unknown_type(self, db_connection: sqlite3.Connection) -> None:
        with pytest.raises(ValueError, match="Test type"):
            _ = create_test(db_connection, "baseline", "gatling")

    def test_get_missing_test(self, db_connection: sqlite3.Connection) -> None:
        assert get_test(db_connection, 99) is None

    def test_tests_in_creation_order_by_type(self, db_connection: sqlite3.Connection) -> None:
        _ = create_test(db_connection, "b", "jmeter")
        _ = create_test(db_connection, "page", "wpt")
        _ = create_test(db_connection, "a", "jmeter")

        assert [t.description for t in get_tests(db_connection, "jmeter")] == ["b", "a"]
        assert [t.description for t in get_tests(db_connection, "wpt")] == ["page"]


class TestLoadTestStorage:
    """Tests for storing and reading load-test statistics."""

    def test_store_and_read(self, db_connection: sqlite3.Connection) -> None:
        records = [aggregate([10, 20], label="Login"), aggregate([5], label="Home")]

        test_id = store_load_test(db_connection, "run 1", records)

        stored = get_request_statistics(db_connection, test_id)
        assert [r.label for r in stored] == ["Home", "Login"]
        assert stored[1] == records[0]

    def test_duplicate_rolls_back(self, db_connection: sqlite3.Connection) -> None:
        """Test that a rejected run leaves no statistics behind."""
        _ = store_load_test(db_connection, "run 1", [aggregate([1], label="A")])

        with pytest.raises(DuplicateDescription):
            _ = store_load_test(db_connection, "run 1", [aggregate([2], label="B")])

        count = db_connection.execute(
            "SELECT COUNT(*) FROM request_statistics"
        ).fetchone()[0]
        assert count == 1
        assert len(get_tests(db_connection)) == 1

    def test_locked_database_error_is_kept(
        self, db_connection: sqlite3.Connection, ptrend_project: Path
    ) -> None:
        """Test that a failed BEGIN reports the lock, not a rollback error."""
        writer = get_connection(ptrend_project / ".ptrend" / "ptrend.db")
        _ = writer.execute("BEGIN IMMEDIATE")
        _ = db_connection.execute("PRAGMA busy_timeout=0")
        try:
            with pytest.raises(sqlite3.OperationalError, match="locked"):
                _ = store_load_test(db_connection, "run 1", [aggregate([1], label="A")])
        finally:
            _ = writer.execute("ROLLBACK")
            writer.close()

        assert get_tests(db_connection) == []

    def test_label_series_grouped_in_run_order(
        self, db_connection: sqlite3.Connection
    ) -> None:
        _ = store_load_test(db_connection, "r1", [aggregate([5], label="L")])
        _ = store_load_test(db_connection, "r2", [aggregate([7], label="Other")])
        _ = store_load_test(db_connection, "r3", [aggregate([9], label="L")])

        series = {s.label: s for s in get_label_series(db_connection)}

        assert series["L"].descriptions == ["r1", "r3"]
        assert series["L"].values["average"] == [5.0, 9.0]
        assert series["L"].values["samples"] == [1, 1]
        assert series["Other"].descriptions == ["r2"]

    def test_build_matrix(self, db_connection: sqlite3.Connection) -> None:
        """Test the full path from stored runs to an aligned matrix."""
        _ = store_load_test(db_connection, "A", [aggregate([5], label="L")])
        _ = store_load_test(
            db_connection,
            "B",
            [aggregate([1], label="M")],
        )
        _ = store_load_test(db_connection, "C", [aggregate([9], label="L")])

        matrix = build_matrix(db_connection, "jmeter")

        assert matrix.run_descriptions == ["A", "B", "C"]
        assert matrix.rows["L"].column("average") == [5.0, ABSENT, 9.0]
        assert matrix.rows["M"].column("median") == [ABSENT, 1.0, ABSENT]
        assert matrix.errors == []

    def test_build_matrix_empty(self, db_connection: sqlite3.Connection) -> None:
        matrix = build_matrix(db_connection, "jmeter")
        assert matrix.run_descriptions == []
        assert matrix.rows == {}


class TestWptStorage:
    """Tests for WebPageTest storage."""

    def test_store_and_series(self, db_connection: sqlite3.Connection) -> None:
        views = {
            "avg": WptMetrics(load_time=2100.0),
            "std": WptMetrics(load_time=100.0),
            "med": WptMetrics(load_time=2000.0, first_paint=800.0),
        }
        _ = store_wpt_test(db_connection, "page (Dulles)", views)

        series = {s.label: s for s in get_wpt_series(db_connection, "med")}

        assert series["load_time"].descriptions == ["page (Dulles)"]
        assert series["load_time"].values["med"] == [2000.0]
        assert series["first_paint"].values["med"] == [800.0]

    def test_build_wpt_matrix(self, db_connection: sqlite3.Connection) -> None:
        _ = store_wpt_test(db_connection, "one", {"avg": WptMetrics(load_time=1.0)})
        _ = store_wpt_test(db_connection, "two", {"avg": WptMetrics(load_time=3.0)})

        matrix = build_matrix(db_connection, "wpt", "avg")

        assert matrix.metrics == ["avg"]
        assert matrix.rows["load_time"].column("avg") == [1.0, 3.0]

    def test_unknown_kind(self, db_connection: sqlite3.Connection) -> None:
        with pytest.raises(ValueError, match="WebPageTest kind"):
            _ = get_wpt_series(db_connection, "p99")
