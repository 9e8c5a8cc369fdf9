# Copyright (c) Syntropy Systems
"""Tests for cross-run alignment."""

import pytest

from ptrend.align import align_label, align_series, run_positions
from ptrend.errors import InconsistentRunOrder
from ptrend.models.report import ABSENT, LabelSeries, is_absent
from ptrend.models.stats import LOAD_TEST_METRICS
from ptrend.stats import aggregate


def _series(label: str, runs: list[str], values: list[float], metric: str = "average") -> LabelSeries:
    return LabelSeries(label=label, descriptions=list(runs), values={metric: list(values)})


class TestAlignLabel:
    """Tests for aligning a single label."""

    def test_gap_in_middle(self) -> None:
        """Test that a run missing the label gets an absent marker in place."""
        row = align_label(_series("L", ["A", "C"], [5, 9]), ["A", "B", "C"])
        assert row.column("average") == [5, ABSENT, 9]

    def test_present_everywhere(self) -> None:
        row = align_label(_series("L", ["A", "B", "C"], [1, 2, 3]), ["A", "B", "C"])
        assert row.column("average") == [1, 2, 3]
        assert not any(is_absent(c) for c in row.column("average"))

    def test_missing_head_and_tail(self) -> None:
        row = align_label(_series("L", ["B"], [7]), ["A", "B", "C", "D"])
        assert row.column("average") == [ABSENT, 7, ABSENT, ABSENT]

    def test_only_last_run(self) -> None:
        row = align_label(_series("L", ["D"], [4]), ["A", "B", "C", "D"])
        assert row.column("average") == [ABSENT, ABSENT, ABSENT, 4]

    def test_no_runs_recorded(self) -> None:
        row = align_label(_series("L", [], []), ["A", "B"])
        assert row.column("average") == [ABSENT, ABSENT]

    def test_zero_is_not_absent(self) -> None:
        """Test that a recorded zero stays distinguishable from no data."""
        row = align_label(_series("L", ["A"], [0]), ["A", "B"])
        cells = row.column("average")
        assert cells[0] == 0
        assert not is_absent(cells[0])
        assert is_absent(cells[1])

    def test_every_metric_aligned(self) -> None:
        series = LabelSeries(label="L")
        series.append("A", {"average": 1.0, "max": 2.0})
        series.append("C", {"average": 3.0, "max": 4.0})

        row = align_label(series, ["A", "B", "C"])

        assert row.column("average") == [1.0, ABSENT, 3.0]
        assert row.column("max") == [2.0, ABSENT, 4.0]

    def test_unknown_run(self) -> None:
        """Test that a run outside the canonical list is reported, not dropped."""
        with pytest.raises(InconsistentRunOrder) as exc_info:
            _ = align_label(_series("L", ["A", "X"], [1, 2]), ["A", "B"])

        assert exc_info.value.label == "L"
        assert exc_info.value.description == "X"

    def test_out_of_order(self) -> None:
        with pytest.raises(InconsistentRunOrder):
            _ = align_label(_series("L", ["C", "A"], [1, 2]), ["A", "B", "C"])

    def test_duplicate_run(self) -> None:
        with pytest.raises(InconsistentRunOrder):
            _ = align_label(_series("L", ["A", "A"], [1, 2]), ["A", "B"])

    def test_value_count_mismatch(self) -> None:
        with pytest.raises(InconsistentRunOrder):
            _ = align_label(_series("L", ["A", "B"], [1]), ["A", "B"])

    def test_duplicate_canonical_description_first_wins(self) -> None:
        assert run_positions(["A", "B", "A"]) == {"A": 0, "B": 1}


class TestAlignSeries:
    """Tests for aligning a whole result set."""

    def test_rows_cover_all_labels(self) -> None:
        canonical = ["r1", "r2", "r3"]
        matrix = align_series(
            [
                _series("Login", ["r1", "r2", "r3"], [10, 11, 12]),
                _series("Search", ["r2"], [50]),
                _series("Logout", ["r1", "r3"], [1, 2]),
            ],
            canonical,
            ["average"],
        )

        assert matrix.run_descriptions == canonical
        assert set(matrix.rows) == {"Login", "Search", "Logout"}
        for row in matrix.rows.values():
            assert len(row.column("average")) == 3
        assert matrix.rows["Search"].column("average") == [ABSENT, 50, ABSENT]
        assert [r.label for r in matrix.sorted_rows()] == ["Login", "Logout", "Search"]
        assert matrix.errors == []

    def test_bad_label_does_not_stop_others(self) -> None:
        """Test that one inconsistent label is reported while others proceed."""
        matrix = align_series(
            [
                _series("Good", ["A", "B"], [1, 2]),
                _series("Bad", ["A", "Z"], [1, 2]),
            ],
            ["A", "B"],
            ["average"],
        )

        assert list(matrix.rows) == ["Good"]
        assert len(matrix.errors) == 1
        assert matrix.errors[0].label == "Bad"
        assert matrix.errors[0].description == "Z"

    def test_missing_metric_filled(self) -> None:
        matrix = align_series([_series("L", ["A"], [1])], ["A", "B"], ["average", "max"])
        assert matrix.rows["L"].column("max") == [ABSENT, ABSENT]

    def test_records_round_trip(self) -> None:
        """Test that aligned load-test rows rebuild the stored records verbatim."""
        first = aggregate([10, 20, 30], label="Login")
        third = aggregate([15, 25], label="Login")
        series = LabelSeries(label="Login")
        for description, record in (("A", first), ("C", third)):
            series.append(
                description,
                {name: getattr(record, name) for name in ("samples", *LOAD_TEST_METRICS)},
            )

        matrix = align_series([series], ["A", "B", "C"], ["samples", *LOAD_TEST_METRICS])

        assert matrix.rows["Login"].records() == [first, ABSENT, third]
