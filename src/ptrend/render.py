# Copyright (c) Syntropy Systems
"""Render an aligned matrix as CSV, JSON or an HTML trends report."""
from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from jinja2 import Environment, PackageLoader, select_autoescape
from pydantic import TypeAdapter

from ptrend.models.base import JSONValue
from ptrend.models.report import is_absent
from ptrend.stats import percentile, round_half_away

if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import TextIO

    from ptrend.models.report import AlignedMatrix, AlignedRow, Cell

CSV_CORNER = "Request\\Test"
ABSENT_GLYPH = "-"

METRIC_TITLES: dict[str, str] = {
    "samples": "Samples",
    "average": "Average",
    "median": "Median",
    "perc90": "90 Percentile",
    "perc95": "95 Percentile",
    "min": "Min",
    "max": "Max",
    "avg": "Average",
    "std": "Standard deviation",
    "med": "Median",
}

_REPORT_ADAPTER = TypeAdapter(dict[str, JSONValue])


def format_cell(cell: Cell, absent: str = "") -> str:
    """Format one cell for text output; whole numbers lose the trailing .0."""
    if is_absent(cell):
        return absent
    value = float(cell)
    if value.is_integer():
        return str(int(value))
    return str(value)


def row_median(cells: Sequence[Cell]) -> Optional[float]:
    """Median of the present cells of one row, None if the row is empty."""
    present = sorted(float(c) for c in cells if not is_absent(c))
    if not present:
        return None
    return percentile(present, 50)


def percent_change(value: Cell, baseline: Cell) -> Optional[int]:
    """Rounded percentage change of ``value`` against ``baseline``.

    None when either side is absent or the baseline is zero.
    """
    if is_absent(value) or is_absent(baseline) or float(baseline) == 0:
        return None
    return int(round_half_away((float(value) / float(baseline) - 1) * 100, 0))


@dataclass
class ComparisonCell:
    """A run's value for one label with its change against the baseline run."""

    value: Cell
    change: Optional[int]


def compare_to_baseline(
    row: AlignedRow,
    metric: str,
    baseline: int = 0,
    columns: Sequence[int] | None = None,
) -> list[ComparisonCell]:
    """Compare selected runs of one row against the run at ``baseline``."""
    cells = row.column(metric)
    if not 0 <= baseline < len(cells):
        msg = f"Baseline column {baseline} out of range for {len(cells)} run(s)"
        raise IndexError(msg)
    if columns is None:
        columns = range(len(cells))

    base = cells[baseline]
    return [
        ComparisonCell(
            value=cells[i],
            change=None if i == baseline else percent_change(cells[i], base),
        )
        for i in columns
    ]


# --- CSV ---

def write_csv(
    matrix: AlignedMatrix,
    stream: TextIO,
    metric: str,
    delimiter: str = ",",
) -> int:
    """Write one metric as a label x run table. Returns the number of rows."""
    if metric not in matrix.metrics:
        msg = f"Metric {metric!r} not in report, choose from {matrix.metrics}"
        raise KeyError(msg)

    writer = csv.writer(stream, delimiter=delimiter, lineterminator="\n")
    writer.writerow([CSV_CORNER, *matrix.run_descriptions])

    rows = matrix.sorted_rows()
    for row in rows:
        writer.writerow([row.label, *(format_cell(c) for c in row.column(metric))])
    return len(rows)


# --- JSON ---

def matrix_to_dict(
    matrix: AlignedMatrix,
    absent_value: JSONValue = None,
) -> dict[str, JSONValue]:
    """Plain-data form of the matrix; absent cells become ``absent_value``."""
    results: dict[str, JSONValue] = {}
    for row in matrix.sorted_rows():
        results[row.label] = {
            metric: [absent_value if is_absent(c) else float(c) for c in row.column(metric)]
            for metric in matrix.metrics
        }
    return {
        "tests": list(matrix.run_descriptions),
        "metrics": list(matrix.metrics),
        "results": results,
    }


def matrix_to_json(
    matrix: AlignedMatrix,
    absent_value: JSONValue = None,
    indent: int | None = 2,
) -> str:
    return _REPORT_ADAPTER.dump_json(
        matrix_to_dict(matrix, absent_value), indent=indent
    ).decode("utf-8")


# --- HTML ---

_env = Environment(
    loader=PackageLoader("ptrend", "templates"),
    autoescape=select_autoescape(["html", "j2"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["cell"] = lambda cell: format_cell(cell, ABSENT_GLYPH)


def _html_table(matrix: AlignedMatrix, metric: str) -> list[dict[str, object]]:
    table: list[dict[str, object]] = []
    for row in matrix.sorted_rows():
        cells = row.column(metric)
        median = row_median(cells)
        table.append(
            {
                "label": row.label,
                "cells": [
                    {
                        "value": cell,
                        "high": (
                            median is not None
                            and not is_absent(cell)
                            and float(cell) > median
                        ),
                    }
                    for cell in cells
                ],
            }
        )
    return table


def render_html(
    matrix: AlignedMatrix,
    title: str = "Performance Trends Report",
    default_metric: str | None = None,
) -> str:
    """Render the trends report page."""
    metrics = [m for m in matrix.metrics if m != "samples"] or list(matrix.metrics)
    if default_metric not in metrics:
        default_metric = metrics[0] if metrics else None

    template = _env.get_template("report.html.j2")
    return template.render(
        title=title,
        tests=matrix.run_descriptions,
        metrics=[(m, METRIC_TITLES.get(m, m)) for m in metrics],
        default_metric=default_metric,
        tables={m: _html_table(matrix, m) for m in metrics},
        errors=[str(e) for e in matrix.errors],
        generated_at=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
    )
