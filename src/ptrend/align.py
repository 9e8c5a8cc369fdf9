# Copyright (c) Syntropy Systems
"""Align per-label results from many runs into one dense matrix.

Each label arrives as the runs that actually recorded it plus parallel value
lists. Runs that never saw the label are simply missing from those lists, so
the position of every value has to be recovered from its run description
before the rows can be compared column by column.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ptrend.errors import InconsistentRunOrder
from ptrend.models.report import ABSENT, AlignedMatrix, AlignedRow, Cell

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ptrend.models.report import LabelSeries

logger = logging.getLogger(__name__)


def run_positions(canonical: Sequence[str]) -> dict[str, int]:
    """Map each run description to its column.

    Descriptions are unique per test type; if one repeats anyway the first
    occurrence keeps the column.
    """
    positions: dict[str, int] = {}
    for index, description in enumerate(canonical):
        positions.setdefault(description, index)
    return positions


def _observed_positions(
    series: LabelSeries,
    positions: dict[str, int],
) -> list[int]:
    placed: list[int] = []
    for description in series.descriptions:
        index = positions.get(description)
        if index is None:
            raise InconsistentRunOrder(series.label, description)
        if placed and index == placed[-1]:
            raise InconsistentRunOrder(series.label, description, "listed twice")
        if placed and index < placed[-1]:
            raise InconsistentRunOrder(
                series.label, description, "out of canonical order"
            )
        placed.append(index)
    return placed


def align_label(
    series: LabelSeries,
    canonical: Sequence[str],
    positions: dict[str, int] | None = None,
) -> AlignedRow:
    """Spread one label's values over the canonical run columns.

    Every metric vector of the result has exactly ``len(canonical)`` cells;
    runs that did not record the label hold ``ABSENT``.

    Raises InconsistentRunOrder when the observed runs cannot be placed.
    """
    if positions is None:
        positions = run_positions(canonical)

    placed = _observed_positions(series, positions)
    width = len(canonical)

    row = AlignedRow(label=series.label)
    for metric, values in series.values.items():
        if len(values) != len(placed):
            raise InconsistentRunOrder(
                series.label,
                metric,
                f"a metric with {len(values)} value(s) for {len(placed)} run(s)",
            )
        cells: list[Cell] = [ABSENT] * width
        for index, value in zip(placed, values):
            cells[index] = value
        row.cells[metric] = cells

    return row


def align_series(
    series_list: Iterable[LabelSeries],
    canonical: Sequence[str],
    metrics: Sequence[str],
) -> AlignedMatrix:
    """Align every label independently.

    A label that fails alignment is left out of ``rows`` and recorded in
    ``errors``; the remaining labels are unaffected.
    """
    matrix = AlignedMatrix(run_descriptions=list(canonical), metrics=list(metrics))
    positions = run_positions(canonical)

    for series in series_list:
        try:
            row = align_label(series, canonical, positions)
        except InconsistentRunOrder as exc:
            logger.error("Cannot align label %r: %s", series.label, exc)
            matrix.errors.append(exc)
            continue

        for metric in metrics:
            row.cells.setdefault(metric, [ABSENT] * matrix.width)
        matrix.rows[series.label] = row

    logger.debug(
        "Aligned %d label(s) over %d run(s), %d error(s)",
        len(matrix.rows),
        matrix.width,
        len(matrix.errors),
    )
    return matrix
