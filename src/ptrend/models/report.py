# Copyright (c) Syntropy Systems
"""Alignment input and output containers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Union

from typing_extensions import TypeAlias

from .stats import StatisticRecord

if TYPE_CHECKING:
    from ptrend.errors import InconsistentRunOrder


class _Absent(Enum):
    """Marker for a run that recorded nothing for a label."""

    ABSENT = "absent"

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent.ABSENT
Cell: TypeAlias = Union[float, _Absent]


def is_absent(cell: object) -> bool:
    return cell is ABSENT


@dataclass
class LabelSeries:
    """Per-label values for the runs that recorded the label.

    ``descriptions`` is in ascending run order and every list in ``values``
    is parallel to it.
    """

    label: str
    descriptions: list[str] = field(default_factory=list)
    values: dict[str, list[float]] = field(default_factory=dict)

    def append(self, description: str, metrics: dict[str, float]) -> None:
        self.descriptions.append(description)
        for name, value in metrics.items():
            self.values.setdefault(name, []).append(value)


@dataclass
class AlignedRow:
    """One label with a full-length cell vector per metric."""

    label: str
    cells: dict[str, list[Cell]] = field(default_factory=dict)

    def column(self, metric: str) -> list[Cell]:
        return self.cells[metric]

    def records(self) -> list[StatisticRecord | _Absent]:
        """Rebuild per-run load-test records, ``ABSENT`` where nothing was stored."""
        if "samples" not in self.cells:
            msg = f"Row {self.label!r} does not carry load-test statistics"
            raise ValueError(msg)
        width = len(self.cells["samples"])
        out: list[StatisticRecord | _Absent] = []
        for i in range(width):
            if is_absent(self.cells["samples"][i]):
                out.append(ABSENT)
                continue
            out.append(
                StatisticRecord(
                    label=self.label,
                    samples=int(self.cells["samples"][i]),
                    average=float(self.cells["average"][i]),
                    median=float(self.cells["median"][i]),
                    perc90=float(self.cells["perc90"][i]),
                    perc95=float(self.cells["perc95"][i]),
                    min=int(self.cells["min"][i]),
                    max=int(self.cells["max"][i]),
                )
            )
        return out


@dataclass
class AlignedMatrix:
    """Dense label x run matrix.

    ``rows`` is keyed by label and carries no ordering guarantee; callers
    that need a stable order sort by label.
    """

    run_descriptions: list[str]
    metrics: list[str]
    rows: dict[str, AlignedRow] = field(default_factory=dict)
    errors: list[InconsistentRunOrder] = field(default_factory=list)

    @property
    def width(self) -> int:
        return len(self.run_descriptions)

    def sorted_rows(self) -> list[AlignedRow]:
        return [self.rows[label] for label in sorted(self.rows)]
