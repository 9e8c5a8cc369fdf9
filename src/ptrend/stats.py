# Copyright (c) Syntropy Systems
"""Per-label summary statistics for one run."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from ptrend.errors import EmptySampleSet
from ptrend.models.stats import StatisticRecord

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

logger = logging.getLogger(__name__)

PERCENTILES = (50, 90, 95)


def round_half_away(value: float, ndigits: int = 2) -> float:
    """Round to ``ndigits`` decimals, halves away from zero.

    Python's ``round`` rounds halves to even, which would report an average
    of 0.125 as 0.12.
    """
    scale = 10**ndigits
    rounded = math.floor(abs(value) * scale + 0.5) / scale
    return math.copysign(rounded, value) if value else 0.0


def percentile(sorted_samples: Sequence[int], perc: int) -> float:
    """Percentile by linear interpolation between closest ranks.

    ``sorted_samples`` must already be in ascending order. The rank
    arithmetic is done on integers so that ranks like 0.95 * 20 land exactly
    on a sample.
    """
    count = len(sorted_samples)
    if count == 0:
        raise EmptySampleSet
    if count == 1:
        return float(sorted_samples[0])

    whole, remainder = divmod(perc * (count - 1), 100)
    ir = whole + 1
    if ir >= count:
        return float(sorted_samples[-1])
    fr = remainder / 100
    lower = sorted_samples[ir - 1]
    upper = sorted_samples[ir]
    return round_half_away(lower + fr * (upper - lower))


def aggregate(samples: Iterable[int], label: str = "") -> StatisticRecord:
    """Compute the six summary statistics for one label.

    Raises EmptySampleSet if there is nothing to aggregate.
    """
    ordered = sorted(samples)
    if not ordered:
        raise EmptySampleSet(label)

    count = len(ordered)
    median, perc90, perc95 = (percentile(ordered, p) for p in PERCENTILES)

    return StatisticRecord(
        label=label,
        samples=count,
        average=round_half_away(sum(ordered) / count),
        median=median,
        perc90=perc90,
        perc95=perc95,
        min=ordered[0],
        max=ordered[-1],
    )


def aggregate_all(
    sample_set: Mapping[str, Sequence[int]],
) -> tuple[list[StatisticRecord], list[str]]:
    """Aggregate every label of one run.

    Labels without samples are skipped and returned separately so one empty
    label does not abort the batch.
    """
    records: list[StatisticRecord] = []
    skipped: list[str] = []

    for label in sorted(sample_set):
        try:
            records.append(aggregate(sample_set[label], label=label))
        except EmptySampleSet:
            logger.warning("Skipping label %r: no samples retained", label)
            skipped.append(label)

    logger.debug("Aggregated %d label(s), skipped %d", len(records), len(skipped))
    return records, skipped
