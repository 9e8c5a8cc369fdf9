# Copyright (c) Syntropy Systems
"""JMeter CSV transaction log decoding."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ptrend.errors import IngestError, MalformedSample

if TYPE_CHECKING:
    import re
    from collections.abc import Iterable, Iterator
    from pathlib import Path

logger = logging.getLogger(__name__)

# Column positions in a JMeter CSV log (timeStamp, elapsed, label, ...)
ELAPSED_COLUMN = 1
LABEL_COLUMN = 2


@dataclass
class SampleSet:
    """Durations collected for one run, keyed by label.

    Lives for a single ingestion call; nothing is shared between runs.
    """

    samples: dict[str, list[int]] = field(default_factory=dict)
    rows: int = 0
    ignored: int = 0
    malformed: int = 0

    def add(self, label: str, duration: int) -> None:
        self.samples.setdefault(label, []).append(duration)

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def sample_count(self) -> int:
        return sum(len(values) for values in self.samples.values())


def normalize_description(description: str) -> str:
    """Strip commas so the description stays a single CSV header cell."""
    return description.replace(",", "").strip()


def parse_duration(value: str, line: int | None = None) -> int:
    """Parse an elapsed-time cell.

    Raises MalformedSample if the value is not a non-negative integer.
    """
    try:
        duration = int(value.strip())
    except ValueError:
        raise MalformedSample(value, line) from None
    if duration < 0:
        raise MalformedSample(value, line)
    return duration


def iter_samples(
    rows: Iterable[list[str]],
    ignore: re.Pattern[str] | None = None,
    sample_set: SampleSet | None = None,
    first_line: int = 1,
    delimiter: str = ",",
) -> Iterator[tuple[str, int]]:
    """Yield (label, duration) for every usable row.

    Ignored labels and malformed rows are counted on ``sample_set`` when one
    is given.
    """
    for line, record in enumerate(rows, start=first_line):
        if sample_set is not None:
            sample_set.rows += 1
        try:
            if len(record) <= LABEL_COLUMN:
                raise MalformedSample(delimiter.join(record), line)
            label = record[LABEL_COLUMN]
            if ignore is not None and ignore.search(label):
                if sample_set is not None:
                    sample_set.ignored += 1
                continue
            duration = parse_duration(record[ELAPSED_COLUMN], line)
        except MalformedSample as exc:
            logger.warning("Skipping sample: %s", exc)
            if sample_set is not None:
                sample_set.malformed += 1
            continue
        yield label, duration


def read_log(
    path: Path,
    sample_set: SampleSet,
    delimiter: str = ",",
    field_names: bool = False,
    ignore: re.Pattern[str] | None = None,
) -> SampleSet:
    """Add every sample of one JMeter log file to ``sample_set``."""
    try:
        with path.open(newline="", encoding="utf-8") as f:
            reader = csv.reader(f, delimiter=delimiter)
            first_line = 1
            if field_names:
                _ = next(reader, None)
                first_line = 2
            for label, duration in iter_samples(
                reader, ignore, sample_set, first_line, delimiter
            ):
                sample_set.add(label, duration)
    except csv.Error as e:
        msg = f"{path}: {e}"
        raise IngestError(msg) from e
    except UnicodeDecodeError as e:
        msg = f"Log is not valid UTF-8 ({path}): {e}"
        raise IngestError(msg) from e
    except OSError as e:
        msg = f"Cannot read {path}: {e}"
        raise IngestError(msg) from e

    logger.debug("Read %s: %d label(s) so far", path, len(sample_set))
    return sample_set


def read_logs(
    paths: Iterable[Path],
    delimiter: str = ",",
    field_names: bool = False,
    ignore: re.Pattern[str] | None = None,
) -> SampleSet:
    """Collect samples from several log files of the same run."""
    sample_set = SampleSet()
    for path in paths:
        _ = read_log(path, sample_set, delimiter, field_names, ignore)
    return sample_set
