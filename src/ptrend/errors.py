# Copyright (c) Syntropy Systems
"""Exception types raised by ptrend."""

from __future__ import annotations


class PtrendError(Exception):
    """Base class for all ptrend errors."""


class ConfigError(PtrendError):
    """Invalid value in .ptrend/config.yaml or on the command line."""


class IngestError(PtrendError):
    """Input file could not be decoded at all."""


class EmptySampleSet(PtrendError):
    """A label had no retained samples in a run."""

    def __init__(self, label: str = "") -> None:
        self.label = label
        super().__init__(f"No samples to aggregate for label {label!r}")


class MalformedSample(PtrendError):
    """A duration value could not be parsed as a non-negative integer."""

    def __init__(self, value: str, line: int | None = None) -> None:
        self.value = value
        self.line = line
        where = f" on line {line}" if line is not None else ""
        super().__init__(f"Malformed duration {value!r}{where}")


class InconsistentRunOrder(PtrendError):
    """A label's observed runs do not embed into the canonical run order."""

    def __init__(self, label: str, description: str, reason: str = "not a known run") -> None:
        self.label = label
        self.description = description
        self.reason = reason
        super().__init__(f"Label {label!r}: run {description!r} is {reason}")


class DuplicateDescription(PtrendError):
    """A run with the same description is already stored."""

    def __init__(self, description: str) -> None:
        self.description = description
        super().__init__(f"Provided test description is not unique: {description!r}")
