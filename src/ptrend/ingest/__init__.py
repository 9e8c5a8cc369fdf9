# Copyright (c) Syntropy Systems
"""Decoders for test result files."""

from ptrend.ingest.jmeter import (
    SampleSet,
    normalize_description,
    parse_duration,
    read_log,
    read_logs,
)
from ptrend.ingest.wpt import WptDocument, parse_wpt, read_wpt

__all__ = [
    "SampleSet",
    "WptDocument",
    "normalize_description",
    "parse_duration",
    "parse_wpt",
    "read_log",
    "read_logs",
    "read_wpt",
]
