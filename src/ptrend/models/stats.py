# Copyright (c) Syntropy Systems
"""Pydantic models for stored runs and their statistics."""

from __future__ import annotations

from typing import Optional

from pydantic import Field, model_validator
from typing_extensions import Self

from .base import FrozenModel, PtrendBaseModel

TEST_TYPE_IDS: dict[str, int] = {"jmeter": 1, "wpt": 2}
TEST_TYPE_NAMES: dict[int, str] = {1: "load test", 2: "web page test"}

# Order matters: columns of the CSV export and the JSON report follow it.
LOAD_TEST_METRICS: tuple[str, ...] = (
    "average",
    "median",
    "perc90",
    "perc95",
    "min",
    "max",
)
WPT_KINDS: tuple[str, ...] = ("avg", "std", "med")


class StatisticRecord(FrozenModel):
    """Summary statistics for one label within one run."""

    label: str
    samples: int = Field(ge=1)
    average: float
    median: float
    perc90: float
    perc95: float
    min: int
    max: int

    @model_validator(mode="after")
    def _check_bounds(self) -> Self:
        for name in ("average", "median", "perc90"):
            value = getattr(self, name)
            if not self.min <= value <= self.max:
                msg = f"{name}={value} outside [{self.min}, {self.max}]"
                raise ValueError(msg)
        return self


class TestRecord(PtrendBaseModel):
    """Database test (run) record."""

    __test__ = False

    id: int = Field(alias="test_id")
    description: str
    type_id: int
    created_at: Optional[str] = None

    @property
    def type_name(self) -> str:
        return TEST_TYPE_NAMES.get(self.type_id, "unknown")


class WptMetrics(PtrendBaseModel):
    """One summary view (average, deviation or median) of a WebPageTest result."""

    responses_200: float = 0.0
    bytes_out: float = Field(default=0.0, alias="bytesOut")
    gzip_savings: float = 0.0
    requests_full: float = Field(default=0.0, alias="requestsFull")
    connections: float = 0.0
    bytes_out_doc: float = Field(default=0.0, alias="bytesOutDoc")
    result: float = 0.0
    base_page_ssl_time: float = Field(default=0.0, alias="basePageSSLTime")
    doc_time: float = Field(default=0.0, alias="docTime")
    dom_content_loaded_event_end: float = Field(
        default=0.0, alias="domContentLoadedEventEnd"
    )
    image_savings: float = 0.0
    requests_doc: float = Field(default=0.0, alias="requestsDoc")
    first_text_paint: float = Field(default=0.0, alias="firstTextPaint")
    first_paint: float = Field(default=0.0, alias="firstPaint")
    score_cdn: float = 0.0
    cpu_idle: float = Field(default=0.0, alias="cpu.Idle")
    optimization_checked: float = 0.0
    image_total: float = 0.0
    score_minify: float = 0.0
    gzip_total: float = 0.0
    responses_404: float = 0.0
    load_time: float = Field(default=0.0, alias="loadTime")
    score_combine: float = 0.0
    first_contentful_paint: float = Field(default=0.0, alias="firstContentfulPaint")
    first_layout: float = Field(default=0.0, alias="firstLayout")
    score_etags: float = 0.0

    @classmethod
    def columns(cls) -> list[str]:
        """Database column names, in declaration order."""
        return list(cls.model_fields)
