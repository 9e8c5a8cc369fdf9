# Copyright (c) Syntropy Systems
"""WebPageTest result file decoding."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import Field, ValidationError

from ptrend.errors import IngestError
from ptrend.models.base import PtrendBaseModel
from ptrend.models.stats import WptMetrics

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class WptView(PtrendBaseModel):
    """A summary block; only the first (uncached) view is tracked."""

    first_view: WptMetrics = Field(default_factory=WptMetrics, alias="firstView")


class WptData(PtrendBaseModel):
    id: str
    location: str
    average: WptView = Field(default_factory=WptView)
    standard_deviation: WptView = Field(
        default_factory=WptView, alias="standardDeviation"
    )
    median: WptView = Field(default_factory=WptView)


class WptDocument(PtrendBaseModel):
    """Top-level WebPageTest JSON result body."""

    data: WptData

    @property
    def description(self) -> str:
        return f"{self.data.id} ({self.data.location})"

    def views(self) -> dict[str, WptMetrics]:
        """Summary views keyed by the stored kind name."""
        return {
            "avg": self.data.average.first_view,
            "std": self.data.standard_deviation.first_view,
            "med": self.data.median.first_view,
        }


def parse_wpt(payload: str | bytes) -> WptDocument:
    """Decode a WebPageTest JSON document.

    Raises IngestError if the body is not JSON or lacks the test id or
    location.
    """
    try:
        return WptDocument.model_validate_json(payload)
    except ValidationError as e:
        msg = f"Invalid WebPageTest result: {e}"
        raise IngestError(msg) from e


def read_wpt(path: Path) -> WptDocument:
    try:
        payload = path.read_bytes()
    except OSError as e:
        msg = f"Cannot read {path}: {e}"
        raise IngestError(msg) from e

    document = parse_wpt(payload)
    logger.debug("Read WebPageTest result %s from %s", document.description, path)
    return document
