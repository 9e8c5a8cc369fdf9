"""
ptrend - Performance trends.

Aggregate per-request latency statistics from test runs and line them up
across runs for comparison.
"""

from ptrend.align import align_label, align_series
from ptrend.models.report import ABSENT
from ptrend.stats import aggregate

__version__ = "0.1.0"
__all__ = ["ABSENT", "aggregate", "align_label", "align_series", "__version__"]
