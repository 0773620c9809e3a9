"""
analytics/base.py

Abstract base class for record-set analyzers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from app.domain.sales import CanonicalSalesRecord


class BaseSalesAnalyzer(ABC):
    """
    Contract for analyzers over one filtered record set.

    Implementations group records into per-key accumulators and then
    transform them. No I/O and no state carried between calls; an empty
    record set yields an empty or neutral result.
    """

    @abstractmethod
    def analyze(self, records: Sequence[CanonicalSalesRecord]) -> Any:
        """
        Compute the analysis for *records*.
        """


def revenue_share(value: float, total: float) -> float:
    """Percentage of *total*; 0 when total is not positive."""
    if total <= 0:
        return 0.0
    return value / total * 100
