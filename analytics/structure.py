"""
analytics/structure.py

Revenue structure by category, region and sales channel.

``change`` is the period-over-period percentage against a caller-supplied
baseline record set:

    change = (value - prior_value) / prior_value * 100

It is None when no baseline is given or the group had no prior revenue.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass, field
from typing import Any

from analytics.base import BaseSalesAnalyzer, revenue_share
from app.domain.sales import CanonicalSalesRecord

GroupKey = Callable[[CanonicalSalesRecord], str]

_DIMENSIONS: dict[str, GroupKey] = {
    "by_category": lambda record: record.category,
    "by_region": lambda record: record.region,
    "by_channel": lambda record: record.sales_channel,
}


@dataclass(frozen=True)
class StructuralItem:
    category: str
    value: float
    percentage: float
    change: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class StructuralBreakdown:
    by_category: list[StructuralItem] = field(default_factory=list)
    by_region: list[StructuralItem] = field(default_factory=list)
    by_channel: list[StructuralItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "by_category": [item.to_dict() for item in self.by_category],
            "by_region": [item.to_dict() for item in self.by_region],
            "by_channel": [item.to_dict() for item in self.by_channel],
        }


def _revenue_by(records: Sequence[CanonicalSalesRecord], key: GroupKey) -> dict[str, float]:
    totals: dict[str, float] = {}
    for record in records:
        group = key(record)
        totals[group] = totals.get(group, 0.0) + record.revenue
    return totals


def period_change(current: float, prior: float | None) -> float | None:
    if not prior:
        return None
    return (current - prior) / prior * 100


class StructuralAnalyzer(BaseSalesAnalyzer):
    def analyze(
        self,
        records: Sequence[CanonicalSalesRecord],
        baseline: Sequence[CanonicalSalesRecord] | None = None,
    ) -> StructuralBreakdown:
        if not records:
            return StructuralBreakdown()

        total = sum(record.revenue for record in records)
        groups: dict[str, list[StructuralItem]] = {}
        for dimension, key in _DIMENSIONS.items():
            prior = _revenue_by(baseline, key) if baseline is not None else {}
            groups[dimension] = [
                StructuralItem(
                    category=name,
                    value=value,
                    percentage=revenue_share(value, total),
                    change=period_change(value, prior.get(name)),
                )
                for name, value in _revenue_by(records, key).items()
            ]
        return StructuralBreakdown(**groups)
