"""
analytics/abc.py

ABC (revenue concentration) classification.

Formulas
--------
revenue(product)         = sum(record.revenue) grouped by product_name
percentage               = revenue / total_revenue * 100
cumulative_percentage    = running sum of percentage, revenue descending

Category
--------
A  cumulative <= a_threshold
B  cumulative <= b_threshold
C  otherwise

Products with equal revenue keep their first-appearance order and share
the category of the first product of their revenue tier.
A zero total revenue yields 0 percentages (every product is A).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any

from analytics.base import BaseSalesAnalyzer, revenue_share
from app.domain.sales import CanonicalSalesRecord


@dataclass(frozen=True)
class ABCItem:
    product_name: str
    revenue: float
    percentage: float
    cumulative_percentage: float
    category: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ABCAnalyzer(BaseSalesAnalyzer):
    def __init__(self, *, a_threshold: float = 80.0, b_threshold: float = 95.0) -> None:
        self._a_threshold = a_threshold
        self._b_threshold = b_threshold

    def analyze(self, records: Sequence[CanonicalSalesRecord]) -> list[ABCItem]:
        if not records:
            return []

        revenue_by_product: dict[str, float] = {}
        for record in records:
            revenue_by_product[record.product_name] = (
                revenue_by_product.get(record.product_name, 0.0) + record.revenue
            )

        ranked = sorted(revenue_by_product.items(), key=lambda item: -item[1])
        total = sum(revenue for _, revenue in ranked)

        items: list[ABCItem] = []
        running = 0.0
        group_revenue: float | None = None
        group_category = "C"
        for product_name, revenue in ranked:
            running += revenue
            cumulative = revenue_share(running, total)
            if revenue != group_revenue:
                group_revenue = revenue
                group_category = self._category(cumulative)
            items.append(
                ABCItem(
                    product_name=product_name,
                    revenue=revenue,
                    percentage=revenue_share(revenue, total),
                    cumulative_percentage=cumulative,
                    category=group_category,
                )
            )
        return items

    def _category(self, cumulative: float) -> str:
        if cumulative <= self._a_threshold:
            return "A"
        if cumulative <= self._b_threshold:
            return "B"
        return "C"
