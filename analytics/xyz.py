"""
analytics/xyz.py

XYZ (demand variability) classification.

Quantities are bucketed into 12 calendar months taken from ``record.date``.
The coefficient of variation uses the population standard deviation over
non-zero buckets only:

    cv = std(non_zero) / mean(non_zero) * 100

A product without any non-zero bucket gets cv = 100 and category Z.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np

from analytics.base import BaseSalesAnalyzer
from app.domain.sales import CanonicalSalesRecord

DEMAND_STABILITY: dict[str, str] = {
    "X": "Стабильный спрос",
    "Y": "Сезонный спрос",
    "Z": "Нерегулярный спрос",
}

_NO_DEMAND_CV = 100.0


@dataclass(frozen=True)
class XYZItem:
    product_name: str
    coefficient_variation: float
    category: str
    demand_stability: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def monthly_quantities(records: Sequence[CanonicalSalesRecord]) -> dict[str, np.ndarray]:
    """
    Group quantities into a 12-bucket array per product, January first.
    """

    buckets: dict[str, np.ndarray] = {}
    for record in records:
        months = buckets.setdefault(record.product_name, np.zeros(12, dtype=float))
        months[record.date.month - 1] += record.quantity
    return buckets


def coefficient_of_variation(values: np.ndarray) -> float:
    non_zero = values[values > 0]
    if non_zero.size == 0:
        return _NO_DEMAND_CV
    mean = float(non_zero.mean())
    if mean <= 0:
        return _NO_DEMAND_CV
    return float(non_zero.std()) / mean * 100


class XYZAnalyzer(BaseSalesAnalyzer):
    def __init__(self, *, x_threshold: float = 15.0, y_threshold: float = 35.0) -> None:
        self._x_threshold = x_threshold
        self._y_threshold = y_threshold

    def analyze(self, records: Sequence[CanonicalSalesRecord]) -> list[XYZItem]:
        items: list[XYZItem] = []
        for product_name, months in monthly_quantities(records).items():
            cv = coefficient_of_variation(months)
            category = self._category(cv) if np.any(months > 0) else "Z"
            items.append(
                XYZItem(
                    product_name=product_name,
                    coefficient_variation=cv,
                    category=category,
                    demand_stability=DEMAND_STABILITY[category],
                )
            )
        return items

    def _category(self, cv: float) -> str:
        if cv <= self._x_threshold:
            return "X"
        if cv <= self._y_threshold:
            return "Y"
        return "Z"
