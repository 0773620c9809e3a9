"""
analytics/summary.py

Summary statistics, monthly trend, top products and region breakdown.

Formulas
--------
total_revenue  = sum(record.revenue)
total_sales    = number of records
average_check  = total_revenue / total_sales            (0 when no records)
liquidity      = records with quantity > threshold / total_sales * 100

The monthly trend always has 12 named months, zero-filled; ``sales`` is
the record count of the month.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from typing import Any

from analytics.base import revenue_share
from app.domain.sales import CanonicalSalesRecord

MONTH_NAMES: tuple[str, ...] = (
    "Январь",
    "Февраль",
    "Март",
    "Апрель",
    "Май",
    "Июнь",
    "Июль",
    "Август",
    "Сентябрь",
    "Октябрь",
    "Ноябрь",
    "Декабрь",
)

TOP_PRODUCTS_LIMIT = 5


@dataclass(frozen=True)
class MonthlyTrendPoint:
    month: str
    sales: int
    revenue: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ProductSales:
    name: str
    sales: int
    revenue: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RegionShare:
    region: str
    sales: float
    percentage: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SalesSummary:
    total_revenue: float = 0.0
    total_sales: int = 0
    average_check: float = 0.0
    liquidity: float = 0.0
    monthly_trend: list[MonthlyTrendPoint] = field(default_factory=list)
    top_products: list[ProductSales] = field(default_factory=list)
    region_analysis: list[RegionShare] = field(default_factory=list)


def monthly_trend(records: Sequence[CanonicalSalesRecord]) -> list[MonthlyTrendPoint]:
    counts = [0] * 12
    revenue = [0.0] * 12
    for record in records:
        month = record.date.month - 1
        counts[month] += 1
        revenue[month] += record.revenue
    return [
        MonthlyTrendPoint(month=name, sales=counts[index], revenue=revenue[index])
        for index, name in enumerate(MONTH_NAMES)
    ]


def top_products(
    records: Sequence[CanonicalSalesRecord],
    limit: int = TOP_PRODUCTS_LIMIT,
) -> list[ProductSales]:
    quantities: dict[str, int] = {}
    revenue: dict[str, float] = {}
    for record in records:
        quantities[record.product_name] = quantities.get(record.product_name, 0) + record.quantity
        revenue[record.product_name] = revenue.get(record.product_name, 0.0) + record.revenue
    ranked = sorted(revenue, key=lambda name: -revenue[name])[:limit]
    return [ProductSales(name=name, sales=quantities[name], revenue=revenue[name]) for name in ranked]


def region_analysis(records: Sequence[CanonicalSalesRecord], total_revenue: float) -> list[RegionShare]:
    revenue: dict[str, float] = {}
    for record in records:
        revenue[record.region] = revenue.get(record.region, 0.0) + record.revenue
    return [
        RegionShare(region=region, sales=value, percentage=revenue_share(value, total_revenue))
        for region, value in revenue.items()
    ]


def summarize(
    records: Sequence[CanonicalSalesRecord],
    *,
    liquidity_threshold: int = 3,
) -> SalesSummary:
    total_revenue = sum(record.revenue for record in records)
    total_sales = len(records)
    liquid = sum(1 for record in records if record.quantity > liquidity_threshold)

    return SalesSummary(
        total_revenue=total_revenue,
        total_sales=total_sales,
        average_check=total_revenue / total_sales if total_sales else 0.0,
        liquidity=liquid / total_sales * 100 if total_sales else 0.0,
        monthly_trend=monthly_trend(records),
        top_products=top_products(records),
        region_analysis=region_analysis(records, total_revenue),
    )
