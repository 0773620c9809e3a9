"""
analytics/factors.py

Four fixed revenue factors over one record set.

Factors
-------
Онлайн продажи             online channel revenue / total revenue * 100
Региональная концентрация  largest region revenue / total revenue * 100
Сезонность                 max monthly revenue / min positive monthly revenue
                           (1 when no month has positive revenue)
Средняя маржинальность     mean of record margins

Seasonality above 2 is tagged negative. An empty record set yields a single
"no data" placeholder.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any

from analytics.base import BaseSalesAnalyzer, revenue_share
from app.domain.sales import CanonicalSalesRecord, SalesChannel

TREND_POSITIVE = "positive"
TREND_NEGATIVE = "negative"
TREND_NEUTRAL = "neutral"

SEASONALITY_NEGATIVE_ABOVE = 2.0


@dataclass(frozen=True)
class FactorItem:
    factor: str
    impact: float
    description: str
    trend: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


NO_DATA_FACTOR = FactorItem(
    factor="Нет данных",
    impact=0.0,
    description="Загрузите данные для анализа",
    trend=TREND_NEUTRAL,
)


def _sum_by(records: Sequence[CanonicalSalesRecord], key) -> dict[Any, float]:
    totals: dict[Any, float] = {}
    for record in records:
        bucket = key(record)
        totals[bucket] = totals.get(bucket, 0.0) + record.revenue
    return totals


def seasonality_ratio(records: Sequence[CanonicalSalesRecord]) -> float:
    monthly = _sum_by(records, lambda record: record.date.month).values()
    positive = [value for value in monthly if value > 0]
    if not positive:
        return 1.0
    return max(monthly) / min(positive)


class FactorAnalyzer(BaseSalesAnalyzer):
    def analyze(self, records: Sequence[CanonicalSalesRecord]) -> list[FactorItem]:
        if not records:
            return [NO_DATA_FACTOR]

        total = sum(record.revenue for record in records)
        by_channel = _sum_by(records, lambda record: record.sales_channel)
        by_region = _sum_by(records, lambda record: record.region)
        seasonality = seasonality_ratio(records)
        average_margin = sum(record.margin for record in records) / len(records)

        return [
            FactorItem(
                factor="Онлайн продажи",
                impact=revenue_share(by_channel.get(SalesChannel.ONLINE, 0.0), total),
                description="Доля онлайн канала в общих продажах",
                trend=TREND_POSITIVE,
            ),
            FactorItem(
                factor="Региональная концентрация",
                impact=revenue_share(max(by_region.values()), total),
                description="Концентрация продаж в ведущем регионе",
                trend=TREND_NEUTRAL,
            ),
            FactorItem(
                factor="Сезонность",
                impact=seasonality,
                description="Коэффициент сезонных колебаний",
                trend=TREND_NEGATIVE if seasonality > SEASONALITY_NEGATIVE_ABOVE else TREND_POSITIVE,
            ),
            FactorItem(
                factor="Средняя маржинальность",
                impact=average_margin,
                description="Средняя маржинальность по всем товарам",
                trend=TREND_POSITIVE,
            ),
        ]
