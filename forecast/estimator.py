"""
forecast/estimator.py

Heuristic next-month / next-quarter revenue projection.

Algorithm
---------
values        = monthly trend revenues > 0, calendar order
avg           = mean(values)
trend         = (mean(last 3) - mean(earlier)) / mean(earlier) * 100
                0 without earlier months, 5 when mean(earlier) <= 0
quality bonus = A products / products * 5
stable bonus  = X products / products * 3
rate          = clamp(trend + bonuses, 0, 25)

next_month    = avg * (1 + rate / 100)                  growth rate
next_quarter  = avg * 3 * (1 + 0.8 * rate / 100)        growth 0.8 * rate

No records gives a zero forecast. Revenue without any positive month falls
back to 10% / 30% of total revenue at 5% / 8% growth.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from analytics.abc import ABCItem
from analytics.summary import MonthlyTrendPoint
from analytics.xyz import XYZItem
from forecast.base import BaseRevenueForecaster, ForecastPoint, RevenueForecast

if TYPE_CHECKING:
    from analytics.engine import AnalyticsSnapshot

MIN_GROWTH_RATE = 0.0
MAX_GROWTH_RATE = 25.0
RECENT_MONTHS = 3
QUARTER_DAMPING = 0.8
QUALITY_BONUS_WEIGHT = 5.0
STABILITY_BONUS_WEIGHT = 3.0
NON_POSITIVE_BASE_GROWTH = 5.0

FALLBACK_MONTH_SHARE = 0.1
FALLBACK_MONTH_GROWTH = 5.0
FALLBACK_QUARTER_SHARE = 0.3
FALLBACK_QUARTER_GROWTH = 8.0


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def trend_growth(monthly_revenue: Sequence[float]) -> float:
    """
    Percentage change of the most recent months against earlier ones.
    """

    recent = monthly_revenue[-RECENT_MONTHS:]
    earlier = monthly_revenue[:-RECENT_MONTHS]
    if not earlier:
        return 0.0
    earlier_avg = _mean(earlier)
    if earlier_avg <= 0:
        return NON_POSITIVE_BASE_GROWTH
    return (_mean(recent) - earlier_avg) / earlier_avg * 100


def clamp_growth(rate: float) -> float:
    return max(MIN_GROWTH_RATE, min(MAX_GROWTH_RATE, rate))


class ForecastEstimator(BaseRevenueForecaster):
    """
    Deterministic revenue projection from monthly trend and ABC/XYZ results.
    """

    def forecast(self, snapshot: AnalyticsSnapshot) -> RevenueForecast:
        return self.estimate(
            monthly_trend=snapshot.summary.monthly_trend,
            abc=snapshot.abc,
            xyz=snapshot.xyz,
            total_revenue=snapshot.summary.total_revenue,
            record_count=snapshot.record_count,
        )

    def estimate(
        self,
        *,
        monthly_trend: Sequence[MonthlyTrendPoint],
        abc: Sequence[ABCItem],
        xyz: Sequence[XYZItem],
        total_revenue: float,
        record_count: int,
    ) -> RevenueForecast:
        if record_count == 0:
            return RevenueForecast()

        revenues = [point.revenue for point in monthly_trend if point.revenue > 0]
        if not revenues:
            return RevenueForecast(
                next_month=ForecastPoint(
                    value=total_revenue * FALLBACK_MONTH_SHARE,
                    growth=FALLBACK_MONTH_GROWTH,
                ),
                next_quarter=ForecastPoint(
                    value=total_revenue * FALLBACK_QUARTER_SHARE,
                    growth=FALLBACK_QUARTER_GROWTH,
                ),
            )

        products = len(abc)
        quality_bonus = 0.0
        stability_bonus = 0.0
        if products:
            quality_bonus = sum(1 for item in abc if item.category == "A") / products * QUALITY_BONUS_WEIGHT
            stability_bonus = sum(1 for item in xyz if item.category == "X") / products * STABILITY_BONUS_WEIGHT

        rate = clamp_growth(trend_growth(revenues) + quality_bonus + stability_bonus)
        average = _mean(revenues)
        quarter_rate = rate * QUARTER_DAMPING

        return RevenueForecast(
            next_month=ForecastPoint(value=average * (1 + rate / 100), growth=rate),
            next_quarter=ForecastPoint(value=average * 3 * (1 + quarter_rate / 100), growth=quarter_rate),
        )
