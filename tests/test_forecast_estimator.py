"""
tests/test_forecast_estimator.py

Pytest tests for ForecastEstimator.
"""

from __future__ import annotations

from datetime import date
from typing import Callable, Sequence

import pytest

from analytics.abc import ABCItem
from analytics.engine import AnalyticsEngine
from analytics.summary import MONTH_NAMES, MonthlyTrendPoint
from analytics.xyz import XYZItem
from app.config import AnalyticsSettings
from app.domain.sales import CanonicalSalesRecord
from forecast.base import ForecastPoint, RevenueForecast
from forecast.estimator import ForecastEstimator, clamp_growth, trend_growth


def _trend(revenues: Sequence[float]) -> list[MonthlyTrendPoint]:
    padded = list(revenues) + [0.0] * (12 - len(revenues))
    return [
        MonthlyTrendPoint(month=name, sales=1 if value else 0, revenue=value)
        for name, value in zip(MONTH_NAMES, padded)
    ]


def _abc(*categories: str) -> list[ABCItem]:
    return [
        ABCItem(product_name=f"p{i}", revenue=1.0, percentage=0.0, cumulative_percentage=0.0, category=category)
        for i, category in enumerate(categories)
    ]


def _xyz(*categories: str) -> list[XYZItem]:
    return [
        XYZItem(product_name=f"p{i}", coefficient_variation=0.0, category=category, demand_stability="")
        for i, category in enumerate(categories)
    ]


@pytest.fixture()
def estimator() -> ForecastEstimator:
    return ForecastEstimator()


class TestTrendGrowth:
    def test_no_earlier_months_is_flat(self) -> None:
        assert trend_growth([100.0, 200.0, 300.0]) == 0.0

    def test_recent_against_earlier(self) -> None:
        assert trend_growth([100.0, 100.0, 150.0, 150.0, 150.0]) == pytest.approx(50.0)

    @pytest.mark.parametrize(("rate", "expected"), [(-12.0, 0.0), (7.5, 7.5), (900.0, 25.0)])
    def test_clamp(self, rate: float, expected: float) -> None:
        assert clamp_growth(rate) == expected


class TestForecastEstimator:
    def test_no_records_is_zero(self, estimator: ForecastEstimator) -> None:
        forecast = estimator.estimate(monthly_trend=_trend([]), abc=[], xyz=[], total_revenue=0.0, record_count=0)

        assert forecast == RevenueForecast()
        assert forecast.to_dict() == {
            "next_month": {"value": 0.0, "growth": 0.0},
            "next_quarter": {"value": 0.0, "growth": 0.0},
        }

    def test_fallback_without_positive_months(self, estimator: ForecastEstimator) -> None:
        forecast = estimator.estimate(
            monthly_trend=_trend([]),
            abc=_abc("A"),
            xyz=_xyz("X"),
            total_revenue=500.0,
            record_count=2,
        )

        assert forecast.next_month == ForecastPoint(value=pytest.approx(50.0), growth=5.0)
        assert forecast.next_quarter == ForecastPoint(value=pytest.approx(150.0), growth=8.0)

    def test_spike_is_clamped_to_maximum(self, estimator: ForecastEstimator) -> None:
        revenues = [100.0, 100.0, 100.0, 1000.0, 1000.0, 1000.0]

        forecast = estimator.estimate(
            monthly_trend=_trend(revenues),
            abc=_abc("A", "C"),
            xyz=_xyz("Z", "Z"),
            total_revenue=sum(revenues),
            record_count=6,
        )

        assert forecast.next_month.growth == pytest.approx(25.0)
        assert forecast.next_month.value == pytest.approx(550.0 * 1.25)
        assert forecast.next_quarter.growth == pytest.approx(20.0)
        assert forecast.next_quarter.value == pytest.approx(550.0 * 3 * 1.2)

    def test_decline_is_clamped_to_zero(self, estimator: ForecastEstimator) -> None:
        forecast = estimator.estimate(
            monthly_trend=_trend([1000.0, 1000.0, 10.0, 10.0, 10.0]),
            abc=_abc("C"),
            xyz=_xyz("Z"),
            total_revenue=2030.0,
            record_count=5,
        )

        assert forecast.next_month.growth == 0.0
        assert forecast.next_month.value == pytest.approx(406.0)

    def test_quality_and_stability_bonuses(self, estimator: ForecastEstimator) -> None:
        forecast = estimator.estimate(
            monthly_trend=_trend([100.0, 200.0]),
            abc=_abc("A", "B"),
            xyz=_xyz("X", "Z"),
            total_revenue=300.0,
            record_count=2,
        )

        # 1/2 * 5 + 1/2 * 3
        assert forecast.next_month.growth == pytest.approx(4.0)
        assert forecast.next_month.value == pytest.approx(150.0 * 1.04)
        assert forecast.next_quarter.growth == pytest.approx(3.2)
        assert forecast.next_quarter.value == pytest.approx(450.0 * 1.032)

    def test_forecast_from_snapshot(
        self,
        estimator: ForecastEstimator,
        make_record: Callable[..., CanonicalSalesRecord],
    ) -> None:
        records = [
            make_record(product_name="Widget", revenue=200.0, quantity=2, date=date(2024, 1, 1)),
            make_record(product_name="Widget", revenue=200.0, quantity=2, date=date(2024, 2, 1)),
        ]
        snapshot = AnalyticsEngine(AnalyticsSettings()).build_snapshot(records)

        forecast = estimator.forecast(snapshot)

        # single product holds all revenue: C and X, no earlier months
        assert forecast.next_month.growth == pytest.approx(3.0)
        assert forecast.next_month.value == pytest.approx(206.0)
        assert forecast.next_quarter.growth == pytest.approx(2.4)
