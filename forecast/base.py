"""
forecast/base.py

Result types and abstract base class for revenue forecasters.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from analytics.engine import AnalyticsSnapshot


@dataclass(frozen=True)
class ForecastPoint:
    value: float = 0.0
    growth: float = 0.0


@dataclass(frozen=True)
class RevenueForecast:
    next_month: ForecastPoint = field(default_factory=ForecastPoint)
    next_quarter: ForecastPoint = field(default_factory=ForecastPoint)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class BaseRevenueForecaster(ABC):
    """
    Contract for revenue forecaster implementations.

    Subclasses receive an analytics snapshot and must return a
    :class:`RevenueForecast`. No I/O and no side effects are permitted
    inside :meth:`forecast`.
    """

    @abstractmethod
    def forecast(self, snapshot: AnalyticsSnapshot) -> RevenueForecast:
        """
        Project next-month and next-quarter revenue from *snapshot*.
        """
