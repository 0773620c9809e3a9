"""
app/services/export_service.py

Flat tabular export of sales records and analytics.

Supported datasets:

    records    one row per canonical record (derived fields included)
    monthly    12 named months with record count and revenue
    abc        ABC classification
    xyz        XYZ classification
    abc_xyz    combined category with strategy and priority
    detailed   abc_xyz rows with the segment playbook, lists joined by "; "
    matrix     nine ABC-XYZ cells with product count and revenue
    factors    factor analysis
    structure  revenue structure; ``dimension`` is category, region or channel
    forecast   next month and next quarter projection

Rendering to a file format is left to the caller (see the sales router).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from analytics.engine import AnalyticsEngine, AnalyticsSnapshot, get_analytics_engine
from app.domain.sales import CanonicalSalesRecord
from forecast.estimator import ForecastEstimator

VALID_DATASETS: tuple[str, ...] = (
    "records",
    "monthly",
    "abc",
    "xyz",
    "abc_xyz",
    "detailed",
    "matrix",
    "factors",
    "structure",
    "forecast",
)

_JOIN = "; "

_STRUCTURE_DIMENSIONS: tuple[tuple[str, str], ...] = (
    ("category", "by_category"),
    ("region", "by_region"),
    ("channel", "by_channel"),
)


# ---------------------------------------------------------------------------
# Export result container
# ---------------------------------------------------------------------------


@dataclass
class ExportResult:
    """
    Flat tabular data ready for CSV or JSON serialisation.

    Attributes
    ----------
    rows:   Flat dict per row; values are scalars or None.
    fields: Ordered column names, stable for a given dataset.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)


def _collect_fields(rows: list[dict[str, Any]]) -> list[str]:
    """
    Union of all row keys in first-seen order.
    """
    seen: dict[str, None] = {}
    for row in rows:
        for key in row:
            seen.setdefault(key, None)
    return list(seen)


def _result(rows: list[dict[str, Any]]) -> ExportResult:
    return ExportResult(rows=rows, fields=_collect_fields(rows))


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class SalesExportService:
    """
    Turns records and their analytics snapshot into flat rows.

    Read-only: the caller supplies the (already filtered) record set.
    """

    def __init__(
        self,
        *,
        engine: AnalyticsEngine | None = None,
        estimator: ForecastEstimator | None = None,
    ) -> None:
        self._engine = engine or AnalyticsEngine()
        self._estimator = estimator or ForecastEstimator()

    def export(
        self,
        dataset: str,
        records: Sequence[CanonicalSalesRecord],
        snapshot: AnalyticsSnapshot | None = None,
    ) -> ExportResult:
        """
        Build the flat rows for *dataset*.

        The snapshot is computed from *records* when not supplied.

        Raises
        ------
        ValueError: When *dataset* is not one of ``VALID_DATASETS``.
        """
        if dataset not in VALID_DATASETS:
            raise ValueError(f"Unknown dataset {dataset!r}. Valid: {list(VALID_DATASETS)}")

        if dataset == "records":
            return _result([record.to_dict() for record in records])

        snapshot = snapshot or self._engine.build_snapshot(records)
        handler = getattr(self, f"_export_{dataset}")
        return handler(snapshot)

    # ------------------------------------------------------------------
    # Dataset handlers
    # ------------------------------------------------------------------

    def _export_monthly(self, snapshot: AnalyticsSnapshot) -> ExportResult:
        return _result([point.to_dict() for point in snapshot.summary.monthly_trend])

    def _export_abc(self, snapshot: AnalyticsSnapshot) -> ExportResult:
        return _result([item.to_dict() for item in snapshot.abc])

    def _export_xyz(self, snapshot: AnalyticsSnapshot) -> ExportResult:
        return _result([item.to_dict() for item in snapshot.xyz])

    def _export_abc_xyz(self, snapshot: AnalyticsSnapshot) -> ExportResult:
        return _result([item.to_dict() for item in snapshot.abc_xyz])

    def _export_detailed(self, snapshot: AnalyticsSnapshot) -> ExportResult:
        playbooks = self._engine.playbooks(snapshot.abc_xyz)
        rows: list[dict[str, Any]] = []
        for item in snapshot.abc_xyz:
            playbook = playbooks[item.product_name]
            rows.append(
                {
                    "product_name": item.product_name,
                    "combined_category": item.combined_category,
                    "priority": item.priority,
                    "revenue": item.revenue,
                    "coefficient_variation": item.coefficient_variation,
                    "strategy": item.strategy,
                    "reasons": _JOIN.join(playbook.reasons),
                    "risks": _JOIN.join(playbook.risks),
                    "recommendations": _JOIN.join(playbook.recommendations),
                    "kpis": _JOIN.join(playbook.kpis),
                }
            )
        return _result(rows)

    def _export_matrix(self, snapshot: AnalyticsSnapshot) -> ExportResult:
        return _result([cell.to_dict() for cell in snapshot.matrix])

    def _export_factors(self, snapshot: AnalyticsSnapshot) -> ExportResult:
        return _result([item.to_dict() for item in snapshot.factors])

    def _export_structure(self, snapshot: AnalyticsSnapshot) -> ExportResult:
        rows: list[dict[str, Any]] = []
        for dimension, attribute in _STRUCTURE_DIMENSIONS:
            for item in getattr(snapshot.structure, attribute):
                rows.append({"dimension": dimension, **item.to_dict()})
        return _result(rows)

    def _export_forecast(self, snapshot: AnalyticsSnapshot) -> ExportResult:
        forecast = self._estimator.forecast(snapshot)
        rows = [
            {"horizon": "next_month", "value": forecast.next_month.value, "growth": forecast.next_month.growth},
            {"horizon": "next_quarter", "value": forecast.next_quarter.value, "growth": forecast.next_quarter.growth},
        ]
        return _result(rows)


@lru_cache(maxsize=1)
def get_sales_export_service() -> SalesExportService:
    return SalesExportService(engine=get_analytics_engine())
