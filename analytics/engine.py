"""
analytics/engine.py

Builds a complete analytics snapshot for one filtered record set.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from analytics.abc import ABCAnalyzer, ABCItem
from analytics.abc_xyz import ABCXYZClassifier, ABCXYZItem, ABCXYZMatrixCell, abc_xyz_matrix
from analytics.factors import FactorAnalyzer, FactorItem
from analytics.playbook import PlaybookBuilder, SegmentPlaybook
from analytics.structure import StructuralAnalyzer, StructuralBreakdown
from analytics.summary import SalesSummary, summarize
from analytics.xyz import XYZAnalyzer, XYZItem
from app.config import AnalyticsSettings, get_analytics_settings
from app.domain.sales import CanonicalSalesRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """
    Derived view of a record set; recomputed on demand, never persisted.
    """

    summary: SalesSummary = field(default_factory=SalesSummary)
    abc: list[ABCItem] = field(default_factory=list)
    xyz: list[XYZItem] = field(default_factory=list)
    abc_xyz: list[ABCXYZItem] = field(default_factory=list)
    matrix: list[ABCXYZMatrixCell] = field(default_factory=list)
    factors: list[FactorItem] = field(default_factory=list)
    structure: StructuralBreakdown = field(default_factory=StructuralBreakdown)

    @property
    def record_count(self) -> int:
        return self.summary.total_sales

    def to_dict(self) -> dict[str, Any]:
        summary = self.summary
        return {
            "total_revenue": summary.total_revenue,
            "total_sales": summary.total_sales,
            "average_check": summary.average_check,
            "liquidity": summary.liquidity,
            "monthly_trend": [point.to_dict() for point in summary.monthly_trend],
            "top_products": [product.to_dict() for product in summary.top_products],
            "region_analysis": [region.to_dict() for region in summary.region_analysis],
            "abc_analysis": [item.to_dict() for item in self.abc],
            "xyz_analysis": [item.to_dict() for item in self.xyz],
            "abc_xyz_analysis": [item.to_dict() for item in self.abc_xyz],
            "abc_xyz_matrix": [cell.to_dict() for cell in self.matrix],
            "factor_analysis": [item.to_dict() for item in self.factors],
            "structural_analysis": self.structure.to_dict(),
        }


class AnalyticsEngine:
    """
    Runs every analyzer over the same record set.
    """

    def __init__(self, settings: AnalyticsSettings | None = None) -> None:
        self._settings = settings or AnalyticsSettings()
        self._abc = ABCAnalyzer(
            a_threshold=self._settings.abc_a_threshold,
            b_threshold=self._settings.abc_b_threshold,
        )
        self._xyz = XYZAnalyzer(
            x_threshold=self._settings.xyz_x_threshold,
            y_threshold=self._settings.xyz_y_threshold,
        )
        self._abc_xyz = ABCXYZClassifier(
            ax_critical_revenue=self._settings.ax_critical_revenue,
            ay_critical_revenue=self._settings.ay_critical_revenue,
            az_high_revenue=self._settings.az_high_revenue,
            az_mid_revenue=self._settings.az_mid_revenue,
        )
        self._playbooks = PlaybookBuilder(
            az_high_revenue=self._settings.az_high_revenue,
            az_mid_revenue=self._settings.az_mid_revenue,
        )
        self._factors = FactorAnalyzer()
        self._structure = StructuralAnalyzer()

    @property
    def settings(self) -> AnalyticsSettings:
        return self._settings

    def build_snapshot(
        self,
        records: Sequence[CanonicalSalesRecord],
        baseline: Sequence[CanonicalSalesRecord] | None = None,
    ) -> AnalyticsSnapshot:
        """
        Compute summary, ABC, XYZ, ABC-XYZ (with its matrix), factor and
        structural analyses.

        *baseline* is the prior-period record set used for structural
        ``change`` values; without it those values are None.
        """

        abc = self._abc.analyze(records)
        xyz = self._xyz.analyze(records)
        abc_xyz = self._abc_xyz.classify(abc, xyz)
        snapshot = AnalyticsSnapshot(
            summary=summarize(records, liquidity_threshold=self._settings.liquidity_threshold),
            abc=abc,
            xyz=xyz,
            abc_xyz=abc_xyz,
            matrix=abc_xyz_matrix(abc_xyz),
            factors=self._factors.analyze(records),
            structure=self._structure.analyze(records, baseline),
        )
        logger.debug(
            "Built analytics snapshot records=%d products=%d baseline=%s",
            len(records),
            len(abc),
            baseline is not None,
        )
        return snapshot

    def playbooks(self, items: Sequence[ABCXYZItem]) -> dict[str, SegmentPlaybook]:
        """
        Segment playbooks for classified items, keyed by product name.
        """

        return self._playbooks.build_all(items)


@lru_cache(maxsize=1)
def get_analytics_engine() -> AnalyticsEngine:
    return AnalyticsEngine(get_analytics_settings())
