"""
tests/test_export_service.py

Pytest tests for SalesExportService.

Coverage
--------
- Every dataset returns stable columns
- Records export carries derived fields
- Detailed export joins playbook lists; matrix export has nine cells
- Structure rows are tagged with their dimension
- Unknown datasets raise ValueError
"""

from __future__ import annotations

from datetime import date
from typing import Callable

import pytest

from analytics.engine import AnalyticsEngine
from app.config import AnalyticsSettings
from app.domain.sales import RECORD_FIELDS, CanonicalSalesRecord, SalesChannel
from app.services.export_service import VALID_DATASETS, SalesExportService


@pytest.fixture()
def service() -> SalesExportService:
    return SalesExportService(engine=AnalyticsEngine(AnalyticsSettings()))


@pytest.fixture()
def records(make_record: Callable[..., CanonicalSalesRecord]) -> list[CanonicalSalesRecord]:
    return [
        make_record(id="1", product_name="Чай", revenue=300.0, date=date(2024, 1, 10)),
        make_record(id="2", product_name="Кофе", revenue=100.0, date=date(2024, 2, 10),
                    sales_channel=SalesChannel.ONLINE, region="Казань"),
    ]


class TestExport:
    def test_records_include_derived_fields(self, service: SalesExportService, records) -> None:
        result = service.export("records", records)

        assert result.fields == list(RECORD_FIELDS)
        assert result.rows[0]["profit"] == pytest.approx(240.0)
        assert result.rows[0]["date"] == "2024-01-10"

    def test_monthly_has_twelve_rows(self, service: SalesExportService, records) -> None:
        result = service.export("monthly", records)

        assert result.fields == ["month", "sales", "revenue"]
        assert len(result.rows) == 12
        assert result.rows[0]["revenue"] == pytest.approx(300.0)

    def test_abc_columns(self, service: SalesExportService, records) -> None:
        result = service.export("abc", records)

        assert result.fields == ["product_name", "revenue", "percentage", "cumulative_percentage", "category"]
        assert [row["product_name"] for row in result.rows] == ["Чай", "Кофе"]

    def test_abc_xyz_columns(self, service: SalesExportService, records) -> None:
        result = service.export("abc_xyz", records)

        assert "strategy" in result.fields
        assert "priority" in result.fields
        assert len(result.rows) == 2

    def test_detailed_rows_carry_the_playbook(self, service: SalesExportService, records) -> None:
        result = service.export("detailed", records)

        assert result.fields == [
            "product_name",
            "combined_category",
            "priority",
            "revenue",
            "coefficient_variation",
            "strategy",
            "reasons",
            "risks",
            "recommendations",
            "kpis",
        ]
        tea = result.rows[0]
        assert tea["product_name"] == "Чай"
        assert tea["combined_category"] == "AX"
        assert tea["recommendations"].startswith("Обеспечить постоянное наличие на складе; ")
        assert tea["kpis"].split("; ")[-1] == "Целевая выручка: 330 ₽"

    def test_matrix_rows(self, service: SalesExportService, records) -> None:
        result = service.export("matrix", records)

        assert result.fields == ["abc_category", "xyz_category", "count", "revenue", "combined_category"]
        assert len(result.rows) == 9
        assert sum(row["count"] for row in result.rows) == 2

    def test_structure_rows_are_tagged(self, service: SalesExportService, records) -> None:
        result = service.export("structure", records)

        assert result.fields[0] == "dimension"
        assert {row["dimension"] for row in result.rows} == {"category", "region", "channel"}
        assert all(row["change"] is None for row in result.rows)

    def test_forecast_rows(self, service: SalesExportService, records) -> None:
        result = service.export("forecast", records)

        assert result.fields == ["horizon", "value", "growth"]
        assert [row["horizon"] for row in result.rows] == ["next_month", "next_quarter"]

    def test_supplied_snapshot_is_used(self, service: SalesExportService, records) -> None:
        snapshot = AnalyticsEngine(AnalyticsSettings()).build_snapshot(records[:1])

        result = service.export("abc", records, snapshot)

        assert [row["product_name"] for row in result.rows] == ["Чай"]

    @pytest.mark.parametrize("dataset", VALID_DATASETS)
    def test_every_dataset_exports_empty_input(self, service: SalesExportService, dataset: str) -> None:
        result = service.export(dataset, [])

        assert isinstance(result.rows, list)
        assert result.fields == (list(result.rows[0]) if result.rows else [])

    def test_unknown_dataset(self, service: SalesExportService, records) -> None:
        with pytest.raises(ValueError):
            service.export("inventory", records)
