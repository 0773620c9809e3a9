"""
tests/conftest.py

Shared record factory for sales tests.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable

import pytest

from app.domain.sales import CanonicalSalesRecord, CustomerType, SalesChannel


def build_record(**overrides: Any) -> CanonicalSalesRecord:
    values: dict[str, Any] = {
        "id": "1",
        "date": date(2024, 3, 15),
        "product_name": "Widget",
        "product_id": "W-1",
        "category": "Tools",
        "region": "Москва",
        "sales_channel": SalesChannel.OFFLINE,
        "customer_type": CustomerType.RETAIL,
        "quantity": 1,
        "unit_price": 100.0,
        "revenue": 100.0,
        "cost_price": 60.0,
        "vat": 20.0,
    }
    values.update(overrides)
    return CanonicalSalesRecord(**values)


@pytest.fixture()
def make_record() -> Callable[..., CanonicalSalesRecord]:
    """Factory for canonical records with overridable defaults."""
    return build_record
