"""
app/domain package marker.
"""

from app.domain.sales import (
    CanonicalSalesRecord,
    CustomerType,
    FilterCriteria,
    SalesChannel,
    ShippingStatus,
    SortConfig,
    ViewState,
)

__all__ = [
    "CanonicalSalesRecord",
    "CustomerType",
    "FilterCriteria",
    "SalesChannel",
    "ShippingStatus",
    "SortConfig",
    "ViewState",
]
