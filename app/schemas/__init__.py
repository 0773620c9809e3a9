"""
app/schemas package marker.
"""

from app.schemas.sales import (
    RevenueForecastResponse,
    SalesAnalyticsResponse,
    SalesRecordListResponse,
    SalesRecordResponse,
    SalesUploadSummaryResponse,
)

__all__ = [
    "RevenueForecastResponse",
    "SalesAnalyticsResponse",
    "SalesRecordListResponse",
    "SalesRecordResponse",
    "SalesUploadSummaryResponse",
]
