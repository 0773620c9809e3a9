"""
app/services package marker.
"""

from app.services.export_service import ExportResult, SalesExportService, get_sales_export_service
from app.services.sales_ingestion_service import (
    DecodeError,
    IngestionResult,
    SalesIngestionService,
    UploadedSalesFile,
    get_sales_ingestion_service,
)

__all__ = [
    "DecodeError",
    "ExportResult",
    "IngestionResult",
    "SalesExportService",
    "SalesIngestionService",
    "UploadedSalesFile",
    "get_sales_export_service",
    "get_sales_ingestion_service",
]
