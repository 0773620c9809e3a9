"""
app/schemas/sales.py

Request and response schemas for sales endpoints.
"""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field


class SalesRecordResponse(BaseModel):
    """
    API response model for one canonical sales record.
    """

    id: str
    date: dt.date
    product_name: str
    product_id: str
    category: str
    quantity: int = Field(..., ge=1)
    unit_price: float
    revenue: float
    cost_price: float
    profit: float
    profitability: float
    discount: float = Field(..., ge=0, le=1)
    vat: float
    margin: float
    customer_type: str
    region: str
    sales_channel: str
    shipping_status: str
    year: int


class SalesUploadSummaryResponse(BaseModel):
    """
    API response model for one ingestion batch.
    """

    files: int = Field(..., ge=0)
    rows_read: int = Field(..., ge=0)
    rows_discarded: int = Field(..., ge=0)
    records_added: int = Field(..., ge=0)
    first_id: str | None = None
    last_id: str | None = None


class FilterState(BaseModel):
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    region: str | None = None
    category: str | None = None
    customer_type: str | None = None


class SortState(BaseModel):
    key: str | None = None
    direction: str | None = None


class SalesRecordListResponse(BaseModel):
    count: int = Field(..., ge=0)
    filters: FilterState
    sort: SortState
    records: list[SalesRecordResponse] = Field(default_factory=list)


class MonthlyTrendResponse(BaseModel):
    month: str
    sales: int
    revenue: float


class ProductSalesResponse(BaseModel):
    name: str
    sales: int
    revenue: float


class RegionShareResponse(BaseModel):
    region: str
    sales: float
    percentage: float


class ABCItemResponse(BaseModel):
    product_name: str
    revenue: float
    percentage: float
    cumulative_percentage: float
    category: str


class XYZItemResponse(BaseModel):
    product_name: str
    coefficient_variation: float = Field(..., ge=0)
    category: str
    demand_stability: str


class ABCXYZItemResponse(BaseModel):
    product_name: str
    abc_category: str
    xyz_category: str
    combined_category: str
    revenue: float
    coefficient_variation: float
    strategy: str
    priority: str


class SegmentPlaybookResponse(BaseModel):
    combined_category: str
    title: str
    reasons: list[str]
    recommendations: list[str]
    risks: list[str]
    kpis: list[str]


class ABCXYZDetailResponse(ABCXYZItemResponse):
    playbook: SegmentPlaybookResponse


class ABCXYZMatrixCellResponse(BaseModel):
    abc_category: str
    xyz_category: str
    combined_category: str
    count: int = Field(..., ge=0)
    revenue: float


class ABCXYZAnalysisResponse(BaseModel):
    """
    Filtered ABC-XYZ items with playbooks; the matrix covers every item.
    """

    count: int
    items: list[ABCXYZDetailResponse]
    matrix: list[ABCXYZMatrixCellResponse]


class FactorResponse(BaseModel):
    factor: str
    impact: float
    description: str
    trend: str


class StructuralItemResponse(BaseModel):
    category: str
    value: float
    percentage: float
    change: float | None = Field(
        default=None,
        description="Percentage change against the baseline period; null without a baseline.",
    )


class StructuralAnalysisResponse(BaseModel):
    by_category: list[StructuralItemResponse] = Field(default_factory=list)
    by_region: list[StructuralItemResponse] = Field(default_factory=list)
    by_channel: list[StructuralItemResponse] = Field(default_factory=list)


class SalesAnalyticsResponse(BaseModel):
    """
    API response model for an analytics snapshot.
    """

    total_revenue: float
    total_sales: int = Field(..., ge=0)
    average_check: float
    liquidity: float = Field(..., ge=0, le=100)
    monthly_trend: list[MonthlyTrendResponse]
    top_products: list[ProductSalesResponse]
    region_analysis: list[RegionShareResponse]
    abc_analysis: list[ABCItemResponse]
    xyz_analysis: list[XYZItemResponse]
    abc_xyz_analysis: list[ABCXYZItemResponse]
    abc_xyz_matrix: list[ABCXYZMatrixCellResponse]
    factor_analysis: list[FactorResponse]
    structural_analysis: StructuralAnalysisResponse


class ForecastPointResponse(BaseModel):
    value: float
    growth: float


class RevenueForecastResponse(BaseModel):
    next_month: ForecastPointResponse
    next_quarter: ForecastPointResponse
