"""
app/api/routers/sales_router.py

Sales upload, record view, analytics, forecast and export endpoints.

Every endpoint is scoped to the caller identity from the ``X-User-Id``
header. Filter query parameters (start_date, end_date, region, category,
customer_type) replace the caller's active filters for that request only;
when none are given the active filters apply.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterator
from datetime import date

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, UploadFile, status
from fastapi.responses import JSONResponse, StreamingResponse

from analytics.abc_xyz import VALID_COMBINED_CATEGORIES, filter_abc_xyz
from analytics.engine import AnalyticsEngine, get_analytics_engine
from app.api.dependencies import get_sales_repository, get_sales_uploads, get_user_id
from app.domain.sales import CanonicalSalesRecord, FilterCriteria, SortConfig
from app.schemas.sales import (
    ABCXYZAnalysisResponse,
    ABCXYZDetailResponse,
    FilterState,
    RevenueForecastResponse,
    SalesAnalyticsResponse,
    SalesRecordListResponse,
    SalesRecordResponse,
    SalesUploadSummaryResponse,
    SortState,
)
from app.services.export_service import ExportResult, SalesExportService, get_sales_export_service
from app.services.sales_ingestion_service import (
    DecodeError,
    SalesIngestionService,
    UploadedSalesFile,
    get_sales_ingestion_service,
)
from db.repositories.errors import AuthRequiredError, RecordIdConflictError, SalesPersistenceError
from db.repositories.sales_repository import SalesRepository
from forecast.estimator import ForecastEstimator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sales", tags=["sales"])

_VALID_FORMATS = frozenset({"csv", "json"})
_SORT_DIRECTIONS = frozenset({"asc", "desc"})
_ABC_CODES = frozenset("ABC")
_XYZ_CODES = frozenset("XYZ")


# ---------------------------------------------------------------------------
# Helpers (no business logic)
# ---------------------------------------------------------------------------


def _request_filters(
    start_date: date | None = Query(default=None, description="Inclusive start date (YYYY-MM-DD)."),
    end_date: date | None = Query(default=None, description="Inclusive end date (YYYY-MM-DD)."),
    region: str | None = Query(default=None, description="Case-insensitive region substring."),
    category: str | None = Query(default=None, description="Case-insensitive category substring."),
    customer_type: str | None = Query(default=None, description="Exact customer type."),
) -> FilterCriteria | None:
    if start_date and end_date and start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must not be later than end_date.",
        )
    criteria = FilterCriteria(
        start_date=start_date,
        end_date=end_date,
        region=region or None,
        category=category or None,
        customer_type=customer_type or None,
    )
    return None if criteria.is_empty() else criteria


def _visible_records(
    repository: SalesRepository,
    user_id: str,
    filters: FilterCriteria | None,
    sort: SortConfig | None = None,
) -> list[CanonicalSalesRecord]:
    try:
        return repository.view(user_id, filters=filters, sort=sort)
    except AuthRequiredError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    except SalesPersistenceError as exc:
        logger.exception("Loading sales records failed user_id=%r", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to load sales records.",
        ) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


def _category_code(name: str, value: str | None, allowed: frozenset[str]) -> str | None:
    if not value:
        return None
    code = value.strip().upper()
    if code not in allowed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {name} {value!r}. Must be one of: {sorted(allowed)}.",
        )
    return code


def _filter_state(criteria: FilterCriteria) -> FilterState:
    return FilterState(
        start_date=criteria.start_date,
        end_date=criteria.end_date,
        region=criteria.region,
        category=criteria.category,
        customer_type=criteria.customer_type,
    )


def _to_csv_streaming(result: ExportResult, filename: str) -> StreamingResponse:
    """Stream *result* as a UTF-8 CSV file download."""

    def _generate() -> Iterator[str]:
        buf = io.StringIO()
        writer = csv.DictWriter(
            buf,
            fieldnames=result.fields,
            extrasaction="ignore",
            restval="",
            lineterminator="\r\n",
        )
        writer.writeheader()
        yield buf.getvalue()

        for row in result.rows:
            buf.seek(0)
            buf.truncate(0)
            writer.writerow({k: ("" if v is None else v) for k, v in row.items()})
            yield buf.getvalue()

    return StreamingResponse(
        content=_generate(),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Row-Count": str(len(result.rows)),
        },
    )


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@router.post("/upload", response_model=SalesUploadSummaryResponse)
def upload_sales_files(
    files: list[UploadFile] = Depends(get_sales_uploads),
    user_id: str = Depends(get_user_id),
    ingestion_service: SalesIngestionService = Depends(get_sales_ingestion_service),
    repository: SalesRepository = Depends(get_sales_repository),
) -> SalesUploadSummaryResponse:
    """
    Decode, normalize and append one batch of sales files.

    A file that cannot be decoded rejects the whole batch.
    """

    uploads: list[UploadedSalesFile] = []
    try:
        for upload in files:
            uploads.append(
                UploadedSalesFile(
                    file_name=upload.filename or "upload",
                    content=upload.file.read(),
                    content_type=upload.content_type,
                )
            )
    finally:
        for upload in files:
            upload.file.close()

    try:
        result = ingestion_service.ingest(uploads)
        appended = repository.append(user_id, result.records)
    except DecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"file_name": exc.file_name, "message": exc.reason},
        ) from exc
    except AuthRequiredError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    except RecordIdConflictError as exc:
        logger.warning("Record ids kept colliding on append user_id=%r", user_id)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Concurrent uploads are in progress; retry the upload.",
        ) from exc
    except SalesPersistenceError as exc:
        logger.exception("Persisting sales records failed user_id=%r", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to persist sales records.",
        ) from exc

    return SalesUploadSummaryResponse(
        files=len(uploads),
        rows_read=result.rows_read,
        rows_discarded=result.rows_discarded,
        records_added=len(appended),
        first_id=appended[0].id if appended else None,
        last_id=appended[-1].id if appended else None,
    )


@router.get("/records", response_model=SalesRecordListResponse)
def list_sales_records(
    filters: FilterCriteria | None = Depends(_request_filters),
    sort_key: str | None = Query(default=None, description="Record field to sort by."),
    sort_direction: str = Query(default="asc", description='"asc" or "desc".'),
    user_id: str = Depends(get_user_id),
    repository: SalesRepository = Depends(get_sales_repository),
) -> SalesRecordListResponse:
    """
    Return the caller's filtered, then sorted, records.
    """

    if sort_direction not in _SORT_DIRECTIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid sort_direction {sort_direction!r}. Must be one of: {sorted(_SORT_DIRECTIONS)}.",
        )
    sort = SortConfig(key=sort_key, direction=sort_direction) if sort_key else None
    records = _visible_records(repository, user_id, filters, sort)

    active_sort = sort or repository.get_sort(user_id)
    return SalesRecordListResponse(
        count=len(records),
        filters=_filter_state(filters or repository.get_filters(user_id)),
        sort=SortState(key=active_sort.key, direction=active_sort.direction),
        records=[SalesRecordResponse(**record.to_dict()) for record in records],
    )


@router.delete("/records", status_code=status.HTTP_204_NO_CONTENT)
def clear_sales_records(
    user_id: str = Depends(get_user_id),
    repository: SalesRepository = Depends(get_sales_repository),
) -> Response:
    try:
        repository.clear(user_id)
    except SalesPersistenceError as exc:
        logger.exception("Clearing sales records failed user_id=%r", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to clear sales records.",
        ) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/view/filters", response_model=FilterState)
def update_active_filters(
    payload: FilterState = Body(...),
    user_id: str = Depends(get_user_id),
    repository: SalesRepository = Depends(get_sales_repository),
) -> FilterState:
    """
    Replace the caller's active filters.
    """

    criteria = repository.update_filters(user_id, **payload.model_dump())
    return _filter_state(criteria)


@router.post("/view/sort/{key}", response_model=SortState)
def toggle_sort(
    key: str,
    user_id: str = Depends(get_user_id),
    repository: SalesRepository = Depends(get_sales_repository),
) -> SortState:
    """
    Advance the sort cycle for *key*: ascending, descending, unsorted.
    """

    try:
        sort = repository.request_sort(user_id, key)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return SortState(key=sort.key, direction=sort.direction)


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------


@router.get("/analytics", response_model=SalesAnalyticsResponse)
def get_sales_analytics(
    filters: FilterCriteria | None = Depends(_request_filters),
    baseline_start: date | None = Query(default=None, description="Baseline period start for structural change."),
    baseline_end: date | None = Query(default=None, description="Baseline period end for structural change."),
    user_id: str = Depends(get_user_id),
    repository: SalesRepository = Depends(get_sales_repository),
    engine: AnalyticsEngine = Depends(get_analytics_engine),
) -> SalesAnalyticsResponse:
    """
    Compute the analytics snapshot over the caller's visible records.

    When a baseline period is given, structural ``change`` values compare
    against records in that period (other filters still apply).
    """

    records = _visible_records(repository, user_id, filters)

    baseline = None
    if baseline_start or baseline_end:
        base_filters = (filters or repository.get_filters(user_id)).merge(
            start_date=baseline_start,
            end_date=baseline_end,
        )
        baseline = _visible_records(repository, user_id, base_filters)

    snapshot = engine.build_snapshot(records, baseline=baseline)
    return SalesAnalyticsResponse(**snapshot.to_dict())


@router.get("/analytics/abc-xyz", response_model=ABCXYZAnalysisResponse)
def get_abc_xyz_analysis(
    filters: FilterCriteria | None = Depends(_request_filters),
    abc_category: str | None = Query(default=None, description="A, B or C."),
    xyz_category: str | None = Query(default=None, description="X, Y or Z."),
    priority: str | None = Query(default=None, description="Exact priority label."),
    combined_category: str | None = Query(default=None, description="Two-letter code such as AX."),
    user_id: str = Depends(get_user_id),
    repository: SalesRepository = Depends(get_sales_repository),
    engine: AnalyticsEngine = Depends(get_analytics_engine),
) -> ABCXYZAnalysisResponse:
    """
    Return ABC-XYZ items with their segment playbooks.

    Category filters are exact and conjunctive. The matrix is computed
    over all items, before filtering.
    """

    abc_category = _category_code("abc_category", abc_category, _ABC_CODES)
    xyz_category = _category_code("xyz_category", xyz_category, _XYZ_CODES)
    combined_category = _category_code("combined_category", combined_category, VALID_COMBINED_CATEGORIES)

    snapshot = engine.build_snapshot(_visible_records(repository, user_id, filters))
    items = filter_abc_xyz(
        snapshot.abc_xyz,
        abc_category=abc_category,
        xyz_category=xyz_category,
        priority=priority or None,
        combined_category=combined_category,
    )
    playbooks = engine.playbooks(items)
    return ABCXYZAnalysisResponse(
        count=len(items),
        items=[
            ABCXYZDetailResponse(**item.to_dict(), playbook=playbooks[item.product_name].to_dict())
            for item in items
        ],
        matrix=[cell.to_dict() for cell in snapshot.matrix],
    )


@router.get("/forecast", response_model=RevenueForecastResponse)
def get_sales_forecast(
    filters: FilterCriteria | None = Depends(_request_filters),
    user_id: str = Depends(get_user_id),
    repository: SalesRepository = Depends(get_sales_repository),
    engine: AnalyticsEngine = Depends(get_analytics_engine),
) -> RevenueForecastResponse:
    records = _visible_records(repository, user_id, filters)
    forecast = ForecastEstimator().forecast(engine.build_snapshot(records))
    return RevenueForecastResponse(**forecast.to_dict())


@router.get("/export/{dataset}", response_model=None)
def export_sales_dataset(
    dataset: str,
    output_format: str = Query(
        default="csv",
        alias="format",
        description='Output format: "csv" (file download) or "json".',
    ),
    filters: FilterCriteria | None = Depends(_request_filters),
    user_id: str = Depends(get_user_id),
    repository: SalesRepository = Depends(get_sales_repository),
    service: SalesExportService = Depends(get_sales_export_service),
) -> StreamingResponse | JSONResponse:
    """
    Export one dataset as a CSV download or a JSON document.
    """

    if output_format not in _VALID_FORMATS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid format {output_format!r}. Must be one of: {sorted(_VALID_FORMATS)}.",
        )

    records = _visible_records(repository, user_id, filters)
    try:
        result = service.export(dataset, records)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    logger.info(
        "Sales export dataset=%r format=%r user_id=%r rows=%d",
        dataset,
        output_format,
        user_id,
        len(result.rows),
    )

    if output_format == "csv":
        return _to_csv_streaming(result, f"{dataset}_export.csv")
    return JSONResponse(
        content={
            "dataset": dataset,
            "rows": len(result.rows),
            "fields": result.fields,
            "data": result.rows,
        }
    )
