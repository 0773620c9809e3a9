"""
app/api/dependencies.py

Shared FastAPI dependencies for identity, uploads and services.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import PurePath

from fastapi import File, Header, HTTPException, UploadFile, status

from db.repositories.sales_repository import SalesRepository
from db.repositories.sales_store import SQLAlchemySalesStore

SALES_FILE_EXTENSIONS = {".csv", ".tsv", ".xlsx", ".xlsm", ".xls", ".json"}

SALES_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "text/tab-separated-values",
    "application/json",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel.sheet.macroenabled.12",
    "application/vnd.ms-excel",
}


def get_user_id(x_user_id: str | None = Header(default=None, alias="X-User-Id")) -> str:
    """
    Resolve the caller identity from the ``X-User-Id`` header.
    """

    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id header is required.",
        )
    return user_id


def get_sales_uploads(files: list[UploadFile] = File(...)) -> list[UploadFile]:
    """
    Validate that every uploaded file is a supported sales format.
    """

    if not files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one file is required.",
        )

    for upload in files:
        extension = PurePath((upload.filename or "").strip().lower()).suffix
        content_type = (upload.content_type or "").split(";", 1)[0].strip().lower()
        if extension not in SALES_FILE_EXTENSIONS and content_type not in SALES_CONTENT_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unsupported file {upload.filename!r}. Allowed: CSV, TSV, XLSX, XLS, JSON.",
            )
    return files


@lru_cache(maxsize=1)
def get_sales_repository() -> SalesRepository:
    """
    Process-wide repository backed by the configured database.
    """

    return SalesRepository(SQLAlchemySalesStore())
