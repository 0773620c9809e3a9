"""
app/services/sales_ingestion_service.py

Decodes uploaded sales files into raw rows and drives normalization.

Supported inputs are comma-separated text, tab-separated text, Excel
workbooks (.xlsx/.xlsm through openpyxl, legacy .xls through xlrd; every
sheet, first row is the header) and JSON (an array of
objects or a single object). A file that cannot be decoded aborts the
whole batch with ``DecodeError``.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import PurePath
from typing import Any, Callable, Iterable, Sequence

import pandas as pd

from app.config import IngestionSettings, get_analytics_settings, get_ingestion_settings
from app.domain.sales import CanonicalSalesRecord, RawRow
from app.mappers.field_resolver import FieldResolver, is_blank_value
from app.mappers.record_normalizer import RecordNormalizer

logger = logging.getLogger(__name__)

_EXTENSION_FORMATS: dict[str, str] = {
    ".csv": "csv",
    ".tsv": "tsv",
    ".xlsx": "workbook",
    ".xlsm": "workbook",
    ".xls": "legacy_workbook",
    ".json": "json",
}

_CONTENT_TYPE_FORMATS: dict[str, str] = {
    "text/csv": "csv",
    "application/csv": "csv",
    "text/tab-separated-values": "tsv",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "workbook",
    "application/vnd.ms-excel.sheet.macroenabled.12": "workbook",
    "application/vnd.ms-excel": "legacy_workbook",
    "application/json": "json",
}


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


class DecodeError(ValueError):
    """
    Raised when an uploaded file cannot be decoded into rows.
    """

    def __init__(self, file_name: str, message: str) -> None:
        super().__init__(f"{file_name}: {message}")
        self.file_name = file_name
        self.reason = message


@dataclass(frozen=True)
class UploadedSalesFile:
    file_name: str
    content: bytes
    content_type: str | None = None


@dataclass(frozen=True)
class IngestionResult:
    """
    Outcome of one ingestion batch.
    """

    records: list[CanonicalSalesRecord] = field(default_factory=list)
    rows_read: int = 0
    rows_discarded: int = 0

    @property
    def rows_normalized(self) -> int:
        return len(self.records)


def is_empty_row(row: RawRow) -> bool:
    """
    True when every value of *row* is blank (None, NaN, "", "null", "undefined").
    """

    return all(is_blank_value(value) for value in row.values())


def detect_format(upload: UploadedSalesFile) -> str:
    """
    Resolve the decoder name from the file extension, then the MIME type.
    """

    extension = PurePath(upload.file_name or "").suffix.lower()
    if extension in _EXTENSION_FORMATS:
        return _EXTENSION_FORMATS[extension]

    content_type = (upload.content_type or "").split(";", 1)[0].strip().lower()
    if content_type in _CONTENT_TYPE_FORMATS:
        return _CONTENT_TYPE_FORMATS[content_type]

    raise DecodeError(upload.file_name, "Unsupported file format.")


# ---------------------------------------------------------------------------
# Decoders
# ---------------------------------------------------------------------------


def _decode_text(upload: UploadedSalesFile) -> str:
    try:
        return upload.content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise DecodeError(upload.file_name, "Text files must be UTF-8 encoded.") from exc


def _read_delimited(upload: UploadedSalesFile, delimiter: str) -> list[RawRow]:
    text = _decode_text(upload)
    try:
        reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
        header = next(reader, None)
        if not header:
            return []
        columns = [name.strip() for name in header]
        rows: list[RawRow] = []
        for values in reader:
            if not values:
                continue
            rows.append(
                {
                    column: values[position] if position < len(values) else None
                    for position, column in enumerate(columns)
                    if column
                }
            )
    except csv.Error as exc:
        raise DecodeError(upload.file_name, f"Invalid delimited text: {exc}") from exc
    return rows


def _read_csv(upload: UploadedSalesFile) -> list[RawRow]:
    return _read_delimited(upload, ",")


def _read_tsv(upload: UploadedSalesFile) -> list[RawRow]:
    return _read_delimited(upload, "\t")


def _cell_value(value: Any) -> Any:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        return value
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return value


def _read_sheets(upload: UploadedSalesFile, engine: str) -> list[RawRow]:
    try:
        sheets = pd.read_excel(
            io.BytesIO(upload.content),
            sheet_name=None,
            header=None,
            dtype=object,
            engine=engine,
        )
    except Exception as exc:  # noqa: BLE001 - workbook engines raise many unrelated types
        raise DecodeError(upload.file_name, f"Unreadable workbook: {exc}") from exc

    rows: list[RawRow] = []
    for sheet_name, frame in sheets.items():
        if frame.empty:
            continue
        header = [_cell_value(value) for value in frame.iloc[0].tolist()]
        columns = [
            (position, str(name).strip())
            for position, name in enumerate(header)
            if not is_blank_value(name)
        ]
        sheet_rows = 0
        for values in frame.iloc[1:].itertuples(index=False, name=None):
            row = {column: _cell_value(values[position]) for position, column in columns}
            if all(value is None for value in row.values()):
                continue
            rows.append(row)
            sheet_rows += 1
        logger.debug("Decoded sheet=%r rows=%d file=%r", sheet_name, sheet_rows, upload.file_name)
    return rows


def _read_workbook(upload: UploadedSalesFile) -> list[RawRow]:
    return _read_sheets(upload, "openpyxl")


def _read_legacy_workbook(upload: UploadedSalesFile) -> list[RawRow]:
    return _read_sheets(upload, "xlrd")


def _read_json(upload: UploadedSalesFile) -> list[RawRow]:
    try:
        payload = json.loads(_decode_text(upload))
    except json.JSONDecodeError as exc:
        raise DecodeError(upload.file_name, f"Invalid JSON: {exc.msg}") from exc

    items = payload if isinstance(payload, list) else [payload]
    rows: list[RawRow] = []
    for position, item in enumerate(items):
        if not isinstance(item, dict):
            raise DecodeError(
                upload.file_name,
                f"JSON item at position {position} is not an object.",
            )
        rows.append(item)
    return rows


_DECODERS: dict[str, Callable[[UploadedSalesFile], list[RawRow]]] = {
    "csv": _read_csv,
    "tsv": _read_tsv,
    "workbook": _read_workbook,
    "legacy_workbook": _read_legacy_workbook,
    "json": _read_json,
}


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class SalesIngestionService:
    """
    Coordinates file decoding, empty-row filtering and normalization.
    """

    def __init__(
        self,
        *,
        normalizer: RecordNormalizer | None = None,
        settings: IngestionSettings | None = None,
    ) -> None:
        self._settings = settings or IngestionSettings()
        self._normalizer = normalizer or RecordNormalizer()

    def parse_files(self, files: Sequence[UploadedSalesFile]) -> list[RawRow]:
        """
        Decode every file in order and concatenate their rows.
        """

        rows: list[RawRow] = []
        for upload in files:
            if len(upload.content) > self._settings.max_upload_bytes:
                raise DecodeError(
                    upload.file_name,
                    f"File exceeds {self._settings.max_upload_bytes} bytes.",
                )
            file_format = detect_format(upload)
            decoded = _DECODERS[file_format](upload)
            logger.info(
                "Decoded sales file name=%r format=%s rows=%d",
                upload.file_name,
                file_format,
                len(decoded),
            )
            rows.extend(decoded)
        return rows

    def ingest(self, files: Sequence[UploadedSalesFile]) -> IngestionResult:
        """
        Decode, drop blank rows and normalize; records keep file order.
        """

        raw_rows = self.parse_files(files)
        kept = _drop_empty_rows(raw_rows)
        records = self._normalizer.normalize_rows(kept)

        result = IngestionResult(
            records=records,
            rows_read=len(raw_rows),
            rows_discarded=len(raw_rows) - len(kept),
        )
        logger.info(
            "Sales ingestion completed files=%d rows_read=%d rows_discarded=%d records=%d",
            len(files),
            result.rows_read,
            result.rows_discarded,
            result.rows_normalized,
        )
        return result


def _drop_empty_rows(rows: Iterable[RawRow]) -> list[RawRow]:
    return [row for row in rows if not is_empty_row(row)]


@lru_cache(maxsize=1)
def get_sales_ingestion_service() -> SalesIngestionService:
    """
    Build ingestion service from configured settings.
    """

    settings = get_ingestion_settings()
    normalizer = RecordNormalizer(
        resolver=FieldResolver.from_alias_file(settings.field_aliases_path),
        settings=get_analytics_settings(),
        log_samples=settings.log_normalization_samples,
    )
    return SalesIngestionService(normalizer=normalizer, settings=settings)
