"""
app/mappers/record_normalizer.py

Turns one raw sales row into a canonical sales record.

Backfill order for monetary fields
----------------------------------
1. revenue    = unit_price * quantity   (revenue missing or zero)
2. unit_price = revenue / quantity      (unit_price missing or zero)
3. cost_price = revenue * cost_ratio    (cost_price missing or zero)
4. revenue    = revenue_floor           (still zero), then unit_price and
                cost_price are re-derived with the same ratios.

profit, profitability, margin and year are derived by the record itself.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, Mapping

from app.config import AnalyticsSettings, get_analytics_settings
from app.domain.sales import CanonicalSalesRecord, CustomerType, SalesChannel, ShippingStatus
from app.mappers.field_resolver import FieldResolver
from app.validators.value_coercers import parse_date, parse_discount, parse_integer, parse_number

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Без категории"
DEFAULT_REGION = "Не указан"

_CUSTOMER_TYPE_MARKERS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("retail", "розница"), CustomerType.RETAIL),
    (("wholesale", "опт"), CustomerType.WHOLESALE),
    (("individual", "физ", "частное"), CustomerType.INDIVIDUAL),
    (("corporate", "юр", "компания"), CustomerType.CORPORATE),
)

_ONLINE_MARKERS: tuple[str, ...] = ("online", "онлайн", "интернет", "сайт", "web", "веб")


def coerce_customer_type(value: Any) -> str:
    """
    Map free text onto a customer type; first matching marker group wins.
    """

    text = str(value or "").lower()
    for markers, customer_type in _CUSTOMER_TYPE_MARKERS:
        if any(marker in text for marker in markers):
            return customer_type
    return CustomerType.INDIVIDUAL


def coerce_sales_channel(value: Any) -> str:
    text = str(value or "").lower()
    if any(marker in text for marker in _ONLINE_MARKERS):
        return SalesChannel.ONLINE
    return SalesChannel.OFFLINE


def _text(value: Any, default: str) -> str:
    if value is None:
        return default
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip() or default


class RecordNormalizer:
    """
    Resolves, coerces and backfills one raw row at a time.

    Never raises for malformed cells; every field has a default.
    """

    def __init__(
        self,
        *,
        resolver: FieldResolver | None = None,
        settings: AnalyticsSettings | None = None,
        today: date | None = None,
        log_samples: int = 0,
    ) -> None:
        self._resolver = resolver or FieldResolver()
        self._settings = settings or get_analytics_settings()
        self._today = today
        self._log_samples = max(0, log_samples)

    def normalize(self, raw_row: Mapping[str, Any], index: int) -> CanonicalSalesRecord:
        """
        Build the canonical record for the row at position *index* (0-based).
        """

        resolve = self._resolver.resolve
        ordinal = index + 1

        quantity = parse_integer(resolve(raw_row, "quantity"), 1)
        revenue, unit_price, cost_price = self._backfill_amounts(
            revenue=parse_number(resolve(raw_row, "revenue"), 0.0),
            unit_price=parse_number(resolve(raw_row, "unit_price"), 0.0),
            cost_price=parse_number(resolve(raw_row, "cost_price"), 0.0),
            quantity=quantity,
            index=index,
        )

        return CanonicalSalesRecord(
            id=_text(resolve(raw_row, "id"), str(ordinal)),
            date=parse_date(resolve(raw_row, "date"), today=self._today),
            product_name=_text(resolve(raw_row, "product_name"), f"Товар {ordinal}"),
            product_id=_text(resolve(raw_row, "product_id"), str(ordinal)),
            category=_text(resolve(raw_row, "category"), DEFAULT_CATEGORY),
            region=_text(resolve(raw_row, "region"), DEFAULT_REGION),
            sales_channel=coerce_sales_channel(resolve(raw_row, "sales_channel") or SalesChannel.OFFLINE),
            customer_type=coerce_customer_type(resolve(raw_row, "customer_type") or CustomerType.INDIVIDUAL),
            quantity=quantity,
            unit_price=unit_price,
            revenue=revenue,
            cost_price=cost_price,
            vat=parse_number(resolve(raw_row, "vat"), revenue * self._settings.vat_rate),
            discount=parse_discount(resolve(raw_row, "discount")),
            shipping_status=ShippingStatus.DELIVERED,
        )

    def normalize_rows(self, rows: Iterable[Mapping[str, Any]]) -> list[CanonicalSalesRecord]:
        records: list[CanonicalSalesRecord] = []
        for index, row in enumerate(rows):
            record = self.normalize(row, index)
            if index < self._log_samples:
                logger.debug("Normalized row %d: raw=%r record=%r", index + 1, dict(row), record)
            records.append(record)
        logger.info("Normalized %d sales rows", len(records))
        return records

    def _backfill_amounts(
        self,
        *,
        revenue: float,
        unit_price: float,
        cost_price: float,
        quantity: int,
        index: int,
    ) -> tuple[float, float, float]:
        cost_ratio = self._settings.cost_ratio

        if not revenue and unit_price and quantity:
            revenue = unit_price * quantity
        if not unit_price and revenue and quantity:
            unit_price = revenue / quantity
        if not cost_price and revenue:
            cost_price = revenue * cost_ratio

        if not revenue:
            revenue = self._settings.revenue_floor
            logger.debug(
                "Row %d has no usable revenue; applying floor %.2f",
                index + 1,
                revenue,
            )
            if not unit_price:
                unit_price = revenue / quantity
            if not cost_price:
                cost_price = revenue * cost_ratio

        return revenue, unit_price, cost_price
