"""
app/domain/sales.py

Domain models for canonical sales records and repository view state.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Mapping

RawRow = Mapping[str, Any]


class SalesChannel:
    ONLINE = "Онлайн"
    OFFLINE = "Офлайн"


class CustomerType:
    RETAIL = "розница"
    WHOLESALE = "опт"
    INDIVIDUAL = "физ. лицо"
    CORPORATE = "юр. лицо"


class ShippingStatus:
    SHIPPED = "отправлено"
    PENDING = "ожидание"
    DELIVERED = "доставлено"


NUMERIC_FIELDS: frozenset[str] = frozenset(
    {
        "quantity",
        "unit_price",
        "revenue",
        "cost_price",
        "profit",
        "profitability",
        "discount",
        "vat",
        "margin",
        "year",
    }
)

RECORD_FIELDS: tuple[str, ...] = (
    "id",
    "date",
    "product_name",
    "product_id",
    "category",
    "quantity",
    "unit_price",
    "revenue",
    "cost_price",
    "profit",
    "profitability",
    "discount",
    "vat",
    "margin",
    "customer_type",
    "region",
    "sales_channel",
    "shipping_status",
    "year",
)


@dataclass(frozen=True)
class CanonicalSalesRecord:
    """
    One normalized sales row.

    ``profit``, ``profitability``, ``margin`` and ``year`` are derived on
    access from ``revenue``, ``cost_price`` and ``date``.
    """

    id: str
    date: date
    product_name: str
    product_id: str
    category: str
    region: str
    sales_channel: str
    customer_type: str
    quantity: int
    unit_price: float
    revenue: float
    cost_price: float
    vat: float
    discount: float = 0.0
    shipping_status: str = ShippingStatus.DELIVERED

    @property
    def profit(self) -> float:
        return self.revenue - self.cost_price

    @property
    def profitability(self) -> float:
        if self.revenue == 0:
            return 0.0
        return self.profit / self.revenue * 100

    @property
    def margin(self) -> float:
        return self.profitability

    @property
    def year(self) -> int:
        return self.date.year

    def with_id(self, record_id: str, *, product_id: str | None = None) -> CanonicalSalesRecord:
        """
        Return a copy carrying a repository-assigned id.
        """

        return replace(self, id=record_id, product_id=product_id or self.product_id)

    def field_value(self, name: str) -> Any:
        """
        Return a record attribute by name; derived fields are included.
        """

        if name not in RECORD_FIELDS:
            raise KeyError(name)
        return getattr(self, name)

    def to_dict(self) -> dict[str, Any]:
        """
        Flat mapping used by export.
        """

        payload = {name: getattr(self, name) for name in RECORD_FIELDS}
        payload["date"] = self.date.isoformat()
        return payload


@dataclass(frozen=True)
class FilterCriteria:
    """
    Optional, conjunctive record filters.
    """

    start_date: date | None = None
    end_date: date | None = None
    region: str | None = None
    category: str | None = None
    customer_type: str | None = None

    def merge(self, **changes: Any) -> FilterCriteria:
        unknown = set(changes) - set(self.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown filter fields: {sorted(unknown)}.")
        return replace(self, **changes)

    def is_empty(self) -> bool:
        return not any(
            (self.start_date, self.end_date, self.region, self.category, self.customer_type)
        )

    def matches(self, record: CanonicalSalesRecord) -> bool:
        if self.start_date and record.date < self.start_date:
            return False
        if self.end_date and record.date > self.end_date:
            return False
        if self.region and self.region.lower() not in record.region.lower():
            return False
        if self.category and self.category.lower() not in record.category.lower():
            return False
        if self.customer_type and record.customer_type != self.customer_type:
            return False
        return True


@dataclass(frozen=True)
class SortConfig:
    """
    Sort key and direction; ``key=None`` means insertion order.
    """

    key: str | None = None
    direction: str | None = None

    def toggle(self, key: str) -> SortConfig:
        """
        Cycle ascending -> descending -> unsorted for *key*.
        """

        if self.key == key and self.direction == "asc":
            return SortConfig(key=key, direction="desc")
        if self.key == key and self.direction == "desc":
            return SortConfig()
        return SortConfig(key=key, direction="asc")


@dataclass
class ViewState:
    """
    Per-user filter and sort state exposed to callers.
    """

    filters: FilterCriteria = field(default_factory=FilterCriteria)
    sort: SortConfig = field(default_factory=SortConfig)
