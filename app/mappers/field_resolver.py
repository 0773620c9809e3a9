"""
app/mappers/field_resolver.py

Alias-driven field resolution for schema-less sales rows.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any, Mapping, Sequence

logger = logging.getLogger(__name__)

CANONICAL_FIELDS: tuple[str, ...] = (
    "id",
    "date",
    "product_name",
    "product_id",
    "category",
    "quantity",
    "unit_price",
    "revenue",
    "cost_price",
    "discount",
    "customer_type",
    "region",
    "sales_channel",
    "vat",
)

# Order matters: the first alias holding a usable value wins.
DEFAULT_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id", "ID", "Id", "номер", "number", "Номер", "Number", "№", "Код записи"),
    "date": (
        "date", "Date", "дата", "Дата", "DATE", "Date_Time", "datetime",
        "Дата продажи", "Дата операции",
    ),
    "product_name": (
        "product_name", "Product_Name", "товар", "Товар", "название", "Название",
        "product", "Product", "name", "Name", "наименование", "Наименование",
        "Product Name", "Товар/услуга", "Наименование товара", "Продукт",
    ),
    "product_id": (
        "product_id", "Product_ID", "артикул", "Артикул", "sku", "SKU",
        "код", "Код", "article", "Article", "Product ID", "Код товара", "Арт.",
    ),
    "category": (
        "category", "Category", "категория", "Категория", "группа", "Группа",
        "тип", "Тип", "class", "Class", "Группа товаров", "Категория товара",
    ),
    "quantity": (
        "quantity", "Quantity", "количество", "Количество", "qty", "Qty",
        "кол_во", "кол-во", "amount", "Amount", "Кол-во", "Объем", "Штук",
    ),
    "unit_price": (
        "unit_price", "Unit_Price", "цена", "Цена", "price", "Price",
        "цена_за_единицу", "цена за ед", "стоимость", "Стоимость",
        "Unit Price", "Цена за единицу", "Стоимость единицы", "Цена за шт",
    ),
    "revenue": (
        "revenue", "Revenue", "выручка", "Выручка", "сумма", "Сумма",
        "total", "Total", "итого", "Итого", "sum", "Sum",
        "Общая сумма", "Итоговая сумма", "Стоимость", "Оборот",
    ),
    "cost_price": (
        "cost_price", "Cost_Price", "себестоимость", "Себестоимость",
        "cost", "Cost", "затраты", "Затраты", "Cost Price", "Закупочная цена",
    ),
    "discount": (
        "discount", "Discount", "скидка", "Скидка", "disc", "Disc",
        "Размер скидки", "Скидка %", "Скидка в %",
    ),
    "customer_type": (
        "customer_type", "Customer_Type", "тип_клиента", "тип клиента",
        "клиент", "Клиент", "customer", "Customer", "Тип клиента", "Покупатель",
    ),
    "region": (
        "region", "Region", "регион", "Регион", "область", "Область",
        "город", "Город", "location", "Location", "Регион продаж", "Местоположение",
    ),
    "sales_channel": (
        "sales_channel", "Sales_Channel", "канал", "Канал", "channel", "Channel",
        "источник", "Источник", "Канал продаж", "Способ продажи", "Канал сбыта",
    ),
    "vat": ("vat", "VAT", "ндс", "НДС"),
}

_BLANK_MARKERS = frozenset({"", "null", "undefined"})


def is_blank_value(value: Any) -> bool:
    """
    Return True for None, NaN, and strings that are empty, "null" or "undefined".
    """

    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return str(value).strip() in _BLANK_MARKERS


def load_alias_overrides(path: Path) -> dict[str, tuple[str, ...]]:
    """
    Read extra aliases from a JSON object of ``{field: [alias, ...]}``.

    A missing or malformed file yields no overrides.
    """

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable alias file path=%s: %s", path, exc)
        return {}

    if not isinstance(raw, dict):
        logger.warning("Ignoring alias file path=%s: top level must be an object", path)
        return {}

    overrides: dict[str, tuple[str, ...]] = {}
    for field, aliases in raw.items():
        if not isinstance(field, str) or not isinstance(aliases, list):
            continue
        cleaned = tuple(alias for alias in aliases if isinstance(alias, str) and alias.strip())
        if cleaned:
            overrides[field] = cleaned
    return overrides


def merge_aliases(
    base: Mapping[str, Sequence[str]],
    extra: Mapping[str, Sequence[str]],
) -> dict[str, tuple[str, ...]]:
    """
    Append *extra* aliases after *base* ones, skipping duplicates.
    """

    merged: dict[str, tuple[str, ...]] = {field: tuple(aliases) for field, aliases in base.items()}
    for field, aliases in extra.items():
        current = list(merged.get(field, ()))
        for alias in aliases:
            if alias not in current:
                current.append(alias)
        merged[field] = tuple(current)
    return merged


class FieldResolver:
    """
    Resolves canonical field values from rows with arbitrary headers.

    Lookup runs two full passes over the alias list: exact key matches
    first, then case-insensitive matches on trimmed keys.
    """

    def __init__(self, aliases: Mapping[str, Sequence[str]] | None = None) -> None:
        self._aliases: dict[str, tuple[str, ...]] = {
            field: tuple(values)
            for field, values in (aliases or DEFAULT_FIELD_ALIASES).items()
        }

    @classmethod
    def from_alias_file(cls, path: Path) -> FieldResolver:
        return cls(merge_aliases(DEFAULT_FIELD_ALIASES, load_alias_overrides(path)))

    @property
    def aliases(self) -> dict[str, tuple[str, ...]]:
        return dict(self._aliases)

    def resolve(self, row: Mapping[str, Any], canonical_field: str) -> Any | None:
        """
        Return the first usable raw value for *canonical_field*, or None.
        """

        candidates = self._aliases.get(canonical_field)
        if not candidates:
            return None

        for alias in candidates:
            if alias in row and not is_blank_value(row[alias]):
                return row[alias]

        folded_keys: dict[str, list[str]] = {}
        for key in row:
            folded_keys.setdefault(str(key).strip().lower(), []).append(key)

        for alias in candidates:
            for key in folded_keys.get(alias.strip().lower(), ()):
                if not is_blank_value(row[key]):
                    return row[key]
        return None

    def resolve_many(self, row: Mapping[str, Any]) -> dict[str, Any | None]:
        return {field: self.resolve(row, field) for field in self._aliases}
