"""
analytics/abc_xyz.py

ABC-XYZ cross-classification with strategy and priority assignment.

Each ABC item is joined to its XYZ counterpart by product name; a product
without one is treated as Z with coefficient 0. AX, AY and AZ priorities
depend on product revenue; the revenue limits are configuration.

Also provides the 3x3 count/revenue matrix and exact-match filtering
over classified items.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any

from analytics.abc import ABCItem
from analytics.xyz import XYZItem

PRIORITY_CRITICAL = "Критический"
PRIORITY_HIGH = "Высокий"
PRIORITY_MEDIUM = "Средний"
PRIORITY_LOW = "Низкий"
PRIORITY_PHASE_OUT = "Критический (на выбытие)"
PRIORITY_UNDEFINED = "Неопределен"

STRATEGY_UNDEFINED = "Требует анализа"

_FIXED_STRATEGIES: dict[str, tuple[str, str]] = {
    "BX": ("Стабильные товары - регулярный контроль", PRIORITY_MEDIUM),
    "BY": ("Сезонные товары - планирование запасов", PRIORITY_MEDIUM),
    "BZ": ("Нестабильные товары - минимальные запасы", PRIORITY_LOW),
    "CX": ("Стабильные товары - автоматизация", PRIORITY_LOW),
    "CY": ("Сезонные товары - точечные закупки", PRIORITY_LOW),
    "CZ": ("Товары на выбытие - минимизация", PRIORITY_PHASE_OUT),
}

VALID_COMBINED_CATEGORIES: frozenset[str] = frozenset(a + x for a in "ABC" for x in "XYZ")


@dataclass(frozen=True)
class ABCXYZItem:
    product_name: str
    abc_category: str
    xyz_category: str
    combined_category: str
    revenue: float
    coefficient_variation: float
    strategy: str
    priority: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ABCXYZClassifier:
    """
    Joins ABC and XYZ results and looks up strategy and priority.
    """

    def __init__(
        self,
        *,
        ax_critical_revenue: float = 50000.0,
        ay_critical_revenue: float = 40000.0,
        az_high_revenue: float = 60000.0,
        az_mid_revenue: float = 30000.0,
    ) -> None:
        self._ax_critical_revenue = ax_critical_revenue
        self._ay_critical_revenue = ay_critical_revenue
        self._az_high_revenue = az_high_revenue
        self._az_mid_revenue = az_mid_revenue

    def classify(
        self,
        abc_items: Sequence[ABCItem],
        xyz_items: Sequence[XYZItem],
    ) -> list[ABCXYZItem]:
        xyz_by_product = {item.product_name: item for item in xyz_items}
        results: list[ABCXYZItem] = []
        for abc_item in abc_items:
            xyz_item = xyz_by_product.get(abc_item.product_name)
            xyz_category = xyz_item.category if xyz_item else "Z"
            combined = f"{abc_item.category}{xyz_category}"
            strategy, priority = self.strategy_for(combined, abc_item.revenue)
            results.append(
                ABCXYZItem(
                    product_name=abc_item.product_name,
                    abc_category=abc_item.category,
                    xyz_category=xyz_category,
                    combined_category=combined,
                    revenue=abc_item.revenue,
                    coefficient_variation=xyz_item.coefficient_variation if xyz_item else 0.0,
                    strategy=strategy,
                    priority=priority,
                )
            )
        return results

    def strategy_for(self, combined_category: str, revenue: float) -> tuple[str, str]:
        """
        Return ``(strategy, priority)`` for a combined code.
        """

        if combined_category == "AX":
            priority = PRIORITY_CRITICAL if revenue > self._ax_critical_revenue else PRIORITY_HIGH
            return "Ключевые товары - постоянный контроль", priority
        if combined_category == "AY":
            priority = PRIORITY_CRITICAL if revenue > self._ay_critical_revenue else PRIORITY_HIGH
            return "Важные товары - сезонное планирование", priority
        if combined_category == "AZ":
            if revenue > self._az_high_revenue:
                return "Критические проблемные товары - срочный анализ", PRIORITY_CRITICAL
            if revenue > self._az_mid_revenue:
                return "Контрольные проблемные товары - детальный анализ", PRIORITY_HIGH
            return "Условно-стабильные товары - мониторинг", PRIORITY_MEDIUM
        return _FIXED_STRATEGIES.get(combined_category, (STRATEGY_UNDEFINED, PRIORITY_UNDEFINED))


@dataclass(frozen=True)
class ABCXYZMatrixCell:
    abc_category: str
    xyz_category: str
    count: int
    revenue: float

    @property
    def combined_category(self) -> str:
        return f"{self.abc_category}{self.xyz_category}"

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["combined_category"] = self.combined_category
        return payload


def abc_xyz_matrix(items: Sequence[ABCXYZItem]) -> list[ABCXYZMatrixCell]:
    """
    Product count and revenue for each of the nine cells, A..C by X..Z.

    Empty cells are included with zero count and revenue.
    """

    totals: dict[tuple[str, str], tuple[int, float]] = {}
    for item in items:
        count, revenue = totals.get((item.abc_category, item.xyz_category), (0, 0.0))
        totals[(item.abc_category, item.xyz_category)] = (count + 1, revenue + item.revenue)

    cells: list[ABCXYZMatrixCell] = []
    for abc in "ABC":
        for xyz in "XYZ":
            count, revenue = totals.get((abc, xyz), (0, 0.0))
            cells.append(ABCXYZMatrixCell(abc_category=abc, xyz_category=xyz, count=count, revenue=revenue))
    return cells


def filter_abc_xyz(
    items: Sequence[ABCXYZItem],
    *,
    abc_category: str | None = None,
    xyz_category: str | None = None,
    priority: str | None = None,
    combined_category: str | None = None,
) -> list[ABCXYZItem]:
    """
    Keep items matching every given criterion exactly; None means any.
    """

    return [
        item
        for item in items
        if (abc_category is None or item.abc_category == abc_category)
        and (xyz_category is None or item.xyz_category == xyz_category)
        and (priority is None or item.priority == priority)
        and (combined_category is None or item.combined_category == combined_category)
    ]
