"""
analytics/playbook.py

Per-segment action playbooks for ABC-XYZ items.

A playbook explains why a product landed in its combined segment and
what to do about it: reasons, recommendations, risks and KPIs. KPI texts
carry values computed from the product's revenue and coefficient of
variation. AZ playbooks change with revenue at the same limits the
classifier uses for AZ priorities.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass
from typing import Any

from analytics.abc_xyz import ABCXYZItem

UNDEFINED_TITLE = "Требует дополнительного анализа"


def format_rub(value: float) -> str:
    """
    Format an amount the ru-RU way: ``1234567.5`` -> ``"1 234 567,5 ₽"``.

    The group separator is a no-break space; up to three decimals are kept.
    """

    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return text.replace(",", "\u00a0").replace(".", ",") + " ₽"


@dataclass(frozen=True)
class SegmentPlaybook:
    combined_category: str
    title: str
    reasons: list[str]
    recommendations: list[str]
    risks: list[str]
    kpis: list[str]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


KpiBuilder = Callable[[float, float], list[str]]

# code -> (reasons, recommendations, risks, kpis(revenue, cv))
_PLAYBOOKS: dict[str, tuple[list[str], list[str], list[str], KpiBuilder]] = {
    "AX": (
        [
            "Высокая доля в выручке (группа A) - приносит основную прибыль",
            "Стабильный спрос (группа X) - предсказуемые продажи",
            "Низкий коэффициент вариации - минимальные риски",
        ],
        [
            "Обеспечить постоянное наличие на складе",
            "Мониторить конкурентов и рыночные цены",
            "Инвестировать в качество и улучшение продукта",
            "Развивать долгосрочные отношения с поставщиками",
        ],
        [
            "Потеря поставщика критически скажется на бизнесе",
            "Изменение потребительских предпочтений",
            "Появление конкурентов с лучшим предложением",
        ],
        lambda revenue, cv: [
            "Уровень запасов: не менее 95%",
            "Время выполнения заказа: максимум 24 часа",
            "Удовлетворенность клиентов: выше 90%",
            f"Целевая выручка: {format_rub(revenue * 1.1)}",
        ],
    ),
    "AY": (
        [
            "Высокая доля в выручке, но сезонный характер спроса",
            "Коэффициент вариации указывает на периодичность",
            "Требует точного прогнозирования и планирования",
        ],
        [
            "Создать детальный план сезонных закупок",
            "Анализировать исторические данные для прогнозов",
            "Разработать маркетинговые кампании под сезоны",
            "Подготовить альтернативные каналы сбыта",
        ],
        [
            "Избыточные запасы в межсезонье",
            "Недостаток товара в пиковый период",
            "Изменение сезонных трендов",
        ],
        lambda revenue, cv: [
            "Точность прогноза: выше 85%",
            "Оборачиваемость запасов: оптимальная для сезона",
            "Потери от просрочки: менее 5%",
            f"Снижение вариации: с {cv:.1f}% до {cv * 0.8:.1f}%",
        ],
    ),
    "BX": (
        [
            "Средняя доля в выручке со стабильным спросом",
            "Предсказуемые продажи облегчают планирование",
            "Хороший баланс между прибыльностью и стабильностью",
        ],
        [
            "Оптимизировать уровни запасов",
            "Автоматизировать процессы заказа",
            "Искать возможности для увеличения маржи",
            "Рассмотреть возможности роста продаж",
        ],
        [
            "Постепенное снижение доли рынка",
            "Появление более эффективных аналогов",
            "Изменение потребительских предпочтений",
        ],
        lambda revenue, cv: [
            "Уровень обслуживания: 90-95%",
            "Оборачиваемость: 6-8 раз в год",
            "Рост продаж: 5-10% в год",
            f"Целевая выручка: {format_rub(revenue * 1.07)}",
        ],
    ),
    "BY": (
        [
            "Средняя прибыльность с сезонными колебаниями",
            "Требует планирования под сезонные пики",
            "Возможности для оптимизации затрат",
        ],
        [
            "Создать сезонные модели планирования",
            "Оптимизировать складские площади",
            "Развивать межсезонные продажи",
            "Искать новые рынки сбыта",
        ],
        [
            "Затоваривание в межсезонье",
            "Упущенные продажи в пиковый период",
            "Высокие затраты на хранение",
        ],
        lambda revenue, cv: [
            "Сезонная точность прогноза: 80%",
            "Уровень запасов в межсезонье: минимальный",
            "Покрытие пикового спроса: 95%",
            f"Снижение вариации: до {cv * 0.85:.1f}%",
        ],
    ),
    "BZ": (
        [
            "Средняя прибыльность с высокой нестабильностью",
            "Сложность прогнозирования увеличивает риски",
            "Требует особого подхода к управлению",
        ],
        [
            "Минимизировать уровни запасов",
            'Использовать систему "точно в срок"',
            "Развивать быстрые каналы поставок",
            "Рассмотреть возможность отказа от товара",
        ],
        [
            "Высокие затраты на управление",
            "Потери от неликвидности",
            "Сложность в обслуживании клиентов",
        ],
        lambda revenue, cv: [
            "Минимальный уровень запасов",
            "Быстрота реакции на спрос: 48 часов",
            "Рентабельность: положительная",
            f"Стабилизация вариации: ниже {cv * 0.9:.1f}%",
        ],
    ),
    "CX": (
        [
            "Низкая доля в выручке, но стабильный спрос",
            "Предсказуемость позволяет автоматизировать процессы",
            "Минимальные требования к управлению",
        ],
        [
            "Полная автоматизация заказов",
            "Оптимизация затрат на обслуживание",
            "Рассмотреть аутсорсинг",
            "Минимизировать административные расходы",
        ],
        [
            "Потеря контроля над процессом",
            "Возможные сбои в автоматизации",
            "Снижение качества обслуживания",
        ],
        lambda revenue, cv: [
            "Автоматизация заказов: 100%",
            "Затраты на обслуживание: минимальные",
            "Уровень сервиса: базовый",
            f"Поддержание выручки: {format_rub(revenue)}",
        ],
    ),
    "CY": (
        [
            "Низкая прибыльность с сезонными колебаниями",
            "Ограниченный потенциал роста",
            "Требует минимальных инвестиций",
        ],
        [
            "Закупки только под конкретные заказы",
            "Минимизировать складские запасы",
            "Рассмотреть работу с дропшиппингом",
            "Оценить целесообразность продолжения продаж",
        ],
        [
            "Потеря клиентов из-за отсутствия товара",
            "Упущенные возможности в пиковые периоды",
            "Высокие относительные затраты",
        ],
        lambda revenue, cv: [
            "Запасы: только под заказ",
            "Время выполнения: до 7 дней",
            "Прибыльность: положительная",
            f"Минимальная выручка: {format_rub(revenue * 0.8)}",
        ],
    ),
    "CZ": (
        [
            "Низкая прибыльность и нестабильный спрос",
            "Высокие риски и затраты на управление",
            "Отвлекает ресурсы от более важных товаров",
        ],
        [
            "Прекратить активные продажи",
            "Распродать остатки со скидкой",
            "Не возобновлять закупки",
            "Перенаправить ресурсы на группы A и B",
        ],
        [
            "Потери от списания остатков",
            "Недовольство постоянных клиентов",
            "Возможные контрактные обязательства",
        ],
        lambda revenue, cv: [
            "Срок вывода: 3-6 месяцев",
            "Минимизация потерь при выводе",
            "Перераспределение ресурсов",
            f"Целевая ликвидация: до {format_rub(revenue * 0.3)}",
        ],
    ),
}


class PlaybookBuilder:
    """
    Builds the playbook for one classified product.
    """

    def __init__(self, *, az_high_revenue: float = 60000.0, az_mid_revenue: float = 30000.0) -> None:
        self._az_high_revenue = az_high_revenue
        self._az_mid_revenue = az_mid_revenue

    def build(self, item: ABCXYZItem) -> SegmentPlaybook:
        code = item.combined_category
        if code == "AZ":
            return self._az(item)
        entry = _PLAYBOOKS.get(code)
        if entry is None:
            return SegmentPlaybook(
                combined_category=code,
                title=UNDEFINED_TITLE,
                reasons=["Нестандартная комбинация категорий"],
                recommendations=["Провести детальный анализ"],
                risks=["Неопределенные риски"],
                kpis=["Требуется определение KPI"],
            )
        reasons, recommendations, risks, kpis = entry
        return SegmentPlaybook(
            combined_category=code,
            title=item.strategy,
            reasons=list(reasons),
            recommendations=list(recommendations),
            risks=list(risks),
            kpis=kpis(item.revenue, item.coefficient_variation),
        )

    def build_all(self, items: Sequence[ABCXYZItem]) -> dict[str, SegmentPlaybook]:
        """Playbooks keyed by product name."""
        return {item.product_name: self.build(item) for item in items}

    def _az(self, item: ABCXYZItem) -> SegmentPlaybook:
        revenue, cv = item.revenue, item.coefficient_variation
        critical = revenue > self._az_high_revenue
        if critical:
            scale = "Критический масштаб влияния на бизнес"
        elif revenue > self._az_mid_revenue:
            scale = "Значительное влияние на финансовые показатели"
        else:
            scale = "Умеренное влияние на общую прибыльность"

        return SegmentPlaybook(
            combined_category=item.combined_category,
            title=item.strategy,
            reasons=[
                "Высокая доля в выручке, но нерегулярный спрос",
                "Высокий коэффициент вариации создает риски",
                "Сложность в планировании и управлении запасами",
                scale,
            ],
            recommendations=[
                "Провести глубокий анализ причин нестабильности",
                "Изучить поведение клиентов и факторы спроса",
                "Рассмотреть сегментацию клиентской базы",
                "Разработать гибкую систему поставок",
                "Создать отдельную команду для управления товаром"
                if critical
                else "Назначить ответственного менеджера",
            ],
            risks=[
                "Высокие затраты на хранение",
                "Потери от неликвидных остатков",
                "Сложность в планировании денежных потоков",
                "Критическое влияние на общую прибыльность компании"
                if critical
                else "Значительные финансовые потери",
            ],
            kpis=[
                f"Снижение коэффициента вариации: с {cv:.1f}% до {cv * 0.7:.1f}%",
                f"Улучшение точности прогноза: до {'80%' if critical else '70%'}",
                f"Сокращение неликвидных остатков: на {'40%' if critical else '30%'}",
                f"Целевая выручка: {format_rub(revenue * 0.95)} (стабилизация)",
            ],
        )
