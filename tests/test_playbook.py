"""
tests/test_playbook.py

Pytest tests for segment playbooks.

Coverage
--------
- Every valid combined code has a full playbook
- KPI texts carry values computed from revenue and variation
- AZ playbooks follow the revenue tiers
- Unknown codes fall back to the analysis-required playbook
- ru-RU amount formatting
"""

from __future__ import annotations

import pytest

from analytics.abc_xyz import VALID_COMBINED_CATEGORIES, ABCXYZClassifier, ABCXYZItem
from analytics.playbook import UNDEFINED_TITLE, PlaybookBuilder, format_rub

NBSP = "\u00a0"


def _item(code: str, revenue: float = 1000.0, cv: float = 20.0) -> ABCXYZItem:
    strategy, priority = ABCXYZClassifier().strategy_for(code, revenue)
    return ABCXYZItem(
        product_name=f"product-{code}",
        abc_category=code[0],
        xyz_category=code[1],
        combined_category=code,
        revenue=revenue,
        coefficient_variation=cv,
        strategy=strategy,
        priority=priority,
    )


@pytest.fixture()
def builder() -> PlaybookBuilder:
    return PlaybookBuilder()


class TestFormatRub:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (0.0, "0 ₽"),
            (950.0, "950 ₽"),
            (110000.0, f"110{NBSP}000 ₽"),
            (1234567.5, f"1{NBSP}234{NBSP}567,5 ₽"),
            (1070.125, f"1{NBSP}070,125 ₽"),
        ],
    )
    def test_ru_formatting(self, value: float, expected: str) -> None:
        assert format_rub(value) == expected


class TestPlaybookBuilder:
    @pytest.mark.parametrize("code", sorted(VALID_COMBINED_CATEGORIES))
    def test_every_code_has_a_full_playbook(self, builder: PlaybookBuilder, code: str) -> None:
        playbook = builder.build(_item(code))

        assert playbook.combined_category == code
        assert playbook.title != UNDEFINED_TITLE
        assert len(playbook.reasons) >= 3
        assert len(playbook.recommendations) >= 4
        assert len(playbook.risks) >= 3
        assert len(playbook.kpis) == 4

    def test_title_is_the_strategy(self, builder: PlaybookBuilder) -> None:
        item = _item("BY")

        assert builder.build(item).title == item.strategy == "Сезонные товары - планирование запасов"

    def test_ax_target_revenue(self, builder: PlaybookBuilder) -> None:
        playbook = builder.build(_item("AX", revenue=100000.0))

        assert playbook.kpis[-1] == f"Целевая выручка: 110{NBSP}000 ₽"

    def test_ay_variation_targets(self, builder: PlaybookBuilder) -> None:
        playbook = builder.build(_item("AY", cv=25.0))

        assert playbook.kpis[-1] == "Снижение вариации: с 25.0% до 20.0%"

    def test_cz_liquidation_target(self, builder: PlaybookBuilder) -> None:
        playbook = builder.build(_item("CZ", revenue=1000.0))

        assert playbook.kpis[-1] == "Целевая ликвидация: до 300 ₽"
        assert playbook.recommendations[0] == "Прекратить активные продажи"

    @pytest.mark.parametrize(
        ("revenue", "scale", "forecast_kpi"),
        [
            (70000.0, "Критический масштаб влияния на бизнес", "Улучшение точности прогноза: до 80%"),
            (40000.0, "Значительное влияние на финансовые показатели", "Улучшение точности прогноза: до 70%"),
            (100.0, "Умеренное влияние на общую прибыльность", "Улучшение точности прогноза: до 70%"),
        ],
    )
    def test_az_tiers(self, builder: PlaybookBuilder, revenue: float, scale: str, forecast_kpi: str) -> None:
        playbook = builder.build(_item("AZ", revenue=revenue, cv=50.0))

        assert playbook.reasons[-1] == scale
        assert playbook.kpis[0] == "Снижение коэффициента вариации: с 50.0% до 35.0%"
        assert playbook.kpis[1] == forecast_kpi

    def test_az_critical_tier_gets_a_dedicated_team(self, builder: PlaybookBuilder) -> None:
        critical = builder.build(_item("AZ", revenue=70000.0))
        moderate = builder.build(_item("AZ", revenue=100.0))

        assert critical.recommendations[-1] == "Создать отдельную команду для управления товаром"
        assert moderate.recommendations[-1] == "Назначить ответственного менеджера"
        assert moderate.risks[-1] == "Значительные финансовые потери"

    def test_az_tiers_follow_configured_limits(self) -> None:
        builder = PlaybookBuilder(az_high_revenue=1000.0, az_mid_revenue=500.0)

        playbook = builder.build(_item("AZ", revenue=2000.0))

        assert playbook.reasons[-1] == "Критический масштаб влияния на бизнес"

    def test_unknown_code_falls_back(self, builder: PlaybookBuilder) -> None:
        playbook = builder.build(_item("QQ"))

        assert playbook.title == UNDEFINED_TITLE
        assert playbook.reasons == ["Нестандартная комбинация категорий"]
        assert playbook.kpis == ["Требуется определение KPI"]

    def test_build_all_is_keyed_by_product(self, builder: PlaybookBuilder) -> None:
        playbooks = builder.build_all([_item("AX"), _item("CZ")])

        assert set(playbooks) == {"product-AX", "product-CZ"}
        assert playbooks["product-CZ"].combined_category == "CZ"
