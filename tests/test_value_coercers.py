"""
tests/test_value_coercers.py

Pytest unit tests for the lenient cell coercers.

Coverage
--------
- Loose number parsing (separators, currency text, invalid input)
- Integer floor and non-positive fallback
- Discount percentage / fraction handling and clamping
- Date parsing: native objects, spreadsheet serials, ISO, ordered patterns
- Date fallback to the processing date
"""

from __future__ import annotations

import math
from datetime import date, datetime

import pytest

from app.validators.value_coercers import parse_date, parse_discount, parse_integer, parse_number

TODAY = date(2026, 10, 17)


class TestParseNumber:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (42, 42.0),
            (3.5, 3.5),
            ("1200", 1200.0),
            ("1 200,50 руб.", 1200.5),
            ("$1,5", 1.5),
            ("12-5", 12.0),
            ("-7.25", -7.25),
            (".5", 0.5),
        ],
    )
    def test_parses_loose_numbers(self, raw: object, expected: float) -> None:
        assert parse_number(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", [None, "", "abc", "--", True, math.nan, math.inf])
    def test_invalid_input_returns_default(self, raw: object) -> None:
        assert parse_number(raw, 9.0) == 9.0


class TestParseInteger:
    def test_floors_fractional_values(self) -> None:
        assert parse_integer("2.7") == 2

    @pytest.mark.parametrize("raw", ["0", "-3", None, "n/a", 0.4])
    def test_non_positive_falls_back_to_default(self, raw: object) -> None:
        assert parse_integer(raw) == 1


class TestParseDiscount:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (15, 0.15),
            (0.2, 0.2),
            (-5, 0.0),
            ("20%", 0.2),
            (150, 1.0),
            (None, 0.0),
            (1, 1.0),
        ],
    )
    def test_discount_is_fraction_in_unit_interval(self, raw: object, expected: float) -> None:
        assert parse_discount(raw) == pytest.approx(expected)


class TestParseDate:
    def test_day_first_dotted(self) -> None:
        assert parse_date("15.03.2024", today=TODAY) == date(2024, 3, 15)

    def test_spreadsheet_serial(self) -> None:
        parsed = parse_date(45000, today=TODAY)

        assert parsed.year == 2023
        assert parsed == date(2023, 3, 15)

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("2024-03-15", date(2024, 3, 15)),
            ("2024-03-15T10:30:00Z", date(2024, 3, 15)),
            ("2024-3-5", date(2024, 3, 5)),
            ("15/03/2024", date(2024, 3, 15)),
            ("03/25/2024", date(2024, 3, 25)),
            ("15-03-2024", date(2024, 3, 15)),
            (" 01.02.2024 ", date(2024, 2, 1)),
        ],
    )
    def test_string_formats(self, raw: str, expected: date) -> None:
        assert parse_date(raw, today=TODAY) == expected

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("2024/03/15", date(2024, 3, 15)),
            ("2024/03/15 08:45:00", date(2024, 3, 15)),
            ("2024.03.15", date(2024, 3, 15)),
            ("15 March 2024", date(2024, 3, 15)),
            ("15 Mar 2024", date(2024, 3, 15)),
            ("March 15, 2024", date(2024, 3, 15)),
            ("Mar 15, 2024", date(2024, 3, 15)),
            ("15-Mar-2024", date(2024, 3, 15)),
        ],
    )
    def test_textual_formats(self, raw: str, expected: date) -> None:
        assert parse_date(raw, today=TODAY) == expected

    def test_textual_format_outside_year_bounds_falls_back(self) -> None:
        assert parse_date("2100/01/01", today=TODAY) == TODAY

    def test_native_objects_pass_through(self) -> None:
        assert parse_date(datetime(2024, 1, 2, 10, 30), today=TODAY) == date(2024, 1, 2)
        assert parse_date(date(2024, 1, 2), today=TODAY) == date(2024, 1, 2)

    @pytest.mark.parametrize("raw", ["garbage", "31.12.1899", "01.01.2100", None, "", 1, 0.5, "45000"])
    def test_unparseable_falls_back_to_processing_date(self, raw: object) -> None:
        assert parse_date(raw, today=TODAY) == TODAY

    def test_default_fallback_is_today(self) -> None:
        assert parse_date("not a date") == date.today()
