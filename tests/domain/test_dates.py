"""Tests for partial date expressions."""

from __future__ import annotations

from datetime import date

import pytest

from bcl.domain.dates import DateExpr, days_in_month
from bcl.domain.errors import CommandSyntaxError, ConflictError, SemanticError, ValueTypeError

TODAY = date(2024, 6, 15)


class TestCalendarHelpers:
    def test_days_in_month(self) -> None:
        assert days_in_month(2024, 2) == 29
        assert days_in_month(2023, 2) == 28
        assert days_in_month(2024, 4) == 30


class TestPresence:
    def test_empty(self) -> None:
        expr = DateExpr()
        assert expr.is_none()
        assert not expr.is_some()
        assert not expr.is_complete

    def test_year_only_is_partial(self) -> None:
        expr = DateExpr(year=2020)
        assert expr.is_some()
        assert not expr.is_complete


class TestResolve:
    def test_year_only_fills_month_and_day_from_today(self) -> None:
        expr = DateExpr()
        expr.set_year("2020", TODAY)
        assert expr.resolve(TODAY) == date(2020, 6, 15)
        assert expr.month is None and expr.day is None

    def test_empty_resolves_to_today(self) -> None:
        assert DateExpr().resolve(TODAY) == TODAY

    def test_invalid_calendar_date_raises(self) -> None:
        with pytest.raises(SemanticError):
            DateExpr(year=2024, month=4, day=31).resolve(TODAY)

    def test_future_date_is_not_valid(self) -> None:
        assert not DateExpr(year=2024, month=6, day=16).is_valid(TODAY)
        assert DateExpr(year=2024, month=6, day=15).is_valid(TODAY)

    def test_impossible_date_is_not_valid(self) -> None:
        assert not DateExpr(month=13).is_valid(TODAY)


class TestRangeStart:
    def test_day_pins_full_date(self) -> None:
        assert DateExpr(year=2023, month=3, day=9).range_start(TODAY) == date(2023, 3, 9)

    def test_month_starts_on_first(self) -> None:
        assert DateExpr(month=5).range_start(TODAY) == date(2024, 5, 1)

    def test_year_starts_on_january_first(self) -> None:
        assert DateExpr(year=2020).range_start(TODAY) == date(2020, 1, 1)

    def test_nothing_set(self) -> None:
        assert DateExpr().range_start(TODAY) is None


class TestParse:
    def test_full_literal(self) -> None:
        expr = DateExpr()
        expr.parse("2024-05-03", TODAY)
        assert (expr.year, expr.month, expr.day) == (2024, 5, 3)

    def test_empty_parts_stay_unset(self) -> None:
        expr = DateExpr()
        expr.parse("2024-05-", TODAY)
        assert (expr.year, expr.month, expr.day) == (2024, 5, None)

    def test_relative_parts(self) -> None:
        expr = DateExpr()
        expr.parse("now-prev-", TODAY)
        assert (expr.year, expr.month) == (2024, 5)

    @pytest.mark.parametrize("raw", ["2024-05", "2024-05-01-02", "20240501"])
    def test_wrong_part_count(self, raw: str) -> None:
        with pytest.raises(CommandSyntaxError):
            DateExpr().parse(raw, TODAY)


class TestComponents:
    def test_prev_year(self) -> None:
        expr = DateExpr()
        expr.set_year("prev", TODAY)
        assert expr.year == 2023

    def test_signed_year(self) -> None:
        expr = DateExpr()
        expr.set_year("-44", TODAY)
        assert expr.year == -44

    def test_prev_month_wraps_to_december(self) -> None:
        expr = DateExpr()
        expr.set_month("prev", date(2024, 1, 20))
        assert expr.month == 12

    def test_prev_day_leap_year(self) -> None:
        expr = DateExpr()
        expr.set_day("prev", date(2024, 3, 1))
        assert expr.day == 29

    def test_prev_day_common_year(self) -> None:
        expr = DateExpr()
        expr.set_day("prev", date(2023, 3, 1))
        assert expr.day == 28

    def test_prev_day_new_year(self) -> None:
        expr = DateExpr()
        expr.set_day("prev", date(2024, 1, 1))
        assert expr.day == 31

    def test_now_day(self) -> None:
        expr = DateExpr()
        expr.set_day("now", TODAY)
        assert expr.day == 15

    def test_component_is_write_once(self) -> None:
        expr = DateExpr()
        expr.set_year("2020", TODAY)
        with pytest.raises(ConflictError, match="Multiple year input."):
            expr.set_year("2021", TODAY)

    @pytest.mark.parametrize("raw", ["May", "-3", "1.5"])
    def test_bad_month(self, raw: str) -> None:
        with pytest.raises(ValueTypeError) as exc_info:
            DateExpr().set_month(raw, TODAY)
        assert exc_info.value.detail == {"key": "month", "value": raw}
