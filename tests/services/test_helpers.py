"""Tests for shared service helpers."""

from __future__ import annotations

from datetime import date

import pytest

from bcl.domain.command import Command
from bcl.domain.errors import AmbiguousError, NotFoundError
from bcl.domain.records import TagRow
from bcl.services._helpers import select_one, today_or_now

ROWS = [TagRow(dyn_id=i, id=10 + i, name=f"t{i}") for i in (1, 2, 3)]


class TestTodayOrNow:
    def test_explicit_date(self) -> None:
        assert today_or_now(date(2020, 1, 2)) == date(2020, 1, 2)

    def test_defaults_to_today(self) -> None:
        assert today_or_now() == date.today()


class TestSelectOne:
    def test_dynamic_id_picks_position(self) -> None:
        command = Command()
        command.dyn_id.set(2)
        assert select_one(ROWS, command, what="tag").id == 12

    @pytest.mark.parametrize("position", [0, 4])
    def test_dynamic_id_out_of_range(self, position: int) -> None:
        command = Command()
        command.dyn_id.set(position)
        with pytest.raises(NotFoundError):
            select_one(ROWS, command, what="tag")

    def test_static_id_takes_first_row(self) -> None:
        command = Command()
        command.static_id.set(11)
        assert select_one(ROWS[:1], command, what="ride").id == 11

    def test_static_id_not_found(self) -> None:
        command = Command()
        command.static_id.set(99)
        with pytest.raises(NotFoundError, match="Ride with id 99"):
            select_one([], command, what="ride")

    def test_single_match_without_id(self) -> None:
        assert select_one(ROWS[:1], Command(), what="tag").id == 11

    def test_several_matches_without_id(self) -> None:
        with pytest.raises(AmbiguousError, match="matches 3 tag records"):
            select_one(ROWS, Command(), what="tag")

    def test_nothing_without_id(self) -> None:
        with pytest.raises(NotFoundError):
            select_one([], Command(), what="tag")
