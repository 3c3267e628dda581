"""Tests for the Command descriptor."""

from __future__ import annotations

from datetime import date

import pytest

from bcl.domain.command import DEFAULT_LIMIT, Command
from bcl.domain.errors import ConflictError, SemanticError

TODAY = date(2024, 6, 15)


class TestDerivedViews:
    def test_defaults(self) -> None:
        command = Command()
        assert command.limit == DEFAULT_LIMIT
        assert command.text is None
        assert command.bike_ref is None
        assert not command.has_tag_filter
        assert not command.frozen

    def test_text_joins_annotation(self) -> None:
        command = Command(annotation=["Cross", "Check"])
        assert command.text == "Cross Check"

    def test_bike_ref_needs_both_parts(self) -> None:
        command = Command()
        command.category.set("G")
        assert command.bike_ref is None
        command.bike_id.set(2)
        assert command.bike_ref == "G:2"


class TestValidate:
    def test_both_ids_conflict(self) -> None:
        command = Command()
        command.dyn_id.set(1)
        command.static_id.set(7)
        with pytest.raises(ConflictError):
            command.validate(TODAY)

    def test_future_primary_date(self) -> None:
        command = Command()
        command.date.parse("2024-07-01", TODAY)
        with pytest.raises(SemanticError, match="Non valid date given."):
            command.validate(TODAY)

    def test_future_bound_allowed(self) -> None:
        command = Command()
        command.lt.parse("2030-01-01", TODAY)
        command.validate(TODAY)

    def test_impossible_bound(self) -> None:
        command = Command()
        command.gt.parse("2023-02-29", TODAY)
        with pytest.raises(SemanticError):
            command.validate(TODAY)

    def test_tag_in_both_sets(self) -> None:
        command = Command(include_tags={"road", "rain"}, exclude_tags={"rain"})
        with pytest.raises(ConflictError, match="rain"):
            command.validate(TODAY)


class TestFreezeAndDescribe:
    def test_freeze(self) -> None:
        command = Command()
        command.freeze()
        assert command.frozen
        assert command.static_id.frozen

    def test_describe(self) -> None:
        command = Command(annotation=["loop"], include_tags={"road"}, limit=3)
        command.verb.set("list")
        command.kind.set("ride")
        command.date.parse("2024-05-", TODAY)
        described = command.describe()
        assert described["verb"] == "list"
        assert described["kind"] == "ride"
        assert described["annotation"] == ["loop"]
        assert described["date"] == {"year": 2024, "month": 5, "day": None}
        assert described["include_tags"] == ["road"]
        assert described["limit"] == 3
        assert described["static_id"] is None
