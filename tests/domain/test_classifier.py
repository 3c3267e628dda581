"""Tests for the token classifier and the named-parameter sub-classifier."""

from __future__ import annotations

from datetime import date

import pytest

from bcl.domain.classifier import (
    TokenClassifier,
    apply_named,
    classify,
    parse_float,
    parse_unsigned,
)
from bcl.domain.command import Command
from bcl.domain.errors import (
    CommandSyntaxError,
    ConflictError,
    SemanticError,
    ValueTypeError,
)
from bcl.domain.fields import FrozenFieldError

TODAY = date(2024, 6, 15)
CODES = ("G", "MTB")


def _classify(line: str, *, default_limit: int = 10) -> Command:
    return classify(line.split(), category_codes=CODES, default_limit=default_limit, today=TODAY)


class TestNumberParsing:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("0", 0),
            ("255", 255),
            ("+7", 7),
            ("256", None),
            ("-1", None),
            ("1.0", None),
            ("x", None),
        ],
    )
    def test_parse_unsigned_byte(self, raw: str, expected: int | None) -> None:
        assert parse_unsigned(raw, maximum=255) == expected

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("42", 42.0),
            ("-3.5", -3.5),
            (".5", 0.5),
            ("1e3", 1000.0),
            ("abc", None),
            ("nan", None),
            ("inf", None),
        ],
    )
    def test_parse_float(self, raw: str, expected: float | None) -> None:
        assert parse_float(raw) == expected

    def test_overflowing_float_is_rejected(self) -> None:
        assert parse_float("1e999") is None


class TestLeadingId:
    def test_leading_integer_is_dynamic_id(self) -> None:
        command = _classify("3 del ride")
        assert command.dyn_id.value == 3
        assert not command.static_id.is_set

    def test_leading_integer_alone_is_nothing_to_do(self) -> None:
        with pytest.raises(CommandSyntaxError, match="Nothing to do"):
            _classify("3")

    def test_empty_stream(self) -> None:
        with pytest.raises(CommandSyntaxError, match="Nothing to do"):
            classify([], category_codes=CODES, today=TODAY)

    def test_positional_id_and_static_id_conflict(self) -> None:
        with pytest.raises(ConflictError, match="not both"):
            _classify("3 del ride id:17")

    def test_static_id(self) -> None:
        command = _classify("mod ride id:17")
        assert command.static_id.value == 17


class TestVerbAndObject:
    def test_ls_is_list(self) -> None:
        command = _classify("ls ride")
        assert command.verb.value == "list"
        assert command.kind.value == "ride"

    def test_second_verb_conflicts(self) -> None:
        with pytest.raises(ConflictError, match="Multiple command input."):
            _classify("add del ride")

    def test_second_object_conflicts(self) -> None:
        with pytest.raises(ConflictError, match="Multiple object input."):
            _classify("ls ride buy")

    def test_shorthand_with_category_code(self) -> None:
        command = _classify("_G")
        assert command.verb.value == "list"
        assert command.kind.value == "bike"
        assert command.category.value == "G"

    def test_shorthand_with_object_word(self) -> None:
        command = _classify("_ride")
        assert (command.verb.value, command.kind.value) == ("list", "ride")

    def test_shorthand_after_verb_conflicts(self) -> None:
        with pytest.raises(ConflictError):
            _classify("add _ride")


class TestCategoryKey:
    def test_code_with_ordinal(self) -> None:
        command = _classify("add ride G:2 30")
        assert command.category.value == "G"
        assert command.bike_id.value == 2
        assert command.bike_ref == "G:2"

    def test_code_without_ordinal(self) -> None:
        command = _classify("ls ride MTB:")
        assert command.category.value == "MTB"
        assert not command.bike_id.is_set

    def test_ordinal_must_be_a_byte(self) -> None:
        with pytest.raises(ValueTypeError):
            _classify("add ride G:300 30")

    def test_second_category_conflicts(self) -> None:
        with pytest.raises(ConflictError, match="Multiple bike type input."):
            _classify("ls ride G: MTB:")

    def test_second_bike_ordinal_conflicts_first(self) -> None:
        with pytest.raises(ConflictError, match="Multiple bike id input."):
            _classify("ls ride G:1 MTB:1")

    def test_unknown_code_is_unexpected_key(self) -> None:
        with pytest.raises(CommandSyntaxError, match="Unexpected key - 'XC'"):
            _classify("ls ride XC:1")


class TestNamedParameters:
    def test_too_many_colons(self) -> None:
        with pytest.raises(CommandSyntaxError, match="Bad syntax"):
            _classify("ls ride a:b:c")

    def test_limit_last_write_wins(self) -> None:
        command = _classify("ls ride lim:5 lim:7")
        assert command.limit == 7

    def test_empty_limit_means_unlimited(self) -> None:
        command = _classify("ls ride lim:")
        assert command.limit == 0

    def test_default_limit(self) -> None:
        assert _classify("ls ride").limit == 10
        assert _classify("ls ride", default_limit=3).limit == 3

    def test_limit_out_of_range(self) -> None:
        with pytest.raises(ValueTypeError):
            _classify("ls ride lim:1000")

    def test_empty_value_for_other_keys(self) -> None:
        with pytest.raises(CommandSyntaxError, match="Unexpected key - 'year'"):
            _classify("ls ride year:")

    def test_unknown_key(self) -> None:
        with pytest.raises(CommandSyntaxError, match="Unexpected key - 'foo'"):
            _classify("ls ride foo:bar")

    def test_bike_key_sets_kind_and_category(self) -> None:
        command = _classify("add bike:G Grail")
        assert command.kind.value == "bike"
        assert command.category.value == "G"
        assert command.text == "Grail"

    def test_val_key(self) -> None:
        assert _classify("ls ride val:12.5").value.value == 12.5

    def test_val_key_type_error(self) -> None:
        with pytest.raises(ValueTypeError, match="val"):
            _classify("ls ride val:ten")

    def test_date_components(self) -> None:
        command = _classify("ls ride year:2023 month:prev day:4")
        assert (command.date.year, command.date.month, command.date.day) == (2023, 5, 4)

    def test_day_prev_on_leap_march_first(self) -> None:
        command = classify(
            ["ls", "ride", "month:prev", "day:prev"],
            category_codes=CODES,
            today=date(2024, 3, 1),
        )
        assert command.date.day == 29

    def test_day_prev_on_common_march_first(self) -> None:
        command = classify(
            ["ls", "ride", "month:prev", "day:prev"],
            category_codes=CODES,
            today=date(2023, 3, 1),
        )
        assert command.date.day == 28

    def test_year_alone_stays_partial(self) -> None:
        command = _classify("ls ride year:2020")
        assert command.date.resolve(TODAY) == date(2020, 6, 15)
        assert not command.date.is_complete

    def test_bounds(self) -> None:
        command = _classify("ls ride gt:2024-05- lt:2024-06-10")
        assert (command.gt.year, command.gt.month, command.gt.day) == (2024, 5, None)
        assert (command.lt.year, command.lt.month, command.lt.day) == (2024, 6, 10)

    def test_bound_may_lie_in_the_future(self) -> None:
        command = _classify("ls ride lt:2030-01-01")
        assert command.lt.year == 2030

    def test_bound_must_be_a_real_date(self) -> None:
        with pytest.raises(SemanticError):
            _classify("ls ride lt:2024-02-30")

    def test_apply_named_directly(self) -> None:
        command = apply_named(Command(), "G:3", category_codes=CODES, today=TODAY)
        assert command.bike_ref == "G:3"


class TestRuleOrder:
    def test_colon_rule_runs_before_date_literal(self) -> None:
        classifier = TokenClassifier(CODES, today=TODAY)
        assert classifier.rule_for("gt:2024-05-").name == "named"
        assert classifier.rule_for("2024-05-").name == "date_literal"

    def test_hyphen_count_wins_over_exclude_tag(self) -> None:
        classifier = TokenClassifier(CODES, today=TODAY)
        assert classifier.rule_for("-a-b").name == "date_literal"
        assert classifier.rule_for("-road").name == "exclude_tag"

    def test_rule_names_in_order(self) -> None:
        names = [rule.name for rule in TokenClassifier(CODES).rules]
        assert names == [
            "verb",
            "object",
            "named",
            "date_literal",
            "list_shorthand",
            "include_tag",
            "exclude_tag",
            "value_gt",
            "value_lt",
            "fallback",
        ]


class TestPrimaryDate:
    def test_literal(self) -> None:
        command = _classify("add ride G:1 10 2024-05-01")
        assert command.date.resolve(TODAY) == date(2024, 5, 1)

    def test_future_date_rejected(self) -> None:
        with pytest.raises(SemanticError, match="Non valid date given."):
            _classify("add ride G:1 10 2024-06-16")

    def test_impossible_date_rejected(self) -> None:
        with pytest.raises(SemanticError):
            _classify("add ride G:1 10 2024-04-31")

    def test_year_twice_conflicts(self) -> None:
        with pytest.raises(ConflictError, match="Multiple year input."):
            _classify("ls ride 2024-05-01 year:2023")


class TestTagsAndValues:
    def test_include_and_exclude_tags(self) -> None:
        command = _classify("ls ride +road +commute -broken")
        assert command.include_tags == {"road", "commute"}
        assert command.exclude_tags == {"broken"}
        assert command.has_tag_filter

    def test_tag_in_both_sets_conflicts(self) -> None:
        with pytest.raises(ConflictError):
            _classify("ls ride +road -road")

    def test_empty_tag_name(self) -> None:
        with pytest.raises(CommandSyntaxError):
            _classify("ls ride +")

    def test_value_bounds(self) -> None:
        command = _classify("ls ride 10+ 50-")
        assert command.value_gt.value == 10.0
        assert command.value_lt.value == 50.0

    def test_value_bound_type_error_names_raw_token(self) -> None:
        with pytest.raises(ValueTypeError, match="'abc\\+'"):
            _classify("ls ride abc+")

    def test_second_lower_bound_conflicts(self) -> None:
        with pytest.raises(ConflictError):
            _classify("ls ride 10+ 20+")

    def test_fallback_value_and_annotation(self) -> None:
        command = _classify("add buy Chain KMC 450")
        assert command.value.value == 450.0
        assert command.annotation == ["Chain", "KMC"]
        assert command.text == "Chain KMC"

    def test_second_value_conflicts(self) -> None:
        with pytest.raises(ConflictError, match="Multiple value input."):
            _classify("add buy Chain 450 500")

    def test_nan_is_annotation(self) -> None:
        assert _classify("ls ride nan").annotation == ["nan"]


class TestFreeze:
    def test_command_is_frozen_after_classification(self) -> None:
        command = _classify("ls ride")
        assert command.frozen
        with pytest.raises(FrozenFieldError):
            command.verb.set("add")
