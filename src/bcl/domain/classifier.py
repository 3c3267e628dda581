"""Token classifier — folds free-form CLI tokens into a :class:`Command`.

Each token is matched against an ordered rule table; the first rule whose
predicate accepts the token owns it. The order is part of the grammar:

1. verb keyword            6. ``+tag``
2. object keyword          7. ``-tag``
3. ``key:value``           8. ``N+`` (value lower bound)
4. ``Y-M-D`` literal       9. ``N-`` (value upper bound)
5. ``_CODE`` shorthand    10. float value, else annotation text

INVARIANT (colon-before-date-literal): rule 3 runs before rule 4. A
``key:value`` token may carry two hyphens inside its value
(``gt:2024-05-``) and must reach the named-parameter classifier.

A leading unsigned integer is consumed before the loop as the dynamic id.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable, Collection, Sequence
from dataclasses import dataclass
from datetime import date

from bcl.domain.command import DEFAULT_LIMIT, Command
from bcl.domain.errors import CommandSyntaxError, ConflictError, ValueTypeError
from bcl.domain.types import ENTITY_KEYWORDS, VERB_KEYWORDS, EntityKind, Verb

logger = logging.getLogger(__name__)

U8_MAX = 255
U32_MAX = 2**32 - 1

_UNSIGNED = re.compile(r"^\+?\d+$")
_FLOAT = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")


def parse_unsigned(raw: str, *, maximum: int) -> int | None:
    """Parse an unsigned integer no larger than *maximum*, else None."""
    if not _UNSIGNED.match(raw):
        return None
    number = int(raw)
    return number if number <= maximum else None


def parse_float(raw: str) -> float | None:
    """Parse a finite decimal number, else None."""
    if not _FLOAT.match(raw):
        return None
    number = float(raw)
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class TokenRule:
    """One row of the dispatch table."""

    name: str
    matches: Callable[[str], bool]
    apply: Callable[[Command, str], None]


class TokenClassifier:
    """Classifies a token sequence against the known category codes.

    Args:
        category_codes: Category abbreviations currently in the store.
        default_limit: Result cap used when no ``lim:`` token is given.
        today: Reference date for ``now`` / ``prev`` and future checks.
    """

    def __init__(
        self,
        category_codes: Collection[str],
        *,
        default_limit: int = DEFAULT_LIMIT,
        today: date | None = None,
    ) -> None:
        self._codes = frozenset(category_codes)
        self._default_limit = default_limit
        self._today = today
        self.rules: tuple[TokenRule, ...] = (
            TokenRule("verb", lambda t: t in VERB_KEYWORDS, self._apply_verb),
            TokenRule("object", lambda t: t in ENTITY_KEYWORDS, self._apply_object),
            TokenRule("named", lambda t: ":" in t, self.apply_named),
            TokenRule("date_literal", lambda t: t.count("-") == 2, self._apply_date_literal),
            TokenRule("list_shorthand", lambda t: t.startswith("_"), self._apply_list_shorthand),
            TokenRule("include_tag", lambda t: t.startswith("+"), self._apply_include_tag),
            TokenRule("exclude_tag", lambda t: t.startswith("-"), self._apply_exclude_tag),
            TokenRule("value_gt", lambda t: t.endswith("+"), self._apply_value_gt),
            TokenRule("value_lt", lambda t: t.endswith("-"), self._apply_value_lt),
            TokenRule("fallback", lambda t: True, self._apply_fallback),
        )
        self._named: dict[str, Callable[[Command, str, str], None]] = {
            "year": self._named_year,
            "month": self._named_month,
            "day": self._named_day,
            "date": self._named_date,
            "lt": self._named_lt,
            "gt": self._named_gt,
            "cat": self._named_object,
            "bike": self._named_object,
            "val": self._named_val,
            "lim": self._named_lim,
            "id": self._named_id,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def classify(self, tokens: Sequence[str]) -> Command:
        """Fold *tokens* into a validated, frozen Command."""
        remaining = list(tokens)
        if not remaining:
            raise CommandSyntaxError("Nothing to do.")

        command = Command(limit=self._default_limit)
        leading = parse_unsigned(remaining[0], maximum=U32_MAX)
        if leading is not None:
            command.dyn_id.set_once(leading, "Multiple dynamic id input.")
            remaining.pop(0)

        if not remaining:
            raise CommandSyntaxError("Nothing to do.", dyn_id=leading)

        for token in remaining:
            self.rule_for(token).apply(command, token)

        command.validate(self._today)
        command.freeze()
        logger.debug("Classified command: %s", command.describe())
        return command

    def rule_for(self, token: str) -> TokenRule:
        """Return the first rule that accepts *token*."""
        for rule in self.rules:
            if rule.matches(token):
                return rule
        raise AssertionError("fallback rule accepts every token")  # pragma: no cover

    def apply_named(self, command: Command, token: str) -> None:
        """Classify one ``key:value`` token into *command*."""
        parts = token.split(":")
        if len(parts) != 2:
            raise CommandSyntaxError(f"Bad syntax - '{token}'.", token=token)
        key, value = parts

        if key in self._codes:
            if value:
                ordinal = parse_unsigned(value, maximum=U8_MAX)
                if ordinal is None:
                    msg = (
                        f"Wrong value of '{key}'. "
                        f"Expected int from 0 to 255, but given '{value}'."
                    )
                    raise ValueTypeError(msg, key=key, value=value)
                command.bike_id.set_once(ordinal, "Multiple bike id input.")
            command.category.set_once(key, "Multiple bike type input.")
            return

        if not value:
            if key == "lim":
                command.limit = 0
                return
            raise CommandSyntaxError(f"Unexpected key - '{key}'.", key=key)

        handler = self._named.get(key)
        if handler is None:
            raise CommandSyntaxError(f"Unexpected key - '{key}'.", key=key)
        handler(command, key, value)

    # ------------------------------------------------------------------
    # Positional rules
    # ------------------------------------------------------------------

    def _apply_verb(self, command: Command, token: str) -> None:
        command.verb.set_once(VERB_KEYWORDS[token].value, "Multiple command input.")

    def _apply_object(self, command: Command, token: str) -> None:
        command.kind.set_once(token, "Multiple object input.")

    def _apply_date_literal(self, command: Command, token: str) -> None:
        command.date.parse(token, self._today)

    def _apply_list_shorthand(self, command: Command, token: str) -> None:
        remainder = token[1:]
        command.verb.set_once(Verb.LIST.value, "Multiple command input.")
        if remainder in self._codes:
            command.kind.set_once(EntityKind.BIKE.value, "Multiple object input.")
            command.category.set_once(remainder, "Multiple bike type input.")
        else:
            command.kind.set_once(remainder, "Multiple object input.")

    def _apply_include_tag(self, command: Command, token: str) -> None:
        command.include_tags.add(_tag_name(token))

    def _apply_exclude_tag(self, command: Command, token: str) -> None:
        command.exclude_tags.add(_tag_name(token))

    def _apply_value_gt(self, command: Command, token: str) -> None:
        number = parse_float(token[:-1])
        if number is None:
            msg = f"Wrong format. Expected [float]+, but given '{token}'."
            raise ValueTypeError(msg, key="value_gt", value=token)
        command.value_gt.set_once(number, "Multiple lower value bound input.")

    def _apply_value_lt(self, command: Command, token: str) -> None:
        number = parse_float(token[:-1])
        if number is None:
            msg = f"Wrong format. Expected [float]-, but given '{token}'."
            raise ValueTypeError(msg, key="value_lt", value=token)
        command.value_lt.set_once(number, "Multiple upper value bound input.")

    def _apply_fallback(self, command: Command, token: str) -> None:
        number = parse_float(token)
        if number is None:
            command.annotation.append(token)
        else:
            command.value.set_once(number, "Multiple value input.")

    # ------------------------------------------------------------------
    # Named-parameter handlers
    # ------------------------------------------------------------------

    def _named_year(self, command: Command, _key: str, value: str) -> None:
        command.date.set_year(value, self._today)

    def _named_month(self, command: Command, _key: str, value: str) -> None:
        command.date.set_month(value, self._today)

    def _named_day(self, command: Command, _key: str, value: str) -> None:
        command.date.set_day(value, self._today)

    def _named_date(self, command: Command, _key: str, value: str) -> None:
        command.date.parse(value, self._today)

    def _named_lt(self, command: Command, _key: str, value: str) -> None:
        command.lt.parse(value, self._today)

    def _named_gt(self, command: Command, _key: str, value: str) -> None:
        command.gt.parse(value, self._today)

    def _named_object(self, command: Command, key: str, value: str) -> None:
        command.kind.set_once(key, "Multiple object input.")
        command.category.set_once(value, "Multiple bike type input.")

    def _named_val(self, command: Command, key: str, value: str) -> None:
        number = parse_float(value)
        if number is None:
            msg = f"Wrong value of '{key}'. Expected float, but given '{value}'."
            raise ValueTypeError(msg, key=key, value=value)
        command.value.set_once(number, "Multiple value input.")

    def _named_lim(self, command: Command, key: str, value: str) -> None:
        number = parse_unsigned(value, maximum=U8_MAX)
        if number is None:
            msg = f"Wrong value of '{key}'. Expected int from 0 to 255, but given '{value}'."
            raise ValueTypeError(msg, key=key, value=value)
        command.limit = number

    def _named_id(self, command: Command, key: str, value: str) -> None:
        if command.dyn_id.is_set:
            raise ConflictError("Input dynamic id or static id, not both.")
        number = parse_unsigned(value, maximum=U32_MAX)
        if number is None:
            msg = f"Wrong value of '{key}'. Expected int, but given '{value}'."
            raise ValueTypeError(msg, key=key, value=value)
        command.static_id.set_once(number, "Multiple static id input.")


def _tag_name(token: str) -> str:
    name = token[1:]
    if not name:
        raise CommandSyntaxError(f"Empty tag name in '{token}'.", token=token)
    return name


def classify(
    tokens: Sequence[str],
    *,
    category_codes: Collection[str],
    default_limit: int = DEFAULT_LIMIT,
    today: date | None = None,
) -> Command:
    """Classify *tokens* into a validated Command (see :class:`TokenClassifier`)."""
    classifier = TokenClassifier(category_codes, default_limit=default_limit, today=today)
    return classifier.classify(tokens)


def apply_named(
    command: Command,
    token: str,
    *,
    category_codes: Collection[str],
    today: date | None = None,
) -> Command:
    """Apply one ``key:value`` token to *command* and return it."""
    TokenClassifier(category_codes, today=today).apply_named(command, token)
    return command
