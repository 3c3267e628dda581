"""Partial date expressions with ``now`` / ``prev`` relative tokens.

A :class:`DateExpr` keeps year, month, and day independent so that
``year:2020`` stays distinguishable from a full ``2020-05-01``. Unset
components are filled from *today* only when the expression is evaluated.

Every method that needs the current date accepts an optional ``today``
argument; ``None`` means :func:`datetime.date.today`.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date

from bcl.domain.errors import CommandSyntaxError, ConflictError, SemanticError, ValueTypeError

_SIGNED_INT = re.compile(r"^[+-]?\d+$")
_UNSIGNED_INT = re.compile(r"^\+?\d+$")


def _today(today: date | None) -> date:
    return today if today is not None else date.today()


def days_in_month(year: int, month: int) -> int:
    """Number of days in *month* of *year* (leap-year aware)."""
    return calendar.monthrange(year, month)[1]


def _build(year: int, month: int, day: int) -> date:
    try:
        return date(year, month, day)
    except (ValueError, OverflowError) as exc:
        msg = f"Non valid date given: {year}-{month}-{day}."
        raise SemanticError(msg, year=year, month=month, day=day) from exc


@dataclass
class DateExpr:
    """Year, month, and day components, each optional and write-once."""

    year: int | None = None
    month: int | None = None
    day: int | None = None

    # ------------------------------------------------------------------
    # Presence
    # ------------------------------------------------------------------

    def is_some(self) -> bool:
        """True when any component is set."""
        return self.year is not None or self.month is not None or self.day is not None

    def is_none(self) -> bool:
        """True when no component is set."""
        return self.year is None and self.month is None and self.day is None

    @property
    def is_complete(self) -> bool:
        """An explicit day pins the expression to a single calendar date."""
        return self.day is not None

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def year_or_now(self, today: date | None = None) -> int:
        return self.year if self.year is not None else _today(today).year

    def month_or_now(self, today: date | None = None) -> int:
        return self.month if self.month is not None else _today(today).month

    def day_or_now(self, today: date | None = None) -> int:
        return self.day if self.day is not None else _today(today).day

    def resolve(self, today: date | None = None) -> date:
        """Fill unset components from *today* and build the calendar date.

        Raises:
            SemanticError: The components do not form a real date.
        """
        now = _today(today)
        return _build(self.year_or_now(now), self.month_or_now(now), self.day_or_now(now))

    def is_valid(self, today: date | None = None) -> bool:
        """True when the resolved date exists and is not in the future."""
        now = _today(today)
        try:
            return self.resolve(now) <= now
        except SemanticError:
            return False

    def range_start(self, today: date | None = None) -> date | None:
        """First day covered by the expression, or None when nothing is set.

        A day pins the full date; a month without a day starts on the 1st of
        that month (year filled from *today*); a year alone starts on Jan 1.
        """
        now = _today(today)
        if self.day is not None:
            return self.resolve(now)
        if self.month is not None:
            return _build(self.year_or_now(now), self.month, 1)
        if self.year is not None:
            return _build(self.year, 1, 1)
        return None

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse(self, raw: str, today: date | None = None) -> None:
        """Parse a ``Y-M-D`` value; empty parts leave their component unset."""
        parts = raw.split("-")
        if len(parts) != 3:
            msg = f"Invalid date format '{raw}'. Expected three parts separated by '-'."
            raise CommandSyntaxError(msg, value=raw)

        year, month, day = parts
        if year:
            self.set_year(year, today)
        if month:
            self.set_month(month, today)
        if day:
            self.set_day(day, today)

    def set_year(self, raw: str, today: date | None = None) -> None:
        if self.year is not None:
            raise ConflictError("Multiple year input.", current=self.year, given=raw)

        current = _today(today).year
        if raw == "prev":
            self.year = current - 1
        elif raw == "now":
            self.year = current
        elif _SIGNED_INT.match(raw):
            self.year = int(raw)
        else:
            msg = f"Wrong year format. Expected int, but given '{raw}'."
            raise ValueTypeError(msg, key="year", value=raw)

    def set_month(self, raw: str, today: date | None = None) -> None:
        if self.month is not None:
            raise ConflictError("Multiple month input.", current=self.month, given=raw)

        current = _today(today).month
        if raw == "prev":
            self.month = current - 1 if current > 1 else 12
        elif raw == "now":
            self.month = current
        elif _UNSIGNED_INT.match(raw):
            self.month = int(raw)
        else:
            msg = f"Wrong month format. Expected int, but given '{raw}'."
            raise ValueTypeError(msg, key="month", value=raw)

    def set_day(self, raw: str, today: date | None = None) -> None:
        if self.day is not None:
            raise ConflictError("Multiple day input.", current=self.day, given=raw)

        now = _today(today)
        if raw == "prev":
            if now.day > 1:
                self.day = now.day - 1
            elif now.month > 1:
                self.day = days_in_month(now.year, now.month - 1)
            else:
                self.day = days_in_month(now.year - 1, 12)
        elif raw == "now":
            self.day = now.day
        elif _UNSIGNED_INT.match(raw):
            self.day = int(raw)
        else:
            msg = f"Wrong day format. Expected int, but given '{raw}'."
            raise ValueTypeError(msg, key="day", value=raw)
