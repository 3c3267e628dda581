"""Shared service-layer helper functions."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from bcl.domain.command import Command
from bcl.domain.errors import AmbiguousError, NotFoundError
from bcl.domain.records import RecordRow


def today_or_now(today: date | None = None) -> date:
    """*today* if given, else the local calendar date."""
    return today if today is not None else date.today()


def select_one(rows: Sequence[RecordRow], command: Command, *, what: str) -> RecordRow:
    """Pick the single record a mutation targets from a filtered listing.

    - static id: the listing was already narrowed to that primary key
    - dynamic id: the row at that 1-based position
    - no id: the listing must hold exactly one row

    Raises:
        NotFoundError: Nothing matches.
        AmbiguousError: Several rows match and no id was given.
    """
    if command.static_id.is_set:
        if not rows:
            raise NotFoundError(
                f"{what.capitalize()} with id {command.static_id.value} was not found.",
                id=command.static_id.value,
            )
        return rows[0]

    if command.dyn_id.is_set:
        position = command.dyn_id.value
        if position is None or position < 1 or position > len(rows):
            raise NotFoundError(
                f"{what.capitalize()} for your request was not found.",
                dyn_id=position,
                count=len(rows),
            )
        return rows[position - 1]

    if not rows:
        raise NotFoundError(f"{what.capitalize()} for your request was not found.")
    if len(rows) > 1:
        raise AmbiguousError(
            f"Your request matches {len(rows)} {what} records; narrow your filter or give an id.",
            count=len(rows),
        )
    return rows[0]
