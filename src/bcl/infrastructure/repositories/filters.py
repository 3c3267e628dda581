"""Dynamic filter compiler — Command to parameterized SQL plus tag post-filter.

Each listable kind has a fixed join shape (:class:`QueryShape`). The
command's filters are accumulated in a :class:`PredicateSet` as bound
SQLAlchemy expressions; user input never reaches the SQL text.

Tag filters run after the query, over the association tables:

- exclude ids = union over the exclude tags
- include ids = intersection over the include tags
- a row survives iff (no include tag given OR id in include ids)
  AND id not in exclude ids

Surviving rows are renumbered ``dyn_id = 1..n``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy import Connection, Select, Table, func, select
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.selectable import FromClause

from bcl.domain.command import Command
from bcl.domain.errors import SemanticError
from bcl.domain.records import (
    BikeRow,
    BuyRow,
    CategoryRow,
    LubRow,
    RecordRow,
    RideRow,
    TagRow,
)
from bcl.domain.types import EntityKind
from bcl.infrastructure.database.schema import (
    bike,
    buy,
    buy_to_bike,
    buy_to_category,
    category,
    chain_lubrication,
    ride,
    tag,
    tag_to_buy,
    tag_to_ride,
)
from bcl.infrastructure.repositories.records import RecordRepository

logger = logging.getLogger(__name__)

# group_concat separator; cannot appear in a tag typed on a command line.
TAG_SEPARATOR = "\x1f"

_bike_category = category.alias("bike_category")


class PredicateSet:
    """Conjunctive WHERE clauses whose values are always bound parameters."""

    def __init__(self) -> None:
        self._clauses: list[ColumnElement[bool]] = []

    def __len__(self) -> int:
        return len(self._clauses)

    @property
    def clauses(self) -> tuple[ColumnElement[bool], ...]:
        return tuple(self._clauses)

    def add(self, clause: ColumnElement[bool]) -> PredicateSet:
        self._clauses.append(clause)
        return self

    def eq(self, column: Any, value: Any) -> PredicateSet:
        return self.add(column == value)

    def gt(self, column: Any, value: Any) -> PredicateSet:
        return self.add(column > value)

    def ge(self, column: Any, value: Any) -> PredicateSet:
        return self.add(column >= value)

    def lt(self, column: Any, value: Any) -> PredicateSet:
        return self.add(column < value)

    def contains(self, column: Any, text: str) -> PredicateSet:
        """Case-sensitive substring match."""
        return self.add(func.instr(column, text) > 0)

    def apply(self, stmt: Select[Any]) -> Select[Any]:
        return stmt.where(*self._clauses) if self._clauses else stmt


@dataclass(frozen=True)
class QueryShape:
    """Fixed join shape and filterable columns of one listable kind."""

    kind: EntityKind
    source: FromClause
    columns: tuple[Any, ...]
    id_col: Any
    date_col: Any
    build_row: Callable[[dict[str, Any]], RecordRow]
    value_col: Any = None
    text_col: Any = None
    category_col: Any = None
    ordinal_col: Any = None
    ordinal_category_col: Any = None
    tag_link: Table | None = None
    tag_owner: str | None = None

    @property
    def has_tags(self) -> bool:
        return self.tag_link is not None


def _tag_list(raw: str | None) -> list[str]:
    if not raw:
        return []
    return sorted(set(raw.split(TAG_SEPARATOR)))


def _ref(abbr: str | None, ordinal: int | None) -> str | None:
    if abbr is None or ordinal is None:
        return None
    return f"{abbr}:{ordinal}"


def _bike_row(row: dict[str, Any]) -> RecordRow:
    return BikeRow(
        id=row["id"],
        category=row["category"],
        id_in_cat=row["id_in_cat"],
        name=row["name"],
        datestamp=row["datestamp"],
    )


def _buy_row(row: dict[str, Any]) -> RecordRow:
    return BuyRow(
        id=row["id"],
        name=row["name"],
        price=row["price"],
        datestamp=row["datestamp"],
        category=row["category"],
        bike=_ref(row["bike_category"], row["bike_ordinal"]),
        tags=_tag_list(row["tags"]),
    )


def _ride_row(row: dict[str, Any]) -> RecordRow:
    return RideRow(
        id=row["id"],
        bike=_ref(row["category"], row["bike_ordinal"]),
        datestamp=row["datestamp"],
        distance=row["distance"],
        annotation=row["annotation"],
        tags=_tag_list(row["tags"]),
    )


def _lub_row(row: dict[str, Any]) -> RecordRow:
    return LubRow(
        id=row["id"],
        bike=_ref(row["category"], row["bike_ordinal"]),
        datestamp=row["datestamp"],
        distance=row["distance"],
        annotation=row["annotation"],
    )


def _tags_column() -> Any:
    return func.group_concat(tag.c.name, TAG_SEPARATOR).label("tags")


SHAPES: dict[EntityKind, QueryShape] = {
    EntityKind.BIKE: QueryShape(
        kind=EntityKind.BIKE,
        source=bike.join(category, bike.c.category_id == category.c.id),
        columns=(
            bike.c.id,
            category.c.abbr.label("category"),
            bike.c.id_in_cat,
            bike.c.name,
            bike.c.datestamp,
        ),
        id_col=bike.c.id,
        date_col=bike.c.datestamp,
        build_row=_bike_row,
        text_col=bike.c.name,
        category_col=category.c.abbr,
        ordinal_col=bike.c.id_in_cat,
    ),
    EntityKind.BUY: QueryShape(
        kind=EntityKind.BUY,
        source=buy.outerjoin(buy_to_category, buy_to_category.c.buy_id == buy.c.id)
        .outerjoin(category, category.c.id == buy_to_category.c.category_id)
        .outerjoin(buy_to_bike, buy_to_bike.c.buy_id == buy.c.id)
        .outerjoin(bike, bike.c.id == buy_to_bike.c.bike_id)
        .outerjoin(_bike_category, _bike_category.c.id == bike.c.category_id)
        .outerjoin(tag_to_buy, tag_to_buy.c.buy_id == buy.c.id)
        .outerjoin(tag, tag.c.id == tag_to_buy.c.tag_id),
        columns=(
            buy.c.id,
            buy.c.name,
            buy.c.price,
            buy.c.datestamp,
            category.c.abbr.label("category"),
            _bike_category.c.abbr.label("bike_category"),
            bike.c.id_in_cat.label("bike_ordinal"),
        ),
        id_col=buy.c.id,
        date_col=buy.c.datestamp,
        build_row=_buy_row,
        value_col=buy.c.price,
        text_col=buy.c.name,
        category_col=category.c.abbr,
        ordinal_col=bike.c.id_in_cat,
        ordinal_category_col=_bike_category.c.abbr,
        tag_link=tag_to_buy,
        tag_owner="buy_id",
    ),
    EntityKind.RIDE: QueryShape(
        kind=EntityKind.RIDE,
        source=ride.join(bike, bike.c.id == ride.c.bike_id)
        .join(category, category.c.id == bike.c.category_id)
        .outerjoin(tag_to_ride, tag_to_ride.c.ride_id == ride.c.id)
        .outerjoin(tag, tag.c.id == tag_to_ride.c.tag_id),
        columns=(
            ride.c.id,
            category.c.abbr.label("category"),
            bike.c.id_in_cat.label("bike_ordinal"),
            ride.c.datestamp,
            ride.c.distance,
            ride.c.annotation,
        ),
        id_col=ride.c.id,
        date_col=ride.c.datestamp,
        build_row=_ride_row,
        value_col=ride.c.distance,
        text_col=ride.c.annotation,
        category_col=category.c.abbr,
        ordinal_col=bike.c.id_in_cat,
        tag_link=tag_to_ride,
        tag_owner="ride_id",
    ),
    EntityKind.LUB: QueryShape(
        kind=EntityKind.LUB,
        source=chain_lubrication.join(bike, bike.c.id == chain_lubrication.c.bike_id).join(
            category, category.c.id == bike.c.category_id
        ),
        columns=(
            chain_lubrication.c.id,
            category.c.abbr.label("category"),
            bike.c.id_in_cat.label("bike_ordinal"),
            chain_lubrication.c.datestamp,
            chain_lubrication.c.distance,
            chain_lubrication.c.annotation,
        ),
        id_col=chain_lubrication.c.id,
        date_col=chain_lubrication.c.datestamp,
        build_row=_lub_row,
        value_col=chain_lubrication.c.distance,
        text_col=chain_lubrication.c.annotation,
        category_col=category.c.abbr,
        ordinal_col=bike.c.id_in_cat,
    ),
}


# ---------------------------------------------------------------------------
# Query compilation
# ---------------------------------------------------------------------------


def build_predicates(
    shape: QueryShape, command: Command, *, today: date | None = None
) -> PredicateSet:
    """Translate the command's filters into bound predicates for *shape*."""
    preds = PredicateSet()

    if command.static_id.is_set:
        return preds.eq(shape.id_col, command.static_id.value)

    if command.value.is_set or command.value_gt.is_set or command.value_lt.is_set:
        if shape.value_col is None:
            msg = f"Value filters do not apply to {shape.kind} listings."
            raise SemanticError(msg, kind=shape.kind.value)
        # An exact value makes the bounds redundant.
        if command.value.is_set:
            preds.eq(shape.value_col, command.value.value)
        else:
            if command.value_gt.is_set:
                preds.gt(shape.value_col, command.value_gt.value)
            if command.value_lt.is_set:
                preds.lt(shape.value_col, command.value_lt.value)

    if command.date.is_some():
        if command.date.is_complete:
            preds.eq(shape.date_col, command.date.resolve(today).isoformat())
        else:
            start = command.date.range_start(today)
            if start is not None:
                preds.ge(shape.date_col, start.isoformat())
    if command.gt.is_some():
        lower = command.gt.range_start(today)
        if lower is not None:
            preds.gt(shape.date_col, lower.isoformat())
    if command.lt.is_some():
        upper = command.lt.range_start(today)
        if upper is not None:
            preds.lt(shape.date_col, upper.isoformat())

    if command.bike_id.is_set and shape.ordinal_col is not None:
        # A bike reference names the bike's own category, not a purchase's category link.
        owner = shape.ordinal_category_col
        preds.eq(shape.category_col if owner is None else owner, command.category.value)
        preds.eq(shape.ordinal_col, command.bike_id.value)
    elif command.category.is_set and shape.category_col is not None:
        preds.eq(shape.category_col, command.category.value)

    text = command.text
    if text is not None and shape.text_col is not None:
        preds.contains(shape.text_col, text)

    return preds


def build_query(shape: QueryShape, command: Command, *, today: date | None = None) -> Select[Any]:
    """Full SELECT for *shape*: filters, grouping, order, and SQL-side cap."""
    columns = list(shape.columns)
    if shape.has_tags:
        columns.append(_tags_column())

    stmt = select(*columns).select_from(shape.source)
    stmt = build_predicates(shape, command, today=today).apply(stmt)
    stmt = stmt.group_by(shape.id_col).order_by(shape.date_col.desc(), shape.id_col.desc())

    # With tag filters the cap applies after post-filtering.
    if command.limit and not command.static_id.is_set and not command.has_tag_filter:
        stmt = stmt.limit(command.limit)
    return stmt


# ---------------------------------------------------------------------------
# Tag post-filter
# ---------------------------------------------------------------------------


def tag_id_sets(
    repo: RecordRepository,
    shape: QueryShape,
    include: Iterable[str],
    exclude: Iterable[str],
) -> tuple[set[int] | None, set[int]]:
    """Compute ``(include_ids, exclude_ids)`` for *shape*.

    ``include_ids`` is None when no include tag was given, so an empty
    intersection still filters everything out.
    """
    if shape.tag_link is None or shape.tag_owner is None:
        raise SemanticError(f"Tags do not apply to {shape.kind} records.", kind=shape.kind.value)

    exclude_ids: set[int] = set()
    for name in sorted(exclude):
        exclude_ids |= repo.ids_with_tag(shape.tag_link, shape.tag_owner, name)

    include_ids: set[int] | None = None
    for name in sorted(include):
        ids = repo.ids_with_tag(shape.tag_link, shape.tag_owner, name)
        include_ids = ids if include_ids is None else include_ids & ids

    return include_ids, exclude_ids


def apply_tag_filter(
    rows: Sequence[RecordRow],
    include_ids: set[int] | None,
    exclude_ids: set[int],
) -> list[RecordRow]:
    """Keep rows allowed by the include set and not hit by the exclude set."""
    return [
        row
        for row in rows
        if (include_ids is None or row.id in include_ids) and row.id not in exclude_ids
    ]


def renumber(rows: Sequence[RecordRow]) -> list[RecordRow]:
    """Assign ``dyn_id`` 1..n in listing order."""
    return [row.with_dyn_id(position) for position, row in enumerate(rows, start=1)]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def compile_and_fetch(
    conn: Connection,
    command: Command,
    kind: EntityKind | str | None = None,
    *,
    today: date | None = None,
) -> list[RecordRow]:
    """Run the filtered listing for *kind* (default: the command's kind)."""
    target = EntityKind(kind if kind is not None else command.kind.value)

    if target is EntityKind.CAT:
        return renumber(_list_categories(conn, command))
    if target is EntityKind.TAG:
        return renumber(_list_tags(conn, command))

    shape = SHAPES[target]
    if command.has_tag_filter and not shape.has_tags:
        raise SemanticError(f"Tags do not apply to {target} records.", kind=target.value)

    stmt = build_query(shape, command, today=today)
    rows = [shape.build_row(dict(row)) for row in conn.execute(stmt).mappings()]
    logger.debug("Fetched %d %s rows before tag filter", len(rows), target)

    if command.has_tag_filter and not command.static_id.is_set:
        include_ids, exclude_ids = tag_id_sets(
            RecordRepository(conn), shape, command.include_tags, command.exclude_tags
        )
        rows = apply_tag_filter(rows, include_ids, exclude_ids)
        if command.limit:
            rows = rows[: command.limit]

    return renumber(rows)


def _list_categories(conn: Connection, command: Command) -> list[RecordRow]:
    if command.has_tag_filter:
        raise SemanticError("Tags do not apply to categories.", kind=EntityKind.CAT.value)
    stmt = select(category.c.id, category.c.abbr, category.c.name).order_by(category.c.abbr)
    if command.static_id.is_set:
        stmt = stmt.where(category.c.id == command.static_id.value)
    elif command.category.is_set:
        stmt = stmt.where(category.c.abbr == command.category.value)
    return [CategoryRow(**dict(row)) for row in conn.execute(stmt).mappings()]


def _list_tags(conn: Connection, command: Command) -> list[RecordRow]:
    stmt = select(tag.c.id, tag.c.name).order_by(tag.c.name)
    if command.static_id.is_set:
        stmt = stmt.where(tag.c.id == command.static_id.value)
    elif command.text is not None:
        stmt = stmt.where(func.instr(tag.c.name, command.text) > 0)
    return [TagRow(**dict(row)) for row in conn.execute(stmt).mappings()]
