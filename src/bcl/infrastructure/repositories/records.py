"""Lookup and bookkeeping queries shared by the mutation services."""

from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import Connection, delete, exists, func, insert, or_, select

from bcl.domain.errors import NotFoundError
from bcl.infrastructure.database.schema import (
    bike,
    category,
    chain_lubrication,
    ride,
    tag,
    tag_to_buy,
    tag_to_ride,
)


class RecordRepository:
    """Encapsulates SQL for category, bike, tag, and lubrication lookups.

    Bound to one connection so that calls made inside
    :meth:`Store.transaction` see the pending writes of the same block.
    """

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    # ------------------------------------------------------------------
    # Categories and bikes
    # ------------------------------------------------------------------

    def category_codes(self) -> list[str]:
        """All category abbreviations, for the token classifier."""
        rows = self._conn.execute(select(category.c.abbr).order_by(category.c.abbr)).fetchall()
        return [str(row.abbr) for row in rows]

    def get_category(self, abbr: str) -> dict[str, Any]:
        """Fetch one category by code, raising NotFoundError if missing."""
        row = self._conn.execute(select(category).where(category.c.abbr == abbr)).mappings().first()
        if row is None:
            raise NotFoundError(f"Category '{abbr}' does not exist.", category=abbr)
        return dict(row)

    def get_bike(self, abbr: str, id_in_cat: int) -> dict[str, Any]:
        """Fetch one bike by ``CODE:N`` reference."""
        stmt = (
            select(bike, category.c.abbr.label("category"))
            .select_from(bike.join(category, bike.c.category_id == category.c.id))
            .where(category.c.abbr == abbr, bike.c.id_in_cat == id_in_cat)
        )
        row = self._conn.execute(stmt).mappings().first()
        if row is None:
            ref = f"{abbr}:{id_in_cat}"
            raise NotFoundError(f"Bike '{ref}' does not exist.", bike=ref)
        return dict(row)

    def next_bike_ordinal(self, category_id: int) -> int:
        """One past the highest ordinal used in *category_id*."""
        stmt = select(func.coalesce(func.max(bike.c.id_in_cat), 0)).where(
            bike.c.category_id == category_id
        )
        return int(self._conn.execute(stmt).scalar_one()) + 1

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def find_tag(self, name: str) -> int | None:
        stmt = select(tag.c.id).where(tag.c.name == name)
        return self._conn.execute(stmt).scalar_one_or_none()

    def tag_get_or_create(self, name: str) -> int:
        """Return the id of tag *name*, inserting it first if needed."""
        tag_id = self.find_tag(name)
        if tag_id is not None:
            return tag_id
        result = self._conn.execute(insert(tag).values(name=name))
        return int(result.inserted_primary_key[0])

    def tag_ids_for(self, link_table: Any, owner_column: str, owner_id: int) -> list[int]:
        """Tag ids attached to one ride or buy."""
        stmt = select(link_table.c.tag_id).where(link_table.c[owner_column] == owner_id)
        return [int(row.tag_id) for row in self._conn.execute(stmt)]

    def is_tag_used(self, tag_id: int) -> bool:
        stmt = select(
            or_(
                exists().where(tag_to_ride.c.tag_id == tag_id),
                exists().where(tag_to_buy.c.tag_id == tag_id),
            )
        )
        return bool(self._conn.execute(stmt).scalar_one())

    def delete_tag_if_unused(self, tag_id: int) -> str | None:
        """Drop *tag_id* when no ride or buy references it; return its name."""
        if self.is_tag_used(tag_id):
            return None
        name = self._conn.execute(select(tag.c.name).where(tag.c.id == tag_id)).scalar_one_or_none()
        if name is None:
            return None
        self._conn.execute(delete(tag).where(tag.c.id == tag_id))
        return str(name)

    def ids_with_tag(self, link_table: Any, owner_column: str, name: str) -> set[int]:
        """Ids of rides or buys carrying tag *name*."""
        stmt = (
            select(link_table.c[owner_column])
            .select_from(link_table.join(tag, link_table.c.tag_id == tag.c.id))
            .where(tag.c.name == name)
        )
        return {int(row[0]) for row in self._conn.execute(stmt)}

    # ------------------------------------------------------------------
    # Lubrication distances
    # ------------------------------------------------------------------

    def last_lub_date(self, bike_id: int, *, before: date | None = None) -> str | None:
        """Date of the latest lubrication of *bike_id* (strictly before *before*)."""
        stmt = select(chain_lubrication.c.datestamp).where(chain_lubrication.c.bike_id == bike_id)
        if before is not None:
            stmt = stmt.where(chain_lubrication.c.datestamp < before.isoformat())
        stmt = stmt.order_by(chain_lubrication.c.datestamp.desc(), chain_lubrication.c.id.desc())
        return self._conn.execute(stmt.limit(1)).scalar_one_or_none()

    def distance_between(self, bike_id: int, *, after: str | None, until: str | None) -> float:
        """Sum of ride distances with ``after < datestamp <= until``."""
        stmt = select(func.coalesce(func.sum(ride.c.distance), 0.0)).where(
            ride.c.bike_id == bike_id
        )
        if after is not None:
            stmt = stmt.where(ride.c.datestamp > after)
        if until is not None:
            stmt = stmt.where(ride.c.datestamp <= until)
        return float(self._conn.execute(stmt).scalar_one())

    def distance_since_lub(self, bike_id: int) -> float:
        """Distance ridden on *bike_id* since its latest lubrication."""
        return self.distance_between(bike_id, after=self.last_lub_date(bike_id), until=None)

    def distance_for_lub(self, bike_id: int, lub_date: date) -> float:
        """Distance a lubrication on *lub_date* closes: rides after the previous one."""
        previous = self.last_lub_date(bike_id, before=lub_date)
        return self.distance_between(bike_id, after=previous, until=lub_date.isoformat())
