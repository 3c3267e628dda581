"""CreateService — ``add`` for categories, bikes, purchases, rides, and lubrications.

Each add runs in one ``store.transaction()``: the record, its tags, and
its links commit together or not at all.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Connection, insert
from sqlalchemy.exc import IntegrityError

from bcl.domain.command import Command
from bcl.domain.errors import BclError, ConflictError, SemanticError, UsageError
from bcl.domain.types import EntityKind
from bcl.infrastructure.database.schema import (
    bike,
    buy,
    buy_to_bike,
    buy_to_category,
    category,
    chain_lubrication,
    ride,
    tag_to_buy,
    tag_to_ride,
)
from bcl.infrastructure.repositories.records import RecordRepository
from bcl.services.base import BaseService
from bcl.services.result import ServiceResult

logger = logging.getLogger(__name__)


class CreateService(BaseService):
    """Handles record creation."""

    def add(self, command: Command) -> ServiceResult:
        """Create one record of the command's kind."""
        kind = EntityKind(command.kind.value)
        op = f"add_{kind}"
        handlers = {
            EntityKind.CAT: self._add_category,
            EntityKind.BIKE: self._add_bike,
            EntityKind.BUY: self._add_buy,
            EntityKind.RIDE: self._add_ride,
            EntityKind.LUB: self._add_lub,
            EntityKind.TAG: self._add_tags,
        }
        try:
            if command.exclude_tags:
                raise SemanticError("Exclude tags cannot be used when adding a record.")
            with self._store.transaction() as conn:
                data = handlers[kind](conn, command)
        except BclError as exc:
            return self._failure(op, exc)

        logger.info("Added %s: %s", kind, data)
        return ServiceResult(ok=True, op=op, data=data)

    # ------------------------------------------------------------------
    # Per-kind handlers
    # ------------------------------------------------------------------

    def _add_category(self, conn: Connection, command: Command) -> dict[str, Any]:
        abbr, name = command.category.value, command.text
        if abbr is None or name is None:
            msg = 'Command params missed. Expected: `bcl add cat:CODE "Category name"`.'
            raise UsageError(msg)
        try:
            result = conn.execute(insert(category).values(abbr=abbr, name=name))
        except IntegrityError as exc:
            msg = f"Category '{abbr}' or '{name}' already exists."
            raise ConflictError(msg, abbr=abbr) from exc
        return {"id": result.inserted_primary_key[0], "abbr": abbr, "name": name}

    def _add_bike(self, conn: Connection, command: Command) -> dict[str, Any]:
        abbr, name = command.category.value, command.text
        if abbr is None or name is None:
            raise UsageError("Command params missed. Expected: `bcl add bike:CODE \"Bike name\"`.")
        repo = RecordRepository(conn)
        cat = repo.get_category(abbr)
        ordinal = repo.next_bike_ordinal(cat["id"])
        datestamp = command.date.resolve(self.today).isoformat()
        try:
            result = conn.execute(
                insert(bike).values(
                    category_id=cat["id"],
                    id_in_cat=ordinal,
                    name=name,
                    datestamp=datestamp,
                )
            )
        except IntegrityError as exc:
            raise ConflictError(f"Bike named '{name}' already exists.", name=name) from exc
        return {
            "id": result.inserted_primary_key[0],
            "bike": f"{abbr}:{ordinal}",
            "name": name,
            "date": datestamp,
        }

    def _add_buy(self, conn: Connection, command: Command) -> dict[str, Any]:
        name, price = command.text, command.value.value
        if name is None or price is None:
            msg = 'Command params missed. Expected: `bcl add buy "Product name" PRICE`.'
            raise UsageError(msg)
        repo = RecordRepository(conn)
        datestamp = command.date.resolve(self.today).isoformat()

        # Resolve links before writing so a bad reference leaves nothing behind.
        cat = repo.get_category(command.category.value) if command.category.is_set else None
        linked_bike = (
            repo.get_bike(command.category.value, command.bike_id.value)
            if cat is not None and command.bike_id.is_set
            else None
        )

        result = conn.execute(insert(buy).values(name=name, price=price, datestamp=datestamp))
        buy_id = result.inserted_primary_key[0]
        if cat is not None:
            conn.execute(insert(buy_to_category).values(buy_id=buy_id, category_id=cat["id"]))
        if linked_bike is not None:
            conn.execute(insert(buy_to_bike).values(buy_id=buy_id, bike_id=linked_bike["id"]))
        tags = self._attach_tags(repo, conn, tag_to_buy, "buy_id", buy_id, command.include_tags)

        return {
            "id": buy_id,
            "name": name,
            "price": price,
            "date": datestamp,
            "category": cat["abbr"] if cat else None,
            "bike": command.bike_ref if linked_bike else None,
            "tags": tags,
            "currency": self._store.settings.display.currency,
        }

    def _add_ride(self, conn: Connection, command: Command) -> dict[str, Any]:
        distance = command.value.value
        if command.bike_ref is None or distance is None:
            raise UsageError("Command params missed. Expected: `bcl add ride CODE:N DISTANCE`.")
        repo = RecordRepository(conn)
        target = repo.get_bike(command.category.value, command.bike_id.value)
        datestamp = command.date.resolve(self.today).isoformat()

        result = conn.execute(
            insert(ride).values(
                bike_id=target["id"],
                datestamp=datestamp,
                distance=distance,
                annotation=command.text,
            )
        )
        ride_id = result.inserted_primary_key[0]
        tags = self._attach_tags(repo, conn, tag_to_ride, "ride_id", ride_id, command.include_tags)

        since_lub = repo.distance_since_lub(target["id"])
        return {
            "id": ride_id,
            "bike": command.bike_ref,
            "date": datestamp,
            "distance": distance,
            "annotation": command.text,
            "tags": tags,
            "since_lub": since_lub,
            "lub_level": self._store.settings.lubrication.level(since_lub),
            "unit": self._store.settings.display.distance_unit,
        }

    def _add_lub(self, conn: Connection, command: Command) -> dict[str, Any]:
        if command.bike_ref is None:
            raise UsageError("Command params missed. Expected: `bcl add lub CODE:N`.")
        if command.include_tags:
            raise SemanticError("Tags do not apply to lub records.", kind=EntityKind.LUB.value)
        repo = RecordRepository(conn)
        target = repo.get_bike(command.category.value, command.bike_id.value)
        lub_date = command.date.resolve(self.today)
        distance = repo.distance_for_lub(target["id"], lub_date)

        result = conn.execute(
            insert(chain_lubrication).values(
                bike_id=target["id"],
                datestamp=lub_date.isoformat(),
                distance=distance,
                annotation=command.text,
            )
        )
        return {
            "id": result.inserted_primary_key[0],
            "bike": command.bike_ref,
            "date": lub_date.isoformat(),
            "distance": distance,
            "unit": self._store.settings.display.distance_unit,
        }

    def _add_tags(self, conn: Connection, command: Command) -> dict[str, Any]:
        names = sorted(command.include_tags | set(command.annotation))
        if not names:
            raise UsageError("Command params missed. Expected: `bcl add tag NAME...`.")
        repo = RecordRepository(conn)
        created = [name for name in names if repo.find_tag(name) is None]
        for name in created:
            repo.tag_get_or_create(name)
        return {"created": created, "existing": [n for n in names if n not in created]}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _attach_tags(
        repo: RecordRepository,
        conn: Connection,
        link_table: Any,
        owner_column: str,
        owner_id: int,
        names: set[str],
    ) -> list[str]:
        for name in sorted(names):
            tag_id = repo.tag_get_or_create(name)
            conn.execute(insert(link_table).values({"tag_id": tag_id, owner_column: owner_id}))
        return sorted(names)
