"""UpdateService — ``mod`` for every record kind.

A record is addressed by its static id (``id:N``); tags are renamed with
``mod tag OLD NEW``. Only the fields present on the command change. A
command that changes nothing is a successful no-op with a warning.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Connection, Table, delete, insert, select, update
from sqlalchemy.exc import IntegrityError

from bcl.domain.command import Command
from bcl.domain.errors import (
    BclError,
    ConflictError,
    NotFoundError,
    SemanticError,
    UsageError,
)
from bcl.domain.types import TAGGED_KINDS, EntityKind
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
from bcl.services.base import BaseService
from bcl.services.result import ServiceResult

logger = logging.getLogger(__name__)

NOTHING_TO_DO = "Nothing to do!"

_TABLES: dict[EntityKind, Table] = {
    EntityKind.CAT: category,
    EntityKind.BIKE: bike,
    EntityKind.BUY: buy,
    EntityKind.RIDE: ride,
    EntityKind.LUB: chain_lubrication,
    EntityKind.TAG: tag,
}

_TAG_LINKS: dict[EntityKind, tuple[Table, str]] = {
    EntityKind.BUY: (tag_to_buy, "buy_id"),
    EntityKind.RIDE: (tag_to_ride, "ride_id"),
}


class UpdateService(BaseService):
    """Handles record modification."""

    def modify(self, command: Command) -> ServiceResult:
        """Apply the command's fields to the record it addresses."""
        kind = EntityKind(command.kind.value)
        op = f"mod_{kind}"
        warnings: list[str] = []
        try:
            if kind is EntityKind.TAG and not command.static_id.is_set:
                data = self._rename_tag_by_name(command)
            else:
                data = self._modify_record(kind, command)
        except BclError as exc:
            return self._failure(op, exc)

        if not data["changed"]:
            warnings.append(NOTHING_TO_DO)
        else:
            logger.info("Modified %s %s: %s", kind, data["id"], sorted(data["changed"]))
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    # ------------------------------------------------------------------
    # Record updates
    # ------------------------------------------------------------------

    def _modify_record(self, kind: EntityKind, command: Command) -> dict[str, Any]:
        record_id = command.static_id.value
        if record_id is None:
            raise UsageError(f"Command params missed. Expected: `bcl mod {kind} id:N [fields]`.")
        if command.has_tag_filter and kind not in TAGGED_KINDS:
            raise SemanticError(f"Tags do not apply to {kind} records.", kind=kind.value)

        table = _TABLES[kind]
        with self._store.transaction() as conn:
            current = conn.execute(select(table).where(table.c.id == record_id)).mappings().first()
            if current is None:
                msg = f"{kind.value.capitalize()} with id {record_id} was not found."
                raise NotFoundError(msg, id=record_id)

            repo = RecordRepository(conn)
            values = self._column_changes(kind, command, repo, dict(current))
            changed = sorted(values)
            if values:
                try:
                    conn.execute(update(table).where(table.c.id == record_id).values(**values))
                except IntegrityError as exc:
                    raise ConflictError(
                        f"The change collides with an existing {kind} record.",
                        id=record_id,
                        fields=changed,
                    ) from exc

            if kind is EntityKind.BUY:
                changed += self._relink_buy(conn, repo, command, record_id)
            if kind in _TAG_LINKS:
                changed += self._retag(conn, repo, kind, command, record_id)

        return {"id": record_id, "kind": kind.value, "changed": changed}

    def _column_changes(
        self,
        kind: EntityKind,
        command: Command,
        repo: RecordRepository,
        current: dict[str, Any],
    ) -> dict[str, Any]:
        values: dict[str, Any] = {}
        text = command.text
        datestamp = command.date.resolve(self.today).isoformat() if command.date.is_some() else None
        amount = command.value.value

        if kind is EntityKind.CAT:
            if command.category.is_set:
                values["abbr"] = command.category.value
            if text is not None:
                values["name"] = text
        elif kind is EntityKind.TAG:
            if text is not None:
                values["name"] = text
        elif kind is EntityKind.BIKE:
            if text is not None:
                values["name"] = text
            if datestamp is not None:
                values["datestamp"] = datestamp
            if command.category.is_set:
                cat = repo.get_category(command.category.value)
                if cat["id"] != current["category_id"]:
                    values["category_id"] = cat["id"]
                    values["id_in_cat"] = repo.next_bike_ordinal(cat["id"])
                if command.bike_id.is_set:
                    values["id_in_cat"] = command.bike_id.value
        elif kind is EntityKind.BUY:
            if text is not None:
                values["name"] = text
            if amount is not None:
                values["price"] = amount
            if datestamp is not None:
                values["datestamp"] = datestamp
        else:  # ride, lub
            if command.bike_ref is not None:
                target = repo.get_bike(command.category.value, command.bike_id.value)
                values["bike_id"] = target["id"]
            elif command.category.is_set:
                raise UsageError("A bike is addressed as CODE:N.", category=command.category.value)
            if text is not None:
                values["annotation"] = text
            if amount is not None:
                values["distance"] = amount
            if datestamp is not None:
                values["datestamp"] = datestamp

        return {key: value for key, value in values.items() if current.get(key) != value}

    def _relink_buy(
        self,
        conn: Connection,
        repo: RecordRepository,
        command: Command,
        buy_id: int,
    ) -> list[str]:
        if not command.category.is_set:
            return []
        cat = repo.get_category(command.category.value)
        conn.execute(delete(buy_to_category).where(buy_to_category.c.buy_id == buy_id))
        conn.execute(insert(buy_to_category).values(buy_id=buy_id, category_id=cat["id"]))
        changed = ["category"]
        if command.bike_id.is_set:
            linked = repo.get_bike(command.category.value, command.bike_id.value)
            conn.execute(delete(buy_to_bike).where(buy_to_bike.c.buy_id == buy_id))
            conn.execute(insert(buy_to_bike).values(buy_id=buy_id, bike_id=linked["id"]))
            changed.append("bike")
        else:
            # Keep a bike link only while the bike belongs to the new category.
            foreign = select(bike.c.id).where(bike.c.category_id != cat["id"])
            dropped = conn.execute(
                delete(buy_to_bike).where(
                    buy_to_bike.c.buy_id == buy_id, buy_to_bike.c.bike_id.in_(foreign)
                )
            )
            if dropped.rowcount:
                changed.append("bike")
        return changed

    def _retag(
        self,
        conn: Connection,
        repo: RecordRepository,
        kind: EntityKind,
        command: Command,
        record_id: int,
    ) -> list[str]:
        link_table, owner_column = _TAG_LINKS[kind]
        attached = set(repo.tag_ids_for(link_table, owner_column, record_id))
        changed: list[str] = []

        for name in sorted(command.include_tags):
            tag_id = repo.tag_get_or_create(name)
            if tag_id not in attached:
                conn.execute(insert(link_table).values({"tag_id": tag_id, owner_column: record_id}))
                changed.append(f"+{name}")

        for name in sorted(command.exclude_tags):
            tag_id = repo.find_tag(name)
            if tag_id is None or tag_id not in attached:
                continue
            conn.execute(
                delete(link_table).where(
                    link_table.c.tag_id == tag_id,
                    link_table.c[owner_column] == record_id,
                )
            )
            repo.delete_tag_if_unused(tag_id)
            changed.append(f"-{name}")

        return changed

    # ------------------------------------------------------------------
    # Tag rename by name
    # ------------------------------------------------------------------

    def _rename_tag_by_name(self, command: Command) -> dict[str, Any]:
        if len(command.annotation) != 2:
            raise UsageError("Command params missed. Expected: `bcl mod tag OLD NEW`.")
        old, new = command.annotation

        with self._store.transaction() as conn:
            repo = RecordRepository(conn)
            tag_id = repo.find_tag(old)
            if tag_id is None:
                raise NotFoundError(f"Tag '{old}' does not exist.", name=old)
            if old == new:
                return {"id": tag_id, "kind": EntityKind.TAG.value, "changed": []}
            if repo.find_tag(new) is not None:
                raise ConflictError(f"Tag '{new}' already exists.", name=new)
            conn.execute(update(tag).where(tag.c.id == tag_id).values(name=new))

        return {"id": tag_id, "kind": EntityKind.TAG.value, "changed": ["name"], "name": new}
