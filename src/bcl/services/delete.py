"""DeleteService — ``del`` for every record kind.

Bikes, purchases, rides, and lubrications are picked from the filtered
listing of the same command (static id, dynamic id, or a filter that
matches exactly one row). Deleting a purchase or ride also drops the tags
it leaves unused.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy import Connection, Table, delete, select
from sqlalchemy.exc import IntegrityError

from bcl.domain.command import Command
from bcl.domain.errors import BclError, ConstraintError, NotFoundError, UsageError
from bcl.domain.types import EntityKind
from bcl.infrastructure.database.schema import (
    bike,
    buy,
    category,
    chain_lubrication,
    ride,
    tag,
    tag_to_buy,
    tag_to_ride,
)
from bcl.infrastructure.repositories.filters import compile_and_fetch
from bcl.infrastructure.repositories.records import RecordRepository
from bcl.services._helpers import select_one
from bcl.services.base import BaseService
from bcl.services.result import ServiceResult

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]

# kind -> (table, tag link table, owner column, integrity message)
_TARGETS: dict[EntityKind, tuple[Table, Table | None, str | None, str]] = {
    EntityKind.BIKE: (
        bike,
        None,
        None,
        "You cannot delete a bike that still has rides or chain lubrications.",
    ),
    EntityKind.BUY: (buy, tag_to_buy, "buy_id", "The purchase is still referenced."),
    EntityKind.RIDE: (ride, tag_to_ride, "ride_id", "The ride is still referenced."),
    EntityKind.LUB: (chain_lubrication, None, None, "The chain lubrication is still referenced."),
}


class DeleteService(BaseService):
    """Handles record deletion."""

    def delete(self, command: Command, *, confirm: Confirm | None = None) -> ServiceResult:
        """Delete the record (or tags) the command selects.

        Args:
            command: A classified ``del`` command.
            confirm: Asked before deleting tags; None means no prompt.
        """
        kind = EntityKind(command.kind.value)
        op = f"del_{kind}"
        try:
            if kind is EntityKind.TAG:
                return self._delete_tags(op, command, confirm)
            if kind is EntityKind.CAT:
                data = self._delete_category(command)
            else:
                data = self._delete_record(kind, command)
        except BclError as exc:
            return self._failure(op, exc)

        logger.info("Deleted %s: %s", kind, data)
        return ServiceResult(ok=True, op=op, data=data)

    # ------------------------------------------------------------------
    # Per-kind handlers
    # ------------------------------------------------------------------

    def _delete_record(self, kind: EntityKind, command: Command) -> dict[str, Any]:
        if not (command.static_id.is_set or command.dyn_id.is_set):
            msg = (
                f"Command params missed. Expected: `bcl del {kind} id:N` "
                f"or `bcl N del {kind} [filters]`."
            )
            raise UsageError(msg)
        table, link_table, owner_column, refused = _TARGETS[kind]

        with self._store.transaction() as conn:
            rows = compile_and_fetch(conn, command, kind, today=self.today)
            target = select_one(rows, command, what=kind.value)

            tag_ids: list[int] = []
            repo = RecordRepository(conn)
            if link_table is not None and owner_column is not None:
                tag_ids = repo.tag_ids_for(link_table, owner_column, target.id)

            try:
                conn.execute(delete(table).where(table.c.id == target.id))
            except IntegrityError as exc:
                raise ConstraintError(refused, id=target.id) from exc

            removed_tags = [name for tid in tag_ids if (name := repo.delete_tag_if_unused(tid))]

        return {"id": target.id, "record": target.to_payload(), "removed_tags": removed_tags}

    def _delete_category(self, command: Command) -> dict[str, Any]:
        if command.static_id.is_set:
            clause = category.c.id == command.static_id.value
        elif command.category.is_set:
            clause = category.c.abbr == command.category.value
        else:
            msg = "Command params missed. Expected: `bcl del cat id:N` or `bcl del cat:CODE`."
            raise UsageError(msg)

        with self._store.transaction() as conn:
            row = conn.execute(select(category).where(clause)).mappings().first()
            if row is None:
                raise NotFoundError("Category for your request was not found.")
            try:
                conn.execute(delete(category).where(category.c.id == row["id"]))
            except IntegrityError as exc:
                raise ConstraintError(
                    "You cannot delete a category that still has bikes.", category=row["abbr"]
                ) from exc

        return {"id": row["id"], "abbr": row["abbr"], "name": row["name"]}

    def _delete_tags(self, op: str, command: Command, confirm: Confirm | None) -> ServiceResult:
        names = sorted(command.include_tags | command.exclude_tags | set(command.annotation))
        if not names and not command.static_id.is_set:
            raise UsageError("Command params missed. Expected: `bcl del tag NAME...`.")

        with self._store.connect() as conn:
            stmt = select(tag.c.id, tag.c.name)
            if command.static_id.is_set:
                stmt = stmt.where(tag.c.id == command.static_id.value)
            else:
                stmt = stmt.where(tag.c.name.in_(names))
            found = {str(row.name): int(row.id) for row in conn.execute(stmt)}

        if not found:
            raise NotFoundError("No tag for your request was found.", names=names)
        warnings = [f"Tag '{name}' does not exist." for name in names if name not in found]

        listed = ", ".join(sorted(found))
        question = f"Delete tag(s) {listed} from every ride and purchase?"
        if confirm is not None and not confirm(question):
            warnings.append("Cancelled.")
            return ServiceResult(ok=True, op=op, data={"deleted": []}, warnings=warnings)

        with self._store.transaction() as conn:
            conn.execute(delete(tag).where(tag.c.id.in_(list(found.values()))))

        logger.info("Deleted tags: %s", listed)
        return ServiceResult(ok=True, op=op, data={"deleted": sorted(found)}, warnings=warnings)
