"""QueryService — filtered, read-only listings.

Reads use ``store.connect()``; nothing is committed.
"""

from __future__ import annotations

from bcl.domain.command import Command
from bcl.domain.errors import BclError
from bcl.domain.records import RecordRow
from bcl.domain.types import EntityKind
from bcl.infrastructure.repositories.filters import compile_and_fetch
from bcl.infrastructure.repositories.records import RecordRepository
from bcl.services.base import BaseService
from bcl.services.result import ServiceResult


class QueryService(BaseService):
    """Handles ``list`` / ``ls`` for every record kind."""

    def category_codes(self) -> list[str]:
        """Category abbreviations currently in the store."""
        with self._store.connect() as conn:
            return RecordRepository(conn).category_codes()

    def fetch(self, command: Command, kind: EntityKind | None = None) -> list[RecordRow]:
        """Filtered, renumbered rows; raises on invalid filters."""
        with self._store.connect() as conn:
            return compile_and_fetch(conn, command, kind, today=self.today)

    def list_records(self, command: Command) -> ServiceResult:
        """List records of the command's kind with its filters applied."""
        kind = EntityKind(command.kind.value)
        op = f"list_{kind}"
        try:
            rows = self.fetch(command, kind)
        except BclError as exc:
            return self._failure(op, exc)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "kind": kind.value,
                "count": len(rows),
                "items": [row.to_payload() for row in rows],
            },
            meta={
                "limit": command.limit,
                "currency": self._store.settings.display.currency,
                "unit": self._store.settings.display.distance_unit,
            },
        )
