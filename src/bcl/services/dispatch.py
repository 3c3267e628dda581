"""CommandService — classify raw tokens and route the Command to an action.

Pipeline: CLASSIFY → CHECK VERB/OBJECT → ROUTE → RESPOND

Unexpected storage failures surface as ``STORAGE_ERROR``; every other
failure is a :class:`~bcl.domain.errors.BclError` turned into a failed
ServiceResult by the service that raised it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError

from bcl.config.logging import command_context
from bcl.domain.classifier import classify
from bcl.domain.command import Command
from bcl.domain.errors import BclError, SemanticError, UnsupportedError, UsageError
from bcl.domain.types import EntityKind, Verb
from bcl.services.base import BaseService
from bcl.services.create import CreateService
from bcl.services.delete import Confirm, DeleteService
from bcl.services.query import QueryService
from bcl.services.result import ServiceResult
from bcl.services.update import UpdateService

logger = logging.getLogger(__name__)

_UNSUPPORTED = frozenset({Verb.EDIT, Verb.GRAPH, Verb.SYNC})
_KINDS = frozenset(kind.value for kind in EntityKind)


class CommandService(BaseService):
    """Entry point shared by the CLI and tests."""

    def classify(self, tokens: Sequence[str]) -> Command:
        """Classify *tokens* against the categories currently stored."""
        codes = QueryService(self._store, today=self._today).category_codes()
        return classify(
            tokens,
            category_codes=codes,
            default_limit=self._store.settings.query.default_limit,
            today=self.today,
        )

    def run(self, tokens: Sequence[str], *, confirm: Confirm | None = None) -> ServiceResult:
        """Classify *tokens* and carry out the resulting command."""
        op = "command"
        try:
            command = self.classify(tokens)
            op = self._op_name(command)
            with command_context(
                op,
                bike=command.bike_ref or command.category.value,
                static_id=command.static_id.value,
                dyn_id=command.dyn_id.value,
            ):
                self._check(command)
                return self._route(command, confirm)
        except BclError as exc:
            return self._failure(op, exc)
        except SQLAlchemyError as exc:
            logger.debug("Storage failure during %s", op, exc_info=True)
            orig = getattr(exc, "orig", None)
            return ServiceResult.failure(
                op,
                "STORAGE_ERROR",
                f"Database error: {exc.__class__.__name__}",
                detail={"reason": str(orig) if orig else str(exc)},
            )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _op_name(command: Command) -> str:
        verb = command.verb.get("command")
        kind = command.kind.value
        return f"{verb}_{kind}" if kind else verb

    @staticmethod
    def _check(command: Command) -> None:
        if not command.verb.is_set:
            raise UsageError("No command given. Expected one of: add, del, mod, list.")
        verb = Verb(command.verb.value)
        if verb in _UNSUPPORTED:
            raise UnsupportedError(f"'{verb}' is not supported yet.", verb=verb.value)
        if not command.kind.is_set:
            raise UsageError("No object given. Expected one of: bike, buy, ride, lub, cat, tag.")
        if command.kind.value not in _KINDS:
            raise SemanticError(f"Unknown object '{command.kind.value}'.", kind=command.kind.value)

    def _route(self, command: Command, confirm: Confirm | None) -> ServiceResult:
        verb = Verb(command.verb.value)
        if verb is Verb.LIST:
            return QueryService(self._store, today=self._today).list_records(command)
        if verb is Verb.ADD:
            return CreateService(self._store, today=self._today).add(command)
        if verb is Verb.DELETE:
            return DeleteService(self._store, today=self._today).delete(command, confirm=confirm)
        return UpdateService(self._store, today=self._today).modify(command)
