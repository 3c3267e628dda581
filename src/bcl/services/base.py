"""BaseService — foundation for all bcl services.

Every service receives a :class:`Store` at construction time. Services
own their transaction boundaries via ``self._store.transaction()`` and
turn domain exceptions into failed :class:`ServiceResult` objects.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from bcl.domain.errors import BclError
from bcl.services._helpers import today_or_now
from bcl.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from bcl.infrastructure.store import Store

logger = logging.getLogger(__name__)


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class CreateService(BaseService):
            def add(self, command: Command) -> ServiceResult:
                with self._store.transaction() as conn:
                    ...
    """

    def __init__(self, store: Store, *, today: date | None = None) -> None:
        self._store = store
        self._today = today

    @property
    def today(self) -> date:
        """Reference date for defaults and relative date tokens."""
        return today_or_now(self._today)

    @staticmethod
    def _failure(op: str, exc: BclError, warnings: list[str] | None = None) -> ServiceResult:
        """Wrap a domain exception into a failed ServiceResult."""
        logger.debug("%s failed with %s: %s", op, exc.code, exc.message)
        return ServiceResult(
            ok=False, op=op, warnings=warnings or [], error=ServiceError.from_exception(exc)
        )
