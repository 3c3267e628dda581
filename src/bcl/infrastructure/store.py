"""Store — owns the database engine and the transaction boundary.

The Store is the single dependency injected into every service. Reads go
through :meth:`connect` (``engine.connect()``); writes go through
:meth:`transaction` (``engine.begin()``), which commits on success and
rolls back when the block raises.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from bcl.infrastructure.database.engine import init_database

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from bcl.config.settings import BclSettings

logger = logging.getLogger(__name__)


class Store:
    """Database access for one CLI invocation.

    Constructed lazily by :class:`~bcl.commands._context.AppContext` from
    :class:`BclSettings`. Services receive the Store via their
    :class:`~bcl.services.base.BaseService` constructor.
    """

    def __init__(self, settings: BclSettings) -> None:
        self._settings = settings
        self._engine: Engine = init_database(self.path)
        logger.debug("Opened store at %s", self.path)

    @property
    def path(self) -> Path:
        """The SQLite database file."""
        return self._settings.db_path

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def settings(self) -> BclSettings:
        return self._settings

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Read-only connection; nothing is committed."""
        with self._engine.connect() as conn:
            yield conn

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Atomic write block.

        Usage::

            with store.transaction() as conn:
                conn.execute(insert(ride).values(...))
                conn.execute(insert(tag_to_ride).values(...))
                # Both commit on success, both roll back on failure.
        """
        with self._engine.begin() as conn:
            yield conn

    def close(self) -> None:
        """Dispose the engine's connection pool."""
        self._engine.dispose()
