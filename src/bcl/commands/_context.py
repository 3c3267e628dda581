"""AppContext — shared Click context for the root command.

Created once per invocation. Provides lazy Store initialization and
centralized result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from bcl.config.logging import configure_logging
from bcl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from bcl.config.settings import BclSettings
    from bcl.infrastructure.store import Store
    from bcl.services.result import ServiceResult


class AppContext:
    """Shared context stored on ``click.Context.obj``.

    The store is lazily initialized on first use so ``--help`` and
    ``--version`` never touch the database.
    """

    def __init__(self, settings: BclSettings) -> None:
        self.settings = settings
        self._store: Store | None = None

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def store(self) -> Store:
        """The store instance (created lazily on first access)."""
        if self._store is None:
            from bcl.infrastructure.store import Store

            self._store = Store(self.settings)
        return self._store

    def confirm(self, question: str) -> bool:
        """Ask a yes/no question on the terminal; defaults to no."""
        return click.confirm(question, default=False)

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
            self._store = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
