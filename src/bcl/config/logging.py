"""structlog setup for bcl.

Everything goes to stderr so stdout stays clean for listings and ``--json``:
- console renderer by default, colored only on a TTY
- JSON lines with ``--log-json``

Module loggers are plain ``logging.getLogger(__name__)``; their records pass
through the same processor chain as structlog loggers. While a command runs,
:func:`command_context` binds its op and classified fields to every line.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

# Third-party loggers that stay at WARNING even with --verbose.
_QUIET_LOGGERS = ("sqlalchemy",)


def _drop_empty(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Drop unset command fields bound by :func:`command_context`."""
    return {key: value for key, value in event_dict.items() if value not in (None, [], {})}


def _processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        _drop_empty,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route structlog and stdlib records through one stderr handler.

    Args:
        verbose: Let ``bcl.*`` loggers emit DEBUG. Otherwise WARNING and up.
        log_json: Render JSON lines instead of the console format.
    """
    shared = _processors()
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("bcl").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def command_context(op: str, **fields: Any) -> Iterator[None]:
    """Bind *op* and the classified command *fields* to log lines in this block."""
    with structlog.contextvars.bound_contextvars(op=op, **fields):
        yield
