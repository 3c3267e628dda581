"""Error taxonomy for classification, lookup, and storage failures.

Every error raised below the CLI is a :class:`BclError`. Services convert
them into ``ServiceResult(ok=False, error=ServiceError(code=..., ...))``;
only :class:`bcl.commands._context.AppContext` prints and sets the exit code.
"""

from __future__ import annotations

from typing import Any


class BclError(Exception):
    """Base class for user-facing failures.

    Attributes:
        code: Stable machine-readable error code.
        message: Human-readable description.
        detail: Extra context (offending key, raw value, ids).
    """

    code = "ERROR"

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class CommandSyntaxError(BclError):
    """Token has the wrong shape, part count, or an unknown key."""

    code = "SYNTAX_ERROR"


class UsageError(BclError):
    """An action was called without the parameters it needs."""

    code = "MISSING_PARAMS"


class ConflictError(BclError):
    """A write-once value was given twice, or two inputs exclude each other."""

    code = "CONFLICT"


class ValueTypeError(BclError):
    """A value does not parse as the expected numeric or date type."""

    code = "INVALID_VALUE"


class SemanticError(BclError):
    """Input is well-formed but meaningless (future date, unknown object)."""

    code = "INVALID_INPUT"


class NotFoundError(BclError):
    """A selector or reference resolved to nothing."""

    code = "NOT_FOUND"


class AmbiguousError(BclError):
    """A selector resolved to more than one record where one was required."""

    code = "AMBIGUOUS"


class ConstraintError(BclError):
    """The store refused a write because of referential integrity."""

    code = "CONSTRAINT"


class UnsupportedError(BclError):
    """A recognised verb that this build does not carry out."""

    code = "UNSUPPORTED"
