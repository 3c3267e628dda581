"""ServiceResult and ServiceError — what every bcl service hands back.

INVARIANT: services never print and never exit. ``AppContext.emit`` is the
only consumer that turns a ServiceResult into output and an exit status.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from bcl.domain.errors import BclError


class ServiceError(BaseModel):
    """Stable error code, a user-facing message and the offending inputs."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: BclError) -> ServiceError:
        return cls(code=exc.code, message=exc.message, detail=exc.detail)


class ServiceResult(BaseModel):
    """Outcome of one classified command.

    ``op`` is ``<verb>_<kind>`` (``list_ride``, ``del_tag``), or ``command``
    when the tokens never got far enough to name one. Listings carry
    ``data = {kind, count, items}``; mutations carry the touched record.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls,
        op: str,
        code: str,
        message: str,
        *,
        detail: dict[str, Any] | None = None,
        warnings: list[str] | None = None,
    ) -> ServiceResult:
        error = ServiceError(code=code, message=message, detail=detail or {})
        return cls(ok=False, op=op, error=error, warnings=warnings or [])

    @property
    def items(self) -> list[dict[str, Any]]:
        """Rows of a listing result; empty for mutations and failures."""
        rows = self.data.get("items")
        return rows if isinstance(rows, list) else []
