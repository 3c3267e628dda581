"""Typed rows returned by listings.

Every row carries its permanent ``id`` and the ``dyn_id`` it received in
the current filtered listing (0 until the listing is renumbered).
"""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RecordRow(BaseModel):
    """Common shape of a listed record."""

    model_config = ConfigDict(frozen=True)

    dyn_id: int = 0
    id: int

    def with_dyn_id(self, dyn_id: int) -> RecordRow:
        return self.model_copy(update={"dyn_id": dyn_id})

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class CategoryRow(RecordRow):
    abbr: str
    name: str


class TagRow(RecordRow):
    name: str


class BikeRow(RecordRow):
    category: str
    id_in_cat: int
    name: str
    datestamp: date

    @property
    def ref(self) -> str:
        return f"{self.category}:{self.id_in_cat}"


class BuyRow(RecordRow):
    name: str
    price: float
    datestamp: date
    category: str | None = None
    bike: str | None = None
    tags: list[str] = Field(default_factory=list)


class RideRow(RecordRow):
    bike: str
    datestamp: date
    distance: float
    annotation: str | None = None
    tags: list[str] = Field(default_factory=list)


class LubRow(RecordRow):
    """A chain lubrication; ``distance`` is the distance ridden since the previous one."""

    bike: str
    datestamp: date
    distance: float
    annotation: str | None = None
