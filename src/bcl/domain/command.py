"""Command — the validated descriptor handed from the classifier to an action.

A Command is built once per invocation, mutated while tokens are
classified, validated as a whole, then frozen and handed to exactly one
action.

INVARIANT: ``dyn_id`` and ``static_id`` are never both set.
INVARIANT: ``bike_id`` is only ever set together with ``category``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from bcl.domain.dates import DateExpr
from bcl.domain.errors import ConflictError, SemanticError
from bcl.domain.fields import Field

DEFAULT_LIMIT = 10


@dataclass
class Command:
    """Structured query/mutation descriptor.

    Attributes:
        verb: add / del / mod / edit / list / graph / sync.
        kind: Target object (bike, buy, ride, lub, cat, tag, or an unknown
            word from the ``_word`` shorthand, rejected at dispatch).
        category: Category code (``G``, ``MTB``).
        bike_id: Bike ordinal within ``category``.
        annotation: Free-text tokens in input order.
        date: Absolute (possibly partial) date.
        gt: Strict lower date bound.
        lt: Strict upper date bound.
        dyn_id: 1-based position in the most recent filtered listing.
        static_id: Permanent primary key.
        value: Exact price / distance.
        value_gt: Strict lower value bound.
        value_lt: Strict upper value bound.
        limit: Result cap; 0 means unlimited.
        include_tags: Every listed tag must be present.
        exclude_tags: None of the listed tags may be present.
    """

    verb: Field[str] = field(default_factory=Field)
    kind: Field[str] = field(default_factory=Field)
    category: Field[str] = field(default_factory=Field)
    bike_id: Field[int] = field(default_factory=Field)
    annotation: list[str] = field(default_factory=list)
    date: DateExpr = field(default_factory=DateExpr)
    gt: DateExpr = field(default_factory=DateExpr)
    lt: DateExpr = field(default_factory=DateExpr)
    dyn_id: Field[int] = field(default_factory=Field)
    static_id: Field[int] = field(default_factory=Field)
    value: Field[float] = field(default_factory=Field)
    value_gt: Field[float] = field(default_factory=Field)
    value_lt: Field[float] = field(default_factory=Field)
    limit: int = DEFAULT_LIMIT
    include_tags: set[str] = field(default_factory=set)
    exclude_tags: set[str] = field(default_factory=set)
    _frozen: bool = field(default=False, init=False, repr=False, compare=False)

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def text(self) -> str | None:
        """Annotation tokens joined with spaces, or None when empty."""
        return " ".join(self.annotation) if self.annotation else None

    @property
    def bike_ref(self) -> str | None:
        """``CODE:N`` when a specific bike is addressed."""
        if self.category.is_set and self.bike_id.is_set:
            return f"{self.category.value}:{self.bike_id.value}"
        return None

    @property
    def has_tag_filter(self) -> bool:
        return bool(self.include_tags or self.exclude_tags)

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, today: date | None = None) -> None:
        """Whole-command checks run once every token has been classified."""
        if self.dyn_id.is_set and self.static_id.is_set:
            raise ConflictError("Input dynamic id or static id, not both.")

        if not self.date.is_valid(today):
            raise SemanticError("Non valid date given.", date=_components(self.date))
        for bound in (self.gt, self.lt):
            if bound.is_some():
                bound.range_start(today)  # raises on impossible calendar dates

        both = self.include_tags & self.exclude_tags
        if both:
            names = ", ".join(sorted(both))
            raise ConflictError(f"Tag included and excluded at once: {names}.", tags=sorted(both))

    def freeze(self) -> None:
        """Close the classification phase; later writes to any field fail."""
        for box in (
            self.verb,
            self.kind,
            self.category,
            self.bike_id,
            self.dyn_id,
            self.static_id,
            self.value,
            self.value_gt,
            self.value_lt,
        ):
            box.freeze()
        self._frozen = True

    def describe(self) -> dict[str, Any]:
        """Plain-dict snapshot for logging and ``--json`` error detail."""
        return {
            "verb": self.verb.value,
            "kind": self.kind.value,
            "category": self.category.value,
            "bike_id": self.bike_id.value,
            "annotation": list(self.annotation),
            "date": _components(self.date),
            "gt": _components(self.gt),
            "lt": _components(self.lt),
            "dyn_id": self.dyn_id.value,
            "static_id": self.static_id.value,
            "value": self.value.value,
            "value_gt": self.value_gt.value,
            "value_lt": self.value_lt.value,
            "limit": self.limit,
            "include_tags": sorted(self.include_tags),
            "exclude_tags": sorted(self.exclude_tags),
        }


def _components(expr: DateExpr) -> dict[str, int | None]:
    return {"year": expr.year, "month": expr.month, "day": expr.day}
