"""Set-once field box used by the command model.

INVARIANT: a populated field rejects a second populating write until it is
cleared. Once frozen (after classification) no write is accepted at all.
"""

from __future__ import annotations

from typing import Generic, TypeVar, overload

from bcl.domain.errors import ConflictError

T = TypeVar("T")


class FrozenFieldError(RuntimeError):
    """Raised when code writes to a field after the command was frozen."""


class Field(Generic[T]):
    """Optional value with explicit "already set" conflict detection."""

    __slots__ = ("_frozen", "_value")

    def __init__(self, value: T | None = None) -> None:
        self._value = value
        self._frozen = False

    def __repr__(self) -> str:
        return f"Field({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Field):
            return self._value == other._value
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    @property
    def value(self) -> T | None:
        return self._value

    @property
    def is_set(self) -> bool:
        return self._value is not None

    @property
    def frozen(self) -> bool:
        return self._frozen

    @overload
    def get(self) -> T | None: ...

    @overload
    def get(self, default: T) -> T: ...

    def get(self, default: T | None = None) -> T | None:
        """Return the value, or *default* when unset."""
        return self._value if self._value is not None else default

    def set_once(self, value: T, message: str) -> None:
        """Populate the field, raising :class:`ConflictError` if already set."""
        self._check_writable()
        if self._value is not None:
            raise ConflictError(message, current=self._value, given=value)
        self._value = value

    def set(self, value: T | None) -> None:
        """Overwrite the field unconditionally."""
        self._check_writable()
        self._value = value

    def clear(self) -> None:
        self.set(None)

    def freeze(self) -> None:
        self._frozen = True

    def _check_writable(self) -> None:
        if self._frozen:
            raise FrozenFieldError("Field is frozen; the command is already classified")
