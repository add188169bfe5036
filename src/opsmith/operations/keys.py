# opsmith/operations/keys.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from .exceptions import OperationKeyError

__all__ = [
    "OperationKey",
    "OperationKeyLike",
]

# Union type callers can use for "key-like" inputs
OperationKeyLike = Union["OperationKey", tuple[str, str]]

# -----------------------------------------------------------------------------
# Validation constraints (single source of truth)
# -----------------------------------------------------------------------------

_MAX_LEN = 128
_ALLOWED_RE = re.compile(r"^[A-Za-z0-9._-]+$")


def _validate_label(value: str, field: str) -> str:
    """
    Validate a single key label (category/name).

    Rules:
    - must be a string
    - trimmed value cannot be empty
    - length ≤ 128
    - allowed characters: A–Z, a–z, 0–9, dot (.), underscore (_), hyphen (-)

    Returns the trimmed value on success, raises OperationKeyError on failure.
    """
    if not isinstance(value, str):
        raise OperationKeyError(f"{field} must be a string (got {type(value)!r})")
    s = value.strip()
    if not s:
        raise OperationKeyError(f"{field} cannot be empty")
    if len(s) > _MAX_LEN:
        raise OperationKeyError(f"{field} too long (> {_MAX_LEN})")
    if not _ALLOWED_RE.match(s):
        raise OperationKeyError(f"{field} contains illegal characters: {value!r}")
    return s


@dataclass(frozen=True, slots=True)
class OperationKey:
    """
    Immutable (category, name) pair identifying a cached operation.

    Equality and hashing are by value over the pair, so ``("math", "add.x")``
    and ``("math.add", "x")`` are distinct keys even though their display
    strings collide.
    """

    category: str
    name: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", _validate_label(self.category, "category"))
        object.__setattr__(self, "name", _validate_label(self.name, "name"))

    @property
    def as_tuple(self) -> tuple[str, str]:
        return self.category, self.name

    @property
    def as_str(self) -> str:
        """Display form 'category.name' for logs and spans."""
        return f"{self.category}.{self.name}"

    def __str__(self) -> str:  # pragma: no cover
        return self.as_str

    def __repr__(self) -> str:  # pragma: no cover
        return f"OperationKey({self.category!r}, {self.name!r})"

    @classmethod
    def get(cls, value: OperationKeyLike) -> OperationKey:
        """Coerce an OperationKey or a ``(category, name)`` pair into a key."""
        if isinstance(value, OperationKey):
            return value
        if isinstance(value, tuple) and len(value) == 2:
            return cls(*value)
        raise OperationKeyError(f"Cannot build an OperationKey from {value!r}")
