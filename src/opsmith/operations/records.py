"""Operation records and synthesis requests.

An :class:`OperationRecord` is what the registry hands out once an operation
has been synthesized and compiled. Records are immutable; any number of
callers may read and invoke them concurrently.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Sequence

from pydantic import Field

from opsmith.types import StrictBaseModel
from .keys import OperationKey

if TYPE_CHECKING:
    from opsmith.compiler.base import CompiledOperation


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or repr(tp)


class SynthesisRequest(StrictBaseModel):
    """Everything the synthesizer needs to ask for one operation."""

    category: str
    name: str
    arity: int = Field(ge=0)
    examples: list[tuple[str, ...]] = Field(default_factory=list)

    @property
    def key(self) -> OperationKey:
        return OperationKey(self.category, self.name)


@dataclass(frozen=True, slots=True)
class OperationRecord:
    """Immutable registry payload for an implemented operation."""

    key: OperationKey
    operation: CompiledOperation
    parameter_types: tuple[Any, ...]
    source: str = field(default="", repr=False)
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def arity(self) -> int:
        return len(self.parameter_types)

    @property
    def label(self) -> str:
        return self.key.as_str

    def invoke(self, args: Sequence[Any]) -> Any:
        return self.operation.invoke(args)

    def describe(self) -> dict[str, Any]:
        return {
            "category": self.key.category,
            "name": self.key.name,
            "class": self.operation.class_name,
            "method": self.operation.method_name,
            "parameters": [_type_name(tp) for tp in self.parameter_types],
            "created_at": self.created_at.isoformat(),
        }


__all__ = ["OperationRecord", "SynthesisRequest"]
