# opsmith/coercion/exceptions.py
from typing import Any, ClassVar

from opsmith.exceptions.base import ExecutionError


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or repr(tp)


class ArityMismatchError(ExecutionError):
    phase: ClassVar[str] = "coercion"

    def __init__(self, message: str = "", *, expected: int = 0, actual: int = 0, **kwargs: Any) -> None:
        if not message:
            message = f"expected {expected} argument(s), got {actual}"
        super().__init__(message, **kwargs)
        self.expected = expected
        self.actual = actual


class CoercionError(ExecutionError):
    phase: ClassVar[str] = "coercion"

    def __init__(
            self,
            message: str = "",
            *,
            index: int = -1,
            target_type: Any = None,
            value: str | None = None,
            **kwargs: Any,
    ) -> None:
        if not message:
            message = f"argument {index} ({value!r}) cannot be converted to {_type_name(target_type)}"
        super().__init__(message, **kwargs)
        self.index = index
        self.target_type = target_type
        self.value = value

    def as_dict(self) -> dict[str, Any]:
        out = super().as_dict()
        out["index"] = self.index
        out["target_type"] = _type_name(self.target_type)
        return out
