# opsmith/compiler/exceptions.py
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, ClassVar

from opsmith.exceptions.base import ExecutionError, ImplementError


@dataclass(frozen=True)
class Diagnostic:
    """One compiler complaint about generated source."""

    line: int | None
    column: int | None
    message: str

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"line {self.line}, col {self.column or 0}: {self.message}"


class CompilationError(ImplementError):
    phase: ClassVar[str] = "compilation"

    def __init__(self, message: str = "", *, diagnostics: list[Diagnostic] | None = None, **kwargs: Any) -> None:
        self.diagnostics = list(diagnostics or [])
        if not message:
            message = "; ".join(str(d) for d in self.diagnostics) or "compilation failed"
        super().__init__(message, **kwargs)

    def as_dict(self) -> dict[str, Any]:
        out = super().as_dict()
        out["diagnostics"] = [asdict(d) for d in self.diagnostics]
        return out


class ResolutionError(ImplementError):
    """The compiled artifact does not expose exactly one usable entry point."""

    phase: ClassVar[str] = "resolution"


class InvocationError(ExecutionError):
    """The generated code raised while running.

    ``exc_type`` names the generated code's exception class. Only the
    message travels positionally so the error pickles across the sandbox
    process boundary.
    """

    phase: ClassVar[str] = "invocation"

    def __init__(self, message: str = "", *, exc_type: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.exc_type = exc_type

    def as_dict(self) -> dict[str, Any]:
        out = super().as_dict()
        out["exc_type"] = self.exc_type
        return out
