# opsmith/exceptions/base.py
from __future__ import annotations

from typing import Any, ClassVar


class OpsmithError(Exception):
    """Base for all opsmith exceptions."""


# ----------------------------------------------------------------------------
# Other errors
# ----------------------------------------------------------------------------
class RetryableError: ...


class NonRetryableError: ...


class ConfigurationError(OpsmithError): ...


# ----------------------------------------------------------------------------
# Operation lifecycle errors
# ----------------------------------------------------------------------------
class OperationError(OpsmithError):
    """An error tied to a single operation and a pipeline phase.

    ``key`` is filled in by the engine when the raising component does not
    know which operation it is working on (e.g. the coercer).
    """

    phase: ClassVar[str | None] = None

    def __init__(self, message: str = "", *, key: Any = None, phase: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.key = key
        if phase is not None:
            self.phase = phase

    def with_key(self, key: Any) -> OperationError:
        if self.key is None:
            self.key = key
        return self

    @property
    def operation(self) -> str | None:
        if self.key is None:
            return None
        return getattr(self.key, "as_str", str(self.key))

    def as_dict(self) -> dict[str, Any]:
        return {
            "error": type(self).__name__,
            "detail": self.message,
            "operation": self.operation,
            "phase": self.phase,
        }

    def __str__(self) -> str:
        text = self.message or type(self).__name__
        if self.operation is None:
            return text
        return f"{text} (operation={self.operation}, phase={self.phase})"


class ImplementError(OperationError, RetryableError):
    """Synthesis or compilation failed; the operation stays unimplemented."""


class ExecutionError(OperationError, NonRetryableError):
    """A caller-visible failure while executing an implemented operation."""
