# opsmith/compiler/base.py
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, ClassVar, Iterable, Protocol, Sequence, runtime_checkable

from .exceptions import InvocationError
from .references import normalize_references

logger = logging.getLogger(__name__)

__all__ = ["BaseCompiler", "CompiledOperation", "LocalOperation", "invocation_error"]


@runtime_checkable
class CompiledOperation(Protocol):
    """The narrow handle the engine uses to run an implemented operation."""

    class_name: str
    method_name: str
    parameter_types: tuple[Any, ...]

    def invoke(self, args: Sequence[Any]) -> Any:
        """Call the operation with already-coerced arguments.

        :raises InvocationError: when the generated code raises.
        """
        ...


def invocation_error(err: BaseException) -> InvocationError:
    return InvocationError(f"{type(err).__name__}: {err}", exc_type=type(err).__name__)


class LocalOperation:
    """An operation bound to an instance living in this process."""

    __slots__ = ("class_name", "method_name", "parameter_types", "_method")

    def __init__(
            self,
            *,
            class_name: str,
            method_name: str,
            parameter_types: tuple[Any, ...],
            method: Callable[..., Any],
    ) -> None:
        self.class_name = class_name
        self.method_name = method_name
        self.parameter_types = parameter_types
        self._method = method

    def invoke(self, args: Sequence[Any]) -> Any:
        try:
            return self._method(*args)
        except BaseException as err:  # noqa: BLE001
            # generated code may raise SystemExit or KeyboardInterrupt without importing anything
            raise invocation_error(err) from err

    def __repr__(self) -> str:  # pragma: no cover
        return f"<LocalOperation {self.class_name}.{self.method_name}>"


class BaseCompiler(ABC):
    """Compiles generated source into a :class:`CompiledOperation`."""

    backend: ClassVar[str] = "base"

    def __init__(self, references: Iterable[str] | None = None) -> None:
        self.references = normalize_references(references)

    def effective_references(self, references: Iterable[str] | None) -> frozenset[str]:
        return self.references if references is None else normalize_references(references)

    @abstractmethod
    def compile(
            self,
            source: str,
            references: Iterable[str] | None = None,
            *,
            arity: int | None = None,
            label: str | None = None,
    ) -> CompiledOperation:
        """Compile ``source`` and resolve its entry point.

        :param references: modules the source may import; the compiler's own
            set when omitted.
        :param arity: expected parameter count, checked when given.
        :param label: short name used in the artifact's module name.
        :raises CompilationError: source does not parse, imports outside the
            reference set, or fails while loading.
        :raises ResolutionError: no single class / public method, or arity
            mismatch.
        """
        ...

    def close(self) -> None:
        """Release backend resources. Safe to call more than once."""

    def __repr__(self) -> str:  # pragma: no cover
        return f"<{type(self).__name__} backend={self.backend}>"
