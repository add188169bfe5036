# opsmith/compiler/inprocess.py
import logging
from typing import ClassVar, Iterable

from .artifacts import build_artifact
from .base import BaseCompiler, LocalOperation
from ..tracing import service_span_sync

logger = logging.getLogger(__name__)

__all__ = ["InProcessCompiler"]


class InProcessCompiler(BaseCompiler):
    """Loads generated code into the engine's own interpreter.

    Faster than the sandbox and easier to debug, but a misbehaving operation
    shares memory and CPU with the caller.
    """

    backend: ClassVar[str] = "inprocess"

    def compile(
            self,
            source: str,
            references: Iterable[str] | None = None,
            *,
            arity: int | None = None,
            label: str | None = None,
    ) -> LocalOperation:
        refs = self.effective_references(references)
        with service_span_sync(
                "opsmith.compiler.compile",
                attributes={"opsmith.compiler.backend": self.backend, "opsmith.label": label, "opsmith.arity": arity},
        ):
            artifact = build_artifact(source, refs, arity=arity, label=label)
        return LocalOperation(
            class_name=artifact.class_name,
            method_name=artifact.method_name,
            parameter_types=artifact.parameter_types,
            method=artifact.method,
        )
