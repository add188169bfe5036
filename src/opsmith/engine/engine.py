# opsmith/engine/engine.py
"""
The execution engine: synthesize -> compile -> cache -> invoke.

Per operation key the engine moves through three states:

    Unimplemented --aimplement--> Implementing --ok--> Implemented
                                       |
                                       +--error--> Unimplemented

``Implemented`` is terminal for the life of the process. The Implementing
state is the registry's pending slot, so concurrent first requests for a key
run one synthesis between them.
"""
import asyncio
import logging
from typing import Any, Iterable, Sequence

from asgiref.sync import async_to_sync, sync_to_async

from ..coercion import ArgumentCoercer
from ..compiler import BaseCompiler, normalize_references
from ..exceptions import OperationError
from ..operations import OperationKey, OperationRecord, SynthesisRequest
from ..registry import OperationRegistry
from ..tracing import operation_attributes, service_span

logger = logging.getLogger(__name__)

__all__ = ["ExecutionEngine"]


class ExecutionEngine:
    """Coordinates the synthesizer, compiler, registry and coercer.

    All collaborators are injected; ``registry`` and ``coercer`` default to
    fresh instances. ``synthesizer`` only needs an async
    ``asynthesize(SynthesisRequest) -> str``.
    """

    def __init__(
            self,
            synthesizer: Any,
            compiler: BaseCompiler,
            registry: OperationRegistry | None = None,
            coercer: ArgumentCoercer | None = None,
            references: Iterable[str] | None = None,
    ) -> None:
        self.synthesizer = synthesizer
        self.compiler = compiler
        self.registry = registry if registry is not None else OperationRegistry()
        self.coercer = coercer if coercer is not None else ArgumentCoercer()
        self.references = compiler.references if references is None else normalize_references(references)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<ExecutionEngine compiler={self.compiler.backend} operations={self.registry.count()}>"

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def is_implemented(self, category: str, name: str) -> bool:
        return OperationKey(category, name) in self.registry

    def describe(self, category: str, name: str) -> dict[str, Any]:
        """Introspection data for one implemented operation.

        :raises RegistryLookupError: if the operation is not implemented.
        """
        return self.registry.get((category, name)).describe()

    def operations(self) -> list[dict[str, Any]]:
        return [record.describe() for record in self.registry.records()]

    # ------------------------------------------------------------------
    # Implement
    # ------------------------------------------------------------------
    async def _build_record(self, request: SynthesisRequest) -> OperationRecord:
        key = request.key
        async with service_span(
                "opsmith.engine.implement",
                attributes=operation_attributes(key, arity=request.arity, backend=self.compiler.backend),
        ):
            source = await self.synthesizer.asynthesize(request)
            # compilation may block (sandbox round trip); keep it off the loop
            operation = await asyncio.to_thread(
                self.compiler.compile,
                source,
                self.references,
                arity=request.arity,
                label=f"{key.category}_{key.name}",
            )
            return OperationRecord(
                key=key,
                operation=operation,
                parameter_types=tuple(operation.parameter_types),
                source=source,
            )

    async def aimplement(
            self,
            category: str,
            name: str,
            arity: int,
            examples: Iterable[Sequence[Any]] = (),
    ) -> OperationRecord:
        """Implement ``category/name`` unless it already is; return its record.

        :raises SynthesisError | CompilationError | ResolutionError: the key
            stays unimplemented and a later call retries.
        """
        key = OperationKey(category, name)
        request = SynthesisRequest(
            category=key.category,
            name=key.name,
            arity=arity,
            examples=[tuple(str(v) for v in example) for example in examples],
        )
        try:
            return await self.registry.aget_or_implement(key, lambda: self._build_record(request))
        except OperationError as err:
            err.with_key(key)
            logger.warning("implementing %s failed during %s: %s", key.as_str, err.phase, err.message or err)
            raise

    def implement(self, category: str, name: str, arity: int, examples: Iterable[Sequence[Any]] = ()) -> OperationRecord:
        """Blocking variant of :meth:`aimplement`; not for use inside a running event loop."""
        return async_to_sync(self.aimplement)(category, name, arity, examples)

    # ------------------------------------------------------------------
    # Execute
    # ------------------------------------------------------------------
    async def aexecute(self, category: str, name: str, values: Sequence[Any]) -> Any:
        """Coerce ``values`` and invoke the operation, implementing it first if needed.

        :raises ArityMismatchError | CoercionError: bad caller input.
        :raises InvocationError: the generated code raised; never retried.
        """
        key = OperationKey(category, name)
        values = list(values)

        record = self.registry.lookup(key)
        if record is None:
            record = await self.aimplement(key.category, key.name, arity=len(values), examples=[values])

        async with service_span(
                "opsmith.engine.execute",
                attributes=operation_attributes(key, arity=len(values)),
        ):
            try:
                args = self.coercer.coerce(values, record.parameter_types)
                return await sync_to_async(record.invoke, thread_sensitive=False)(args)
            except OperationError as err:
                err.with_key(key)
                logger.info("executing %s failed during %s: %s", key.as_str, err.phase, err.message or err)
                raise

    def execute(self, category: str, name: str, values: Sequence[Any]) -> Any:
        """Blocking variant of :meth:`aexecute`."""
        return async_to_sync(self.aexecute)(category, name, values)

    async def arun(self, category: str, name: str, values: Sequence[Any]) -> Any:
        """Request flow: implement on first use (the request values as the example), then execute."""
        values = list(values)
        if not self.is_implemented(category, name):
            logger.debug("%s.%s not implemented yet; synthesizing", category, name)
            await self.aimplement(category, name, arity=len(values), examples=[values])
        return await self.aexecute(category, name, values)

    def run(self, category: str, name: str, values: Sequence[Any]) -> Any:
        return async_to_sync(self.arun)(category, name, values)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def close(self) -> None:
        self.compiler.close()
