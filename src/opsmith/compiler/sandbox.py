# opsmith/compiler/sandbox.py
"""
Process-isolated compiler backend.

Generated code never runs in the engine process: compilation, resolution and
every invocation happen in ``spawn``-started worker processes. Each worker
keeps its own artifact cache keyed by source digest, so whichever worker
picks up a call compiles the source at most once and then reuses it.
"""
import concurrent.futures
import hashlib
import logging
import multiprocessing
import threading
import weakref
from concurrent.futures import ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from typing import Any, ClassVar, Iterable, Sequence

from .artifacts import Artifact, build_artifact
from .base import BaseCompiler, invocation_error
from .exceptions import CompilationError, InvocationError
from ..exceptions import OperationError
from ..tracing import service_span_sync

logger = logging.getLogger(__name__)

__all__ = ["SandboxCompiler", "SandboxedOperation", "source_digest"]


def source_digest(source: str) -> str:
    return hashlib.sha256(source.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Worker side; these run in the child processes
# ---------------------------------------------------------------------------
_WORKER_ARTIFACTS: dict[str, Artifact] = {}


def _worker_artifact(digest: str, source: str, references: frozenset[str], arity: int | None, label: str | None) -> Artifact:
    artifact = _WORKER_ARTIFACTS.get(digest)
    if artifact is None:
        artifact = build_artifact(source, references, arity=arity, label=label)
        _WORKER_ARTIFACTS[digest] = artifact
    return artifact


def _portable_type(tp: Any, module_name: str) -> Any:
    # types defined by the artifact cannot be pickled back to the parent
    if getattr(tp, "__module__", None) == module_name:
        return str
    return tp


def _worker_compile(
        digest: str,
        source: str,
        references: frozenset[str],
        arity: int | None,
        label: str | None,
) -> tuple[str, str, tuple[Any, ...]]:
    artifact = _worker_artifact(digest, source, references, arity, label)
    module_name = artifact.module.__name__
    return (
        artifact.class_name,
        artifact.method_name,
        tuple(_portable_type(tp, module_name) for tp in artifact.parameter_types),
    )


def _worker_invoke(
        digest: str,
        source: str,
        references: frozenset[str],
        arity: int | None,
        label: str | None,
        args: tuple[Any, ...],
) -> Any:
    artifact = _worker_artifact(digest, source, references, arity, label)
    try:
        return artifact.method(*args)
    except BaseException as err:  # noqa: BLE001
        # SystemExit included: the pool would re-raise it in the parent. No ``from``,
        # the traceback does not survive pickling anyway
        raise invocation_error(err) from None


# ---------------------------------------------------------------------------
# Parent side
# ---------------------------------------------------------------------------
class SandboxedOperation:
    """Parent-side handle; holds only source, names and parameter types."""

    __slots__ = ("class_name", "method_name", "parameter_types", "digest", "source", "references", "arity",
                 "label", "_compiler")

    def __init__(
            self,
            compiler: "SandboxCompiler",
            *,
            digest: str,
            source: str,
            references: frozenset[str],
            label: str | None,
            class_name: str,
            method_name: str,
            parameter_types: tuple[Any, ...],
    ) -> None:
        self._compiler = compiler
        self.digest = digest
        self.source = source
        self.references = references
        self.label = label
        self.class_name = class_name
        self.method_name = method_name
        self.parameter_types = parameter_types
        self.arity = len(parameter_types)

    def invoke(self, args: Sequence[Any]) -> Any:
        return self._compiler.run_in_worker(
            _worker_invoke,
            self.digest, self.source, self.references, self.arity, self.label, tuple(args),
            timeout=self._compiler.invoke_timeout_s,
            what=f"{self.class_name}.{self.method_name}",
        )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<SandboxedOperation {self.class_name}.{self.method_name} digest={self.digest[:12]}>"


class SandboxCompiler(BaseCompiler):
    """Compiles and runs generated code in a pool of spawned processes.

    :param max_workers: size of the worker pool.
    :param invoke_timeout_s: budget for one invocation. A running task cannot be
        cancelled, so on timeout every worker of the pool is terminated and a
        fresh pool is started. Invocations running on other workers at that
        moment fail too, with an ``InvocationError`` naming the timed-out call.
    :param compile_timeout_s: budget for compiling and resolving one source.
    """

    backend: ClassVar[str] = "sandbox"

    def __init__(
            self,
            references: Iterable[str] | None = None,
            *,
            max_workers: int = 2,
            invoke_timeout_s: float | None = 10,
            compile_timeout_s: float | None = 30,
    ) -> None:
        super().__init__(references)
        self.max_workers = max(1, int(max_workers))
        self.invoke_timeout_s = invoke_timeout_s
        self.compile_timeout_s = compile_timeout_s
        self._lock = threading.Lock()
        self._pool: ProcessPoolExecutor | None = None
        # pools killed after a timeout, mapped to the call that timed out
        self._kill_reasons: weakref.WeakKeyDictionary[ProcessPoolExecutor, str] = weakref.WeakKeyDictionary()

    # Pool management -------------------------------------------------
    def _get_pool(self) -> ProcessPoolExecutor:
        with self._lock:
            if self._pool is None:
                self._pool = ProcessPoolExecutor(
                    max_workers=self.max_workers,
                    mp_context=multiprocessing.get_context("spawn"),
                )
                logger.debug("started sandbox pool with %d worker(s)", self.max_workers)
            return self._pool

    def _discard_pool(self, pool: ProcessPoolExecutor, *, kill: str | None = None) -> None:
        with self._lock:
            if self._pool is pool:
                self._pool = None
            if kill:
                self._kill_reasons[pool] = kill
        if kill:
            # the executor has no public way to stop a running task
            for proc in list((getattr(pool, "_processes", None) or {}).values()):
                proc.terminate()
        pool.shutdown(wait=False, cancel_futures=True)

    def close(self) -> None:
        with self._lock:
            pool, self._pool = self._pool, None
        if pool is not None:
            pool.shutdown(wait=True, cancel_futures=True)
            logger.debug("sandbox pool shut down")

    def run_in_worker(self, fn, *args: Any, timeout: float | None, what: str) -> Any:
        """Run ``fn(*args)`` in a worker and map pool failures to InvocationError."""
        pool = self._get_pool()
        try:
            future = pool.submit(fn, *args)
        except BrokenProcessPool as err:
            self._discard_pool(pool)
            raise InvocationError(f"sandbox unavailable while running {what}: {err}", exc_type="BrokenProcessPool") from err

        try:
            return future.result(timeout=timeout)
        except concurrent.futures.TimeoutError as err:
            logger.warning("%s exceeded %ss in the sandbox; restarting workers", what, timeout)
            self._discard_pool(pool, kill=what)
            raise InvocationError(f"{what} timed out after {timeout}s", exc_type="TimeoutError") from err
        except BrokenProcessPool as err:
            with self._lock:
                killed_for = self._kill_reasons.get(pool)
            if killed_for is not None:
                raise InvocationError(
                    f"sandbox workers were restarted while running {what} because {killed_for} timed out",
                    exc_type="BrokenProcessPool",
                ) from err
            logger.warning("sandbox worker died while running %s; restarting workers", what)
            self._discard_pool(pool)
            raise InvocationError(f"sandbox worker died while running {what}", exc_type="BrokenProcessPool") from err
        except OperationError:
            raise
        except Exception as err:
            # e.g. a result that cannot be pickled back
            raise invocation_error(err) from err
        except BaseException as err:
            if future.done() and not future.cancelled() and future.exception() is err:
                raise invocation_error(err) from err
            raise

    # Compilation -----------------------------------------------------
    def compile(
            self,
            source: str,
            references: Iterable[str] | None = None,
            *,
            arity: int | None = None,
            label: str | None = None,
    ) -> SandboxedOperation:
        refs = self.effective_references(references)
        digest = source_digest(source)
        with service_span_sync(
                "opsmith.compiler.compile",
                attributes={
                    "opsmith.compiler.backend": self.backend,
                    "opsmith.label": label,
                    "opsmith.arity": arity,
                    "opsmith.source_digest": digest,
                },
        ):
            try:
                class_name, method_name, parameter_types = self.run_in_worker(
                    _worker_compile, digest, source, refs, arity, label,
                    timeout=self.compile_timeout_s,
                    what=f"compilation of {label or digest[:12]}",
                )
            except InvocationError as err:
                raise CompilationError(str(err)) from err

        return SandboxedOperation(
            self,
            digest=digest,
            source=source,
            references=refs,
            label=label,
            class_name=class_name,
            method_name=method_name,
            parameter_types=parameter_types,
        )
