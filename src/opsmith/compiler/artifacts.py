# opsmith/compiler/artifacts.py
"""
Turning generated source into a resolved, callable artifact.

The steps are shared by every compiler backend:

1. parse (``ast.parse``), syntax errors become diagnostics
2. reference check on ``import`` / ``from ... import`` statements
3. load into a fresh module object with guarded builtins
4. resolve the single operation class and its single public method
5. read parameter types from the method's annotations
"""
from __future__ import annotations

import ast
import enum
import inspect
import logging
import re
import types
import typing
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from .exceptions import CompilationError, Diagnostic, ResolutionError
from .references import ALWAYS_ALLOWED, guarded_builtins

logger = logging.getLogger(__name__)

__all__ = [
    "Artifact",
    "artifact_module_name",
    "build_artifact",
    "check_references",
    "load_module",
    "parse_source",
    "resolve_artifact",
]

_UNSAFE_LABEL_RE = re.compile(r"[^A-Za-z0-9_]")

_REJECTED_KINDS = {
    inspect.Parameter.VAR_POSITIONAL: "*args",
    inspect.Parameter.VAR_KEYWORD: "**kwargs",
    inspect.Parameter.KEYWORD_ONLY: "keyword-only parameters",
}


@dataclass(frozen=True)
class Artifact:
    """A loaded module with its resolved entry point."""

    module: types.ModuleType
    instance: Any
    class_name: str
    method_name: str
    method: Callable[..., Any]
    parameter_types: tuple[Any, ...]


def artifact_module_name(label: str | None = None) -> str:
    base = _UNSAFE_LABEL_RE.sub("_", label) if label else "anonymous"
    return f"opsmith_artifact_{base}_{uuid.uuid4().hex}"


def parse_source(source: str, filename: str = "<opsmith>") -> ast.Module:
    try:
        return ast.parse(source, filename=filename, mode="exec")
    except SyntaxError as err:
        raise CompilationError(
            f"generated source does not parse: {err.msg}",
            diagnostics=[Diagnostic(err.lineno, err.offset, err.msg or "invalid syntax")],
        ) from err


def check_references(tree: ast.AST, references: Iterable[str]) -> list[Diagnostic]:
    """Every import in ``tree`` that falls outside ``references``."""
    allowed = frozenset(references) | ALWAYS_ALLOWED
    problems: list[Diagnostic] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                if alias.name.partition(".")[0] not in allowed:
                    problems.append(Diagnostic(
                        node.lineno, node.col_offset, f"import of {alias.name!r} is not in the reference set"
                    ))
        elif isinstance(node, ast.ImportFrom):
            if node.level:
                problems.append(Diagnostic(node.lineno, node.col_offset, "relative imports are not allowed"))
            elif (node.module or "").partition(".")[0] not in allowed:
                problems.append(Diagnostic(
                    node.lineno, node.col_offset, f"import from {node.module!r} is not in the reference set"
                ))
    return problems


def load_module(source: str, references: Iterable[str], *, label: str | None = None) -> types.ModuleType:
    """Parse, check and execute ``source`` in a fresh module."""
    references = frozenset(references)
    module_name = artifact_module_name(label)
    filename = f"<{module_name}>"

    tree = parse_source(source, filename)
    problems = check_references(tree, references)
    if problems:
        raise CompilationError(diagnostics=problems)

    try:
        code = compile(tree, filename, "exec")
    except (SyntaxError, ValueError) as err:
        raise CompilationError(
            f"generated source does not compile: {err}",
            diagnostics=[Diagnostic(getattr(err, "lineno", None), getattr(err, "offset", None), str(err))],
        ) from err

    module = types.ModuleType(module_name)
    module.__dict__["__builtins__"] = guarded_builtins(references)
    try:
        exec(code, module.__dict__)
    except BaseException as err:  # noqa: BLE001
        # SystemExit and friends from module-level code are load failures too
        raise CompilationError(
            f"generated source failed while loading: {type(err).__name__}: {err}",
            diagnostics=[Diagnostic(None, None, f"{type(err).__name__}: {err}")],
        ) from err
    return module


def _is_metadata_type(cls: type) -> bool:
    return (
        issubclass(cls, BaseException)
        or issubclass(cls, enum.Enum)
        or bool(getattr(cls, "_is_protocol", False))
    )


def _operation_class(module: types.ModuleType) -> type:
    candidates = [
        obj for obj in vars(module).values()
        if inspect.isclass(obj) and obj.__module__ == module.__name__ and not _is_metadata_type(obj)
    ]
    if len(candidates) != 1:
        names = ", ".join(c.__name__ for c in candidates) or "none"
        raise ResolutionError(f"expected exactly one operation class, found {len(candidates)} ({names})")
    return candidates[0]


def _operation_method_name(cls: type) -> str:
    public = []
    skipped = []
    for name, attr in vars(cls).items():
        if name.startswith("_"):
            continue
        if inspect.isfunction(attr):
            public.append(name)
        elif isinstance(attr, (staticmethod, classmethod, property)):
            skipped.append(name)

    if not public:
        hint = f" (static/class methods and properties are not accepted: {', '.join(skipped)})" if skipped else ""
        raise ResolutionError(f"class {cls.__name__} has no public instance method{hint}")
    if len(public) > 1:
        raise ResolutionError(f"class {cls.__name__} has several public methods: {', '.join(public)}")
    return public[0]


def _parameter_types(cls: type, method: Callable[..., Any]) -> tuple[Any, ...]:
    label = f"{cls.__name__}.{method.__name__}"
    try:
        hints = typing.get_type_hints(getattr(method, "__func__", method))
    except BaseException as err:  # noqa: BLE001
        logger.warning("could not evaluate annotations of %s: %s", label, err)
        hints = {}

    out: list[Any] = []
    for param in inspect.signature(method).parameters.values():
        if param.kind in _REJECTED_KINDS:
            raise ResolutionError(f"{label} uses {_REJECTED_KINDS[param.kind]}, which cannot be bound positionally")
        tp = hints.get(param.name, param.annotation)
        if tp is inspect.Parameter.empty or isinstance(tp, str):
            logger.warning("parameter %r of %s has no usable annotation; passing it as str", param.name, label)
            tp = str
        out.append(tp)
    return tuple(out)


def resolve_artifact(module: types.ModuleType, *, arity: int | None = None) -> Artifact:
    cls = _operation_class(module)
    method_name = _operation_method_name(cls)

    try:
        instance = cls()
    except BaseException as err:  # noqa: BLE001
        raise ResolutionError(
            f"class {cls.__name__} cannot be default-constructed: {type(err).__name__}: {err}"
        ) from err

    method = getattr(instance, method_name)
    parameter_types = _parameter_types(cls, method)
    if arity is not None and len(parameter_types) != arity:
        raise ResolutionError(
            f"{cls.__name__}.{method_name} takes {len(parameter_types)} argument(s), expected {arity}"
        )

    return Artifact(
        module=module,
        instance=instance,
        class_name=cls.__name__,
        method_name=method_name,
        method=method,
        parameter_types=parameter_types,
    )


def build_artifact(
        source: str,
        references: Iterable[str],
        *,
        arity: int | None = None,
        label: str | None = None,
) -> Artifact:
    module = load_module(source, references, label=label)
    artifact = resolve_artifact(module, arity=arity)
    logger.debug(
        "resolved %s.%s%s from %s",
        artifact.class_name, artifact.method_name,
        tuple(getattr(t, "__name__", t) for t in artifact.parameter_types), module.__name__,
    )
    return artifact
