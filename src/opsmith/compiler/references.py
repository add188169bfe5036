# opsmith/compiler/references.py
"""
The reference set: modules generated code may import.

The set is enforced twice, statically on the parsed tree and again at run
time through the artifact module's ``__import__``.
"""
import builtins
from typing import Any, Iterable

__all__ = [
    "DEFAULT_REFERENCES",
    "ALWAYS_ALLOWED",
    "normalize_references",
    "guarded_builtins",
]

DEFAULT_REFERENCES: frozenset[str] = frozenset({
    "math",
    "cmath",
    "decimal",
    "fractions",
    "statistics",
    "numbers",
    "random",
    "itertools",
    "functools",
    "operator",
    "collections",
    "typing",
    "re",
    "string",
    "datetime",
    "json",
    "dataclasses",
    "enum",
    "abc",
    "bisect",
    "heapq",
})

# compiler directives, not real imports
ALWAYS_ALLOWED: frozenset[str] = frozenset({"__future__"})

# builtins an operation has no business calling
_REMOVED_BUILTINS = ("open", "eval", "exec", "compile", "input", "breakpoint", "exit", "quit", "help")


def normalize_references(references: Iterable[str] | None) -> frozenset[str]:
    """Top-level module names from ``references`` (defaults when None)."""
    if references is None:
        return DEFAULT_REFERENCES
    if isinstance(references, str):
        references = references.split(",")
    return frozenset(r.strip().partition(".")[0] for r in references if r and r.strip())


def guarded_builtins(references: Iterable[str]) -> dict[str, Any]:
    """A builtins mapping whose ``__import__`` only admits ``references``."""
    allowed = frozenset(references) | ALWAYS_ALLOWED
    real_import = builtins.__import__

    def _guarded_import(name, globals=None, locals=None, fromlist=(), level=0):
        if level:
            raise ImportError("relative imports are not allowed in generated code")
        top = name.partition(".")[0]
        if top not in allowed:
            raise ImportError(f"import of {name!r} is not allowed (allowed: {', '.join(sorted(allowed))})")
        return real_import(name, globals, locals, fromlist, level)

    guarded = dict(vars(builtins))
    for name in _REMOVED_BUILTINS:
        guarded.pop(name, None)
    guarded["__import__"] = _guarded_import
    return guarded
