from .artifacts import Artifact, build_artifact, check_references, load_module, parse_source, resolve_artifact
from .base import BaseCompiler, CompiledOperation, LocalOperation
from .exceptions import CompilationError, Diagnostic, InvocationError, ResolutionError
from .inprocess import InProcessCompiler
from .references import DEFAULT_REFERENCES, guarded_builtins, normalize_references
from .sandbox import SandboxCompiler, SandboxedOperation, source_digest

__all__ = [
    "Artifact",
    "BaseCompiler",
    "CompiledOperation",
    "CompilationError",
    "DEFAULT_REFERENCES",
    "Diagnostic",
    "InProcessCompiler",
    "InvocationError",
    "LocalOperation",
    "ResolutionError",
    "SandboxCompiler",
    "SandboxedOperation",
    "build_artifact",
    "check_references",
    "guarded_builtins",
    "load_module",
    "normalize_references",
    "parse_source",
    "resolve_artifact",
    "source_digest",
]
