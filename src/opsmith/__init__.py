"""
opsmith: operations implemented on demand by a code-generation model.

The first request for an unseen operation (``math/add``) synthesizes Python
source, compiles it, caches the result, and every later request reuses it.
"""
from .coercion import ArgumentCoercer, ArityMismatchError, CoercionError
from .compiler import (
    BaseCompiler,
    CompilationError,
    CompiledOperation,
    DEFAULT_REFERENCES,
    Diagnostic,
    InProcessCompiler,
    InvocationError,
    ResolutionError,
    SandboxCompiler,
)
from .conf import DEFAULTS, Settings
from .engine import ExecutionEngine
from .exceptions import (
    ConfigurationError,
    ExecutionError,
    ImplementError,
    NonRetryableError,
    OperationError,
    OpsmithError,
    RetryableError,
)
from .factory import build_compiler, build_engine, build_synthesizer
from .operations import OperationKey, OperationKeyError, OperationRecord, SynthesisRequest
from .providers import (
    BaseProvider,
    OpenAIProvider,
    ProviderCallError,
    ProviderConfigurationError,
    ProviderError,
    ProviderResponseError,
)
from .registry import (
    ImplementationAbortedError,
    OperationRegistry,
    RegistryCollisionError,
    RegistryError,
    RegistryLookupError,
)
from .synthesis import CodeSynthesizer, SynthesisError

__version__ = "0.1.0"

__all__ = [
    # engine & collaborators
    "ExecutionEngine",
    "CodeSynthesizer",
    "BaseCompiler",
    "CompiledOperation",
    "InProcessCompiler",
    "SandboxCompiler",
    "OperationRegistry",
    "ArgumentCoercer",
    "BaseProvider",
    "OpenAIProvider",
    "DEFAULT_REFERENCES",
    # data model
    "OperationKey",
    "OperationRecord",
    "SynthesisRequest",
    "Diagnostic",
    # config & wiring
    "DEFAULTS",
    "Settings",
    "build_compiler",
    "build_engine",
    "build_synthesizer",
    # errors
    "OpsmithError",
    "RetryableError",
    "NonRetryableError",
    "ConfigurationError",
    "OperationError",
    "ImplementError",
    "ExecutionError",
    "SynthesisError",
    "CompilationError",
    "ResolutionError",
    "ImplementationAbortedError",
    "ArityMismatchError",
    "CoercionError",
    "InvocationError",
    "OperationKeyError",
    "RegistryError",
    "RegistryLookupError",
    "RegistryCollisionError",
    "ProviderError",
    "ProviderCallError",
    "ProviderConfigurationError",
    "ProviderResponseError",
]
