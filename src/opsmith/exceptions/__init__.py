"""
Base exception classes shared by every opsmith component.

Component-specific errors live next to the component that raises them
(``opsmith.synthesis.exceptions``, ``opsmith.compiler.exceptions``, ...) and
are re-exported from the top-level ``opsmith`` package.
"""
from .base import (
    ConfigurationError,
    ExecutionError,
    ImplementError,
    NonRetryableError,
    OperationError,
    OpsmithError,
    RetryableError,
)

__all__ = [
    "OpsmithError",
    "RetryableError",
    "NonRetryableError",
    "ConfigurationError",
    "OperationError",
    "ImplementError",
    "ExecutionError",
]
