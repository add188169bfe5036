from .base import OperationRegistry
from .exceptions import (
    ImplementationAbortedError,
    RegistryCollisionError,
    RegistryError,
    RegistryLookupError,
)

__all__ = [
    "OperationRegistry",
    "ImplementationAbortedError",
    "RegistryCollisionError",
    "RegistryError",
    "RegistryLookupError",
]
