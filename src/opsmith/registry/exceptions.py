# opsmith/registry/exceptions.py
"""Registry exceptions"""
from opsmith.exceptions.base import ImplementError, OpsmithError


# ----------------------------------------------------------------------------
# Registry errors
# ----------------------------------------------------------------------------
class RegistryError(OpsmithError): ...


class RegistryLookupError(RegistryError, LookupError): ...


class RegistryCollisionError(RegistryError):
    """An implement function produced a record for a different key."""


class ImplementationAbortedError(ImplementError):
    """The caller implementing this key went away before finishing."""
