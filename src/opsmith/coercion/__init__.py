from .coercer import ArgumentCoercer, coerce
from .exceptions import ArityMismatchError, CoercionError

__all__ = ["ArgumentCoercer", "coerce", "ArityMismatchError", "CoercionError"]
