"""Identity and record types for synthesized operations."""

from .exceptions import OperationKeyError
from .keys import OperationKey, OperationKeyLike
from .records import OperationRecord, SynthesisRequest

__all__ = [
    "OperationKey",
    "OperationKeyLike",
    "OperationKeyError",
    "OperationRecord",
    "SynthesisRequest",
]
