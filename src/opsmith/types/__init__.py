from .base import StrictBaseModel
from .transport import CompletionRequest, CompletionResponse, Message, Role

__all__ = [
    "StrictBaseModel",
    "Message",
    "Role",
    "CompletionRequest",
    "CompletionResponse",
]
