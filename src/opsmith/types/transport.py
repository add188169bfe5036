# opsmith/types/transport.py
"""
Data transfer objects exchanged with the code-generation provider.

Classes:
    - Message: a single chat message (system or user instruction).
    - CompletionRequest: backend-agnostic request for one block of text.
    - CompletionResponse: normalized provider reply.
"""
import logging
from typing import Any, Literal
from uuid import UUID, uuid4

from pydantic import Field

from .base import StrictBaseModel

logger = logging.getLogger(__name__)

Role = Literal["system", "user", "assistant"]


class Message(StrictBaseModel):
    role: Role
    content: str


class CompletionRequest(StrictBaseModel):
    model: str | None = None
    messages: list[Message]

    # Correlation
    correlation_id: UUID = Field(default_factory=uuid4)

    # Sampling
    temperature: float | None = 0.5
    max_output_tokens: int | None = None

    # Observability only; never sent to the provider
    context: dict[str, Any] = Field(default_factory=dict, repr=False)


class CompletionResponse(StrictBaseModel):
    text: str | None = None
    model: str | None = None
    usage: dict[str, Any] = Field(default_factory=dict)
    provider_meta: dict[str, Any] = Field(default_factory=dict, repr=False)
