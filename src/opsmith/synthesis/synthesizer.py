# opsmith/synthesis/synthesizer.py
import asyncio
import logging
from typing import Iterable

from asgiref.sync import async_to_sync

from .exceptions import SynthesisError
from .prompts import build_prompt, strip_code_fences
from ..client import ProviderClient
from ..operations import SynthesisRequest
from ..providers.exceptions import ProviderError
from ..tracing import operation_attributes, service_span
from ..types import CompletionRequest

logger = logging.getLogger(__name__)

__all__ = ["CodeSynthesizer"]


class CodeSynthesizer:
    """Turns a :class:`SynthesisRequest` into Python source text.

    The synthesizer never inspects the returned code beyond stripping a
    markdown fence; validating it is the compiler's job.
    """

    def __init__(
            self,
            client: ProviderClient,
            *,
            references: Iterable[str] = (),
            temperature: float = 0.5,
            timeout_s: float | None = 90,
            max_output_tokens: int | None = None,
            model: str | None = None,
    ) -> None:
        self.client = client
        self.references = frozenset(references)
        self.temperature = temperature
        self.timeout_s = timeout_s
        self.max_output_tokens = max_output_tokens
        self.model = model

    def build_request(self, request: SynthesisRequest) -> CompletionRequest:
        return CompletionRequest(
            model=self.model,
            messages=build_prompt(request, self.references),
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            context={"operation": request.key.as_str},
        )

    async def asynthesize(self, request: SynthesisRequest) -> str:
        key = request.key
        req = self.build_request(request)

        async with service_span(
                "opsmith.synthesis.synthesize",
                attributes=operation_attributes(key, arity=request.arity, temperature=self.temperature),
        ):
            try:
                if self.timeout_s:
                    resp = await asyncio.wait_for(self.client.send_request(req), timeout=self.timeout_s)
                else:
                    resp = await self.client.send_request(req)
            except asyncio.TimeoutError as err:
                raise SynthesisError(
                    f"code generation timed out after {self.timeout_s}s", key=key, timed_out=True
                ) from err
            except ProviderError as err:
                raise SynthesisError(f"code generation failed: {err}", key=key) from err

            source = strip_code_fences(resp.text or "")
            if not source.strip():
                raise SynthesisError("code generation returned no content", key=key)

            logger.debug("synthesized %d chars for %s", len(source), key.as_str)
            return source

    def synthesize(self, request: SynthesisRequest) -> str:
        """Blocking wrapper around :meth:`asynthesize`."""
        return async_to_sync(self.asynthesize)(request)
