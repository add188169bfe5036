"""OpenAI / Azure OpenAI chat-completions provider."""
from __future__ import annotations

import logging
import os
from typing import Any, Final, Literal, cast

import openai

from .base import BaseProvider
from .exceptions import ProviderConfigurationError, ProviderResponseError
from ..conf import DEFAULTS
from ..tracing import service_span
from ..types import CompletionRequest, CompletionResponse

logger = logging.getLogger(__name__)

__all__ = ["OpenAIProvider"]

PROVIDER_NAME: Final[Literal["openai"]] = "openai"
AZURE_PROVIDER_NAME: Final[Literal["azure_openai"]] = "azure_openai"
DEFAULT_TIMEOUT_S: Final[int | float] = cast(int | float, DEFAULTS["PROVIDER_DEFAULT_TIMEOUT"])
DEFAULT_MODEL: Final[str] = cast(str, DEFAULTS["PROVIDER_DEFAULT_MODEL"])
DEFAULT_AZURE_API_VERSION: Final[str] = cast(str, DEFAULTS["AZURE_API_VERSION"])


class OpenAIProvider(BaseProvider):
    """Chat Completions backend for OpenAI and Azure OpenAI deployments.

    When an Azure endpoint is configured (``azure_endpoint`` or the
    ``<ALIAS>_URI`` environment variable) the Azure client is used and the
    deployment name (``<ALIAS>_DEPLOYMENT``) doubles as the model.
    """

    def __init__(
        self,
        *,
        alias: str = PROVIDER_NAME,
        provider: str | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        azure_endpoint: str | None = None,
        azure_api_version: str | None = None,
        default_model: str | None = None,
        timeout_s: int | float | None = None,
        client: Any | None = None,
        slug: str | None = None,
        description: str | None = None,
        api_key_required: bool | None = None,
        **kwargs: object,
    ) -> None:
        azure_endpoint = azure_endpoint or None
        if azure_endpoint is None and alias:
            azure_endpoint = self._env(alias, "URI")
        super().__init__(
            alias=alias,
            provider=provider or (AZURE_PROVIDER_NAME if azure_endpoint else PROVIDER_NAME),
            api_key_required=api_key_required,
            api_key=api_key,
            description=description,
            slug=slug,
            **kwargs,
        )
        self.base_url = base_url
        self.azure_endpoint = azure_endpoint
        self.azure_api_version = azure_api_version or DEFAULT_AZURE_API_VERSION
        deployment = self.get_env_for_alias("DEPLOYMENT") if azure_endpoint else None
        self.default_model = default_model or deployment or DEFAULT_MODEL
        self.timeout_s = timeout_s if timeout_s is not None else DEFAULT_TIMEOUT_S
        self._client = self._resolve_client(client)

    @staticmethod
    def _env(alias: str, name: str) -> str | None:
        return os.getenv(f"{alias.upper()}_{name}") or None

    def _resolve_client(self, client: Any | None) -> Any:
        if client is not None:
            return client

        if not self.api_key:
            return None

        if self.azure_endpoint:
            return openai.AsyncAzureOpenAI(
                api_key=self.api_key,
                azure_endpoint=self.azure_endpoint,
                api_version=self.azure_api_version,
                timeout=self.timeout_s,
                max_retries=0,
            )
        return openai.AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout_s,
            max_retries=0,
        )

    async def healthcheck(self, *, timeout: float | None = None) -> tuple[bool, str]:
        if self._client is None:
            return False, f"Missing OpenAI API key (set {self.alias.upper()}_API_KEY)"

        try:
            await self._client.models.list(timeout=timeout or self.timeout_s)
        except openai.OpenAIError as exc:
            return False, f"OpenAI healthcheck failed: {exc}"
        return True, f"OpenAI client ready ({self.provider}, model={self.default_model})"

    async def call(self, req: CompletionRequest, timeout: float | None = None) -> CompletionResponse:
        if self._client is None:
            raise ProviderConfigurationError(f"OpenAI API key is required (set {self.alias.upper()}_API_KEY)")

        model_name = req.model or self.default_model
        async with service_span(
            "opsmith.provider.call",
            attributes={
                "opsmith.provider_name": self.provider,
                "opsmith.model": model_name,
                "opsmith.request.correlation_id": str(req.correlation_id),
            },
        ):
            kwargs: dict[str, Any] = {
                "model": model_name,
                "messages": [m.model_dump(include={"role", "content"}) for m in req.messages],
                "timeout": timeout if timeout is not None else self.timeout_s,
            }
            if req.temperature is not None:
                kwargs["temperature"] = req.temperature
            if req.max_output_tokens is not None:
                kwargs["max_tokens"] = req.max_output_tokens

            resp = await self._client.chat.completions.create(**kwargs)
            return self.adapt_response(resp)

    def adapt_response(self, resp: Any) -> CompletionResponse:
        choices = getattr(resp, "choices", None) or []
        if not choices:
            raise ProviderResponseError("OpenAI response contained no choices")

        message = getattr(choices[0], "message", None)
        text = getattr(message, "content", None)
        return CompletionResponse(
            text=text,
            model=getattr(resp, "model", None),
            usage=self._extract_usage(resp),
            provider_meta={
                "id": getattr(resp, "id", None),
                "finish_reason": getattr(choices[0], "finish_reason", None),
            },
        )

    def _extract_usage(self, resp: Any) -> dict:
        usage = getattr(resp, "usage", None)
        if usage is None:
            return {}
        if isinstance(usage, dict):
            return usage
        if hasattr(usage, "model_dump"):
            return usage.model_dump()
        return dict(getattr(usage, "__dict__", {}) or {})
