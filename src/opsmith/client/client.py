# opsmith/client/client.py
import asyncio
import inspect
import logging

from .schemas import ProviderClientConfig
from ..providers import BaseProvider
from ..providers.exceptions import ProviderCallError, ProviderConfigurationError
from ..tracing import noop_span, service_span
from ..types import CompletionRequest, CompletionResponse

logger = logging.getLogger(__name__)

__all__ = ["ProviderClient"]


def _is_rate_limited(exc: Exception) -> bool:
    status = getattr(exc, "status_code", None)
    return status == 429 or "rate limit" in str(exc).lower()


class ProviderClient:
    def __init__(self, provider: BaseProvider, config: ProviderClientConfig | None = None):
        """
        Initialize a client with a concrete provider and optional runtime config.

        Args:
            provider: Concrete provider implementing BaseProvider (e.g., OpenAIProvider).
            config:   Runtime behavior knobs (retries, timeout, telemetry flags).
        """
        self.provider = provider
        self.config = config or ProviderClientConfig()

    async def send_request(
            self,
            req: CompletionRequest,
            *,
            timeout: float | None = None,
    ) -> CompletionResponse:
        """
        Send a request to the provider, retrying transient failures.

        :param req: The normalized provider-agnostic request DTO.
        :param timeout: Timeout for each provider call. If not specified, uses
            client config timeout, else the provider default.
        :return: The normalized provider-agnostic response DTO.
        :raises ProviderCallError: If the provider call fails after all attempts.
        :raises ProviderConfigurationError: Immediately, without retrying.
        """
        if timeout is not None:
            effective_timeout = timeout
        elif self.config.timeout_s is not None:
            effective_timeout = self.config.timeout_s
        else:
            effective_timeout = getattr(self.provider, "timeout_s", None)

        span_factory = service_span if self.config.telemetry_enabled else noop_span

        async with span_factory(
                "opsmith.client.send_request",
                attributes={
                    "opsmith.provider_name": self.provider.provider,
                    "opsmith.provider_slug": self.provider.slug,
                    "opsmith.model": req.model or self.provider.default_model or "<unspecified>",
                    "opsmith.timeout": effective_timeout,
                },
        ):
            if self.config.log_prompts:
                logger.debug("client sending request to provider %r:\n%r", self.provider, req)

            if not req.model and self.provider.default_model:
                req.model = self.provider.default_model

            attempts = max(1, int(self.config.max_retries or 1))
            backoff_ms = self.config.initial_backoff_ms

            for attempt in range(1, attempts + 1):
                try:
                    async with span_factory(
                            "opsmith.client.provider_call",
                            attributes={
                                "opsmith.attempt": attempt,
                                "opsmith.max_attempts": attempts,
                            },
                    ):
                        if inspect.iscoroutinefunction(self.provider.call):
                            resp = await self.provider.call(req, effective_timeout)
                        else:
                            # sync provider; keep the event loop free
                            resp = await asyncio.to_thread(self.provider.call, req, effective_timeout)
                    break
                except ProviderConfigurationError:
                    raise
                except Exception as e:  # noqa: BLE001
                    is_rl = _is_rate_limited(e)
                    if attempt >= attempts:
                        raise ProviderCallError(f"Provider call failed after {attempts} attempt(s): {e}") from e

                    logger.warning(
                        "provider call failed (attempt %d/%d, rate_limited=%s): %s; retrying in %d ms",
                        attempt, attempts, is_rl, e, backoff_ms,
                    )
                    async with span_factory(
                            "opsmith.client.retry",
                            attributes={
                                "opsmith.attempt": attempt + 1,
                                "opsmith.backoff_ms": backoff_ms,
                                "opsmith.error.class": type(e).__name__,
                                "opsmith.rate_limited": is_rl,
                            },
                    ):
                        await asyncio.sleep(backoff_ms / 1000.0)
                        backoff_ms = min(int(backoff_ms * 2), self.config.max_backoff_ms)

            if self.config.log_prompts:
                logger.debug("client received response: %s", (resp.text or "")[:500])

            return resp
