# opsmith/providers/factory.py
"""Build a provider instance from opsmith settings."""
import logging
from typing import Any, Callable, Mapping

from .base import BaseProvider
from .exceptions import ProviderConfigurationError
from .openai import OpenAIProvider

logger = logging.getLogger(__name__)

__all__ = ["build_provider", "register_provider_backend"]

_BACKENDS: dict[str, Callable[..., BaseProvider]] = {
    "openai": OpenAIProvider,
    "azure_openai": OpenAIProvider,
}


def register_provider_backend(name: str, factory: Callable[..., BaseProvider]) -> None:
    """Make ``PROVIDER = name`` resolvable by :func:`build_provider`."""
    _BACKENDS[name] = factory


def build_provider(settings: Mapping[str, Any], **overrides: Any) -> BaseProvider:
    name = str(settings.get("PROVIDER") or "openai")
    try:
        factory = _BACKENDS[name]
    except KeyError as err:
        raise ProviderConfigurationError(
            f"Unknown PROVIDER {name!r}; known: {', '.join(sorted(_BACKENDS))}"
        ) from err

    cfg: dict[str, Any] = {
        "alias": settings.get("PROVIDER_ALIAS") or name,
        "default_model": settings.get("PROVIDER_DEFAULT_MODEL"),
        "timeout_s": settings.get("PROVIDER_DEFAULT_TIMEOUT"),
        "base_url": settings.get("PROVIDER_BASE_URL"),
        "azure_endpoint": settings.get("AZURE_ENDPOINT"),
        "azure_api_version": settings.get("AZURE_API_VERSION"),
    }
    if name == "azure_openai":
        cfg["provider"] = "azure_openai"
    cfg.update(overrides)

    provider = factory(**cfg)
    logger.debug("built provider %r (slug=%s)", provider, provider.slug)
    return provider
