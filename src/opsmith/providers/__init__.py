from .base import BaseProvider
from .exceptions import (
    ProviderCallError,
    ProviderConfigurationError,
    ProviderError,
    ProviderResponseError,
)
from .factory import build_provider, register_provider_backend
from .openai import OpenAIProvider

__all__ = [
    "BaseProvider",
    "OpenAIProvider",
    "build_provider",
    "register_provider_backend",
    "ProviderError",
    "ProviderCallError",
    "ProviderConfigurationError",
    "ProviderResponseError",
]
