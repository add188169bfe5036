# opsmith/providers/base.py
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, ClassVar, overload

from slugify import slugify

from .exceptions import ProviderConfigurationError
from ..types import CompletionRequest, CompletionResponse

logger = logging.getLogger(__name__)

__all__ = ["BaseProvider"]


class BaseProvider(ABC):
    """
    Abstract base class for code-generation providers.

    Standardizes identity and credential fields and defines the async contract
    concrete backends implement. Credentials are looked up from environment
    variables scoped to the provider alias (``<ALIAS>_API_KEY``).

    :ivar alias: Unique alias for the provider; prefixes its env variables.
    :type alias: str
    :ivar provider: Name of the backend (e.g. ``"openai"``).
    :type provider: str
    :ivar description: Optional description of the provider.
    :type description: str | None
    :ivar slug: Unique slug for the provider, derived or set explicitly.
    :type slug: str
    :ivar api_key: Optional API key for authenticating requests.
    :type api_key: str | None
    """
    alias: str
    provider: str
    description: str | None
    api_key: str | None
    default_model: str | None = None
    timeout_s: float | None = None

    api_key_required: ClassVar[bool] = False

    def __init__(
            self,
            *,
            alias: str,
            provider: str,
            api_key_required: bool | None = None,
            api_key: str | None = None,
            description: str | None = None,
            slug: str | None = None,
            **_: object,
    ) -> None:
        if not alias:
            raise ProviderConfigurationError("ALIAS must be provided and non-empty.")
        self.alias = alias

        if not provider:
            raise ProviderConfigurationError("PROVIDER must be provided and non-empty.")
        self.provider = provider

        # --- api_key_required ---
        if api_key_required is None:
            env_val = self.get_env_for_alias("API_KEY_REQUIRED", default=None)
            api_key_required = self.api_key_required if env_val is None else self._coerce_bool(env_val)
        self.api_key_required = api_key_required

        # --- api_key ---
        if api_key is None:
            api_key = self.get_env_for_alias("API_KEY")
        if self.api_key_required and not api_key:
            raise ProviderConfigurationError(
                "API_KEY must be provided for this backend. "
                "Did you forget an ENV variable?"
            )
        self.api_key = api_key

        self.slug = slug
        self.description = description or f"{provider.title()} code generation provider."

    def _coerce_bool(self, value: str | bool | None) -> bool:
        if isinstance(value, bool):
            return value
        if value is None:
            return False
        return str(value).strip().lower() in {"1", "true", "yes", "y", "on"}

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Provider {self.provider}:{self.alias}>"

    @property
    def slug(self) -> str:
        return self._slug

    @slug.setter
    def slug(self, value: str | None = None) -> None:
        """Set Provider slug as provided value, or derive from provider/alias."""
        base = value.strip() if value else f"{self.provider}-{self.alias}"
        self._slug = slugify(base)

    @overload
    def get_env_for_alias(self, env_var_name: str) -> str | None:
        ...

    @overload
    def get_env_for_alias(self, env_var_name: str, default: object) -> Any:
        ...

    def get_env_for_alias(self, env_var_name: str, default: object = None) -> Any:
        """Fetch ``<ALIAS>_<ENV_VAR_NAME>`` from the environment.

        :param env_var_name: The suffix of the variable to retrieve.
        :param default: Returned when the variable is not set.
        """
        if env_var_name.startswith("_"):
            env_var_name = env_var_name[1:]

        key = f"{self.alias.upper()}_{env_var_name.upper()}"
        value = os.getenv(key, default)
        if value is default:
            logger.debug("Env var not found for alias: %s", key)
        return value

    # ---------------------------------------------------------------------
    # Public provider API (async-first contracts)
    # ---------------------------------------------------------------------
    @abstractmethod
    async def call(self, req: CompletionRequest, timeout: float | None = None) -> CompletionResponse:
        """Canonical async request for one block of generated text.

        Implementations MUST be async. A provider wrapping a sync-only SDK
        should offload the blocking work with ``asyncio.to_thread``; the
        ``ProviderClient`` also does this when it detects a sync ``call``.
        """
        ...

    async def healthcheck(self, *, timeout: float | None = None) -> tuple[bool, str]:
        """Default provider healthcheck: static credential check only."""
        if self.api_key_required and not self.api_key:
            return False, f"{self.provider} provider '{self.alias}' has no API key"
        return True, f"{self.provider} provider '{self.alias}' ready"
