# opsmith/client/schemas.py

"""
Strict runtime configuration for :class:`ProviderClient`.

Design notes:
- We forbid unknown keys (extra="forbid") to catch typos at startup.
- Backend wiring (base URL, model, API key, etc.) is handled by the provider layer and not represented here.
"""

from typing import Optional, cast

from pydantic import BaseModel
from pydantic.config import ConfigDict

from opsmith.conf import DEFAULTS

CLIENT_DEFAULT_MAX_RETRIES = cast(int, DEFAULTS["CLIENT_MAX_RETRIES"])
CLIENT_DEFAULT_TELEMETRY_ENABLED = cast(bool, DEFAULTS["CLIENT_TELEMETRY_ENABLED"])
CLIENT_DEFAULT_LOG_PROMPTS = cast(bool, DEFAULTS["CLIENT_LOG_PROMPTS"])

__all__ = ["ProviderClientConfig"]


class ProviderClientConfig(BaseModel):
    """
    Runtime configuration for `ProviderClient` behavior (STRICT).

    Fields (sane defaults):
        max_retries:        Max number of attempts on transient errors.
        timeout_s:          Optional per-call timeout (seconds). If None, provider default is used.
        telemetry_enabled:  Whether to emit client-level spans.
        log_prompts:        Whether to log prompts and generated text (be careful in prod).
        initial_backoff_ms: First retry delay; doubled after each failed attempt.
        max_backoff_ms:     Upper bound for the retry delay.
    """
    max_retries: int = CLIENT_DEFAULT_MAX_RETRIES
    timeout_s: Optional[float] = None
    telemetry_enabled: bool = CLIENT_DEFAULT_TELEMETRY_ENABLED
    log_prompts: bool = CLIENT_DEFAULT_LOG_PROMPTS
    initial_backoff_ms: int = 500
    max_backoff_ms: int = 10_000

    model_config = ConfigDict(extra="forbid")
