"""Default configuration values for opsmith."""

DEFAULTS: dict[str, object] = {
    # Provider/backend defaults
    "PROVIDER": "openai",
    "PROVIDER_ALIAS": "openai",
    "PROVIDER_DEFAULT_MODEL": "gpt-4o-mini",
    "PROVIDER_DEFAULT_TIMEOUT": 60.0,
    "PROVIDER_BASE_URL": None,
    "AZURE_ENDPOINT": None,
    "AZURE_API_VERSION": "2024-06-01",
    # Client/runtime defaults
    "CLIENT_MAX_RETRIES": 3,
    "CLIENT_TELEMETRY_ENABLED": True,
    "CLIENT_LOG_PROMPTS": False,
    # Synthesis
    "SYNTHESIS_TEMPERATURE": 0.5,
    "SYNTHESIS_TIMEOUT": 90.0,
    "SYNTHESIS_MAX_OUTPUT_TOKENS": None,
    # Compilation / execution
    "COMPILER_BACKEND": "sandbox",
    "COMPILER_REFERENCES": None,
    "SANDBOX_MAX_WORKERS": 2,
    "SANDBOX_INVOKE_TIMEOUT": 10.0,
    "SANDBOX_COMPILE_TIMEOUT": 30.0,
    # Routing layer
    "CATEGORIES": ("math",),
    "AUTOSTART": True,
}
