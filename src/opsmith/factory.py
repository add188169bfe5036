# opsmith/factory.py
"""Wire an :class:`ExecutionEngine` from settings."""
import logging
from typing import Any, Mapping

from .client import ProviderClient, ProviderClientConfig
from .compiler import BaseCompiler, InProcessCompiler, SandboxCompiler, normalize_references
from .conf import Settings
from .engine import ExecutionEngine
from .exceptions import ConfigurationError
from .providers import BaseProvider, build_provider
from .synthesis import CodeSynthesizer

logger = logging.getLogger(__name__)

__all__ = ["build_compiler", "build_engine", "build_synthesizer"]


def _settings(settings: Mapping[str, Any] | None) -> Mapping[str, Any]:
    if settings is None:
        s = Settings()
        s.update_from_envvar()
        s.update_from_environ()
        return s
    if isinstance(settings, Settings):
        return settings
    return Settings(settings)


def build_compiler(settings: Mapping[str, Any] | None = None) -> BaseCompiler:
    s = _settings(settings)
    backend = str(s["COMPILER_BACKEND"]).strip().lower()
    references = normalize_references(s.get("COMPILER_REFERENCES"))
    if backend == "inprocess":
        return InProcessCompiler(references)
    if backend == "sandbox":
        return SandboxCompiler(
            references,
            max_workers=int(s["SANDBOX_MAX_WORKERS"]),
            invoke_timeout_s=s["SANDBOX_INVOKE_TIMEOUT"],
            compile_timeout_s=s["SANDBOX_COMPILE_TIMEOUT"],
        )
    raise ConfigurationError(f"Unknown COMPILER_BACKEND {backend!r}; expected 'sandbox' or 'inprocess'")


def build_synthesizer(
        settings: Mapping[str, Any] | None = None,
        *,
        provider: BaseProvider | None = None,
) -> CodeSynthesizer:
    s = _settings(settings)
    provider = provider or build_provider(s)
    client = ProviderClient(
        provider,
        ProviderClientConfig(
            max_retries=int(s["CLIENT_MAX_RETRIES"]),
            telemetry_enabled=bool(s["CLIENT_TELEMETRY_ENABLED"]),
            log_prompts=bool(s["CLIENT_LOG_PROMPTS"]),
        ),
    )
    return CodeSynthesizer(
        client,
        references=normalize_references(s.get("COMPILER_REFERENCES")),
        temperature=float(s["SYNTHESIS_TEMPERATURE"]),
        timeout_s=s["SYNTHESIS_TIMEOUT"],
        max_output_tokens=s.get("SYNTHESIS_MAX_OUTPUT_TOKENS"),
    )


def build_engine(
        settings: Mapping[str, Any] | None = None,
        *,
        provider: BaseProvider | None = None,
        synthesizer: Any = None,
        compiler: BaseCompiler | None = None,
) -> ExecutionEngine:
    """Build an engine from ``settings`` (defaults plus ``OPSMITH_*`` env vars when None).

    Any collaborator passed explicitly is used as-is.
    """
    s = _settings(settings)
    compiler = compiler or build_compiler(s)
    synthesizer = synthesizer or build_synthesizer(s, provider=provider)
    engine = ExecutionEngine(synthesizer, compiler, references=compiler.references)
    logger.debug("built %r", engine)
    return engine
