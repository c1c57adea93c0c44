"""Build the ranked provider chain from settings."""

from collections.abc import Callable

import structlog

from src.config import Settings
from src.infrastructure.llm.bedrock import BedrockClaudeProvider
from src.infrastructure.llm.cerebras import CerebrasProvider
from src.infrastructure.llm.groq import GroqProvider
from src.infrastructure.llm.protocol import LLMProvider
from src.infrastructure.llm.schemas import ProviderDescriptor

logger = structlog.get_logger()


def _build_cerebras(settings: Settings) -> LLMProvider | None:
    if not settings.cerebras_api_key:
        return None
    return CerebrasProvider(
        api_key=settings.cerebras_api_key.get_secret_value(),
        default_model=settings.cerebras_model,
        base_url=settings.cerebras_base_url,
        timeout_seconds=settings.provider_timeout_seconds,
    )


def _build_bedrock(settings: Settings) -> LLMProvider | None:
    if not settings.aws_region:
        return None
    return BedrockClaudeProvider(
        aws_region=settings.aws_region,
        aws_access_key=(
            settings.aws_access_key_id.get_secret_value()
            if settings.aws_access_key_id
            else None
        ),
        aws_secret_key=(
            settings.aws_secret_access_key.get_secret_value()
            if settings.aws_secret_access_key
            else None
        ),
        default_model=settings.bedrock_model,
        timeout_seconds=settings.provider_timeout_seconds,
    )


def _build_groq(settings: Settings) -> LLMProvider | None:
    if not settings.groq_api_key:
        return None
    return GroqProvider(
        api_key=settings.groq_api_key.get_secret_value(),
        default_model=settings.groq_model,
        base_url=settings.groq_base_url,
        timeout_seconds=settings.provider_timeout_seconds,
    )


_BUILDERS: dict[str, Callable[[Settings], LLMProvider | None]] = {
    CerebrasProvider.PROVIDER_NAME: _build_cerebras,
    BedrockClaudeProvider.PROVIDER_NAME: _build_bedrock,
    GroqProvider.PROVIDER_NAME: _build_groq,
}


def build_providers(settings: Settings) -> tuple[ProviderDescriptor, ...]:
    """Construct every configured provider, ranked by ``provider_order``.

    Providers without credentials are left out of the chain; unknown names in
    ``provider_order`` are logged and ignored.
    """
    descriptors: list[ProviderDescriptor] = []
    for priority, name in enumerate(settings.provider_order):
        builder = _BUILDERS.get(name)
        if builder is None:
            logger.warning("provider_unknown", provider=name)
            continue

        provider = builder(settings)
        if provider is None:
            logger.info("provider_not_configured", provider=name)
            continue

        descriptors.append(
            ProviderDescriptor(name=name, priority=priority, provider=provider)
        )

    logger.info("provider_chain_built", providers=[d.name for d in descriptors])
    return tuple(descriptors)
