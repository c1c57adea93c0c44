"""LLM provider abstraction layer."""

from src.infrastructure.llm.bedrock import BedrockClaudeProvider
from src.infrastructure.llm.cerebras import CerebrasProvider
from src.infrastructure.llm.emergency import build_emergency_content
from src.infrastructure.llm.exceptions import (
    LLMConfigurationError,
    LLMProviderError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTimeoutError,
)
from src.infrastructure.llm.factory import build_providers
from src.infrastructure.llm.fallback import FallbackOrchestrator
from src.infrastructure.llm.groq import GroqProvider
from src.infrastructure.llm.health import ProviderHealthTracker
from src.infrastructure.llm.protocol import (
    Completion,
    CompletionRequest,
    LLMProvider,
    TokenUsage,
)
from src.infrastructure.llm.schemas import (
    EMERGENCY_PROVIDER,
    GenerationRequest,
    GenerationResponse,
    OrchestrationConfig,
    ProviderDescriptor,
)

__all__ = [
    "EMERGENCY_PROVIDER",
    "BedrockClaudeProvider",
    "CerebrasProvider",
    "Completion",
    "CompletionRequest",
    "FallbackOrchestrator",
    "GenerationRequest",
    "GenerationResponse",
    "GroqProvider",
    "LLMConfigurationError",
    "LLMProvider",
    "LLMProviderError",
    "LLMRateLimitError",
    "LLMResponseError",
    "LLMTimeoutError",
    "OrchestrationConfig",
    "ProviderDescriptor",
    "ProviderHealthTracker",
    "TokenUsage",
    "build_emergency_content",
    "build_providers",
]
