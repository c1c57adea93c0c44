"""Protocol definition for LLM providers."""

from dataclasses import dataclass, field
from typing import Protocol

ChatMessage = dict[str, str]


@dataclass(frozen=True)
class CompletionRequest:
    """Provider-agnostic completion request.

    Messages exclude the system prompt; each adapter places it wherever its
    backend expects it (first message, or a separate parameter).
    """

    system_prompt: str
    messages: tuple[ChatMessage, ...]
    max_tokens: int = 4000
    temperature: float = 0.2
    prefer_json: bool = False

    @property
    def input_length(self) -> int:
        """Total characters sent, system prompt included."""
        return len(self.system_prompt) + sum(
            len(m.get("content", "")) for m in self.messages
        )


@dataclass(frozen=True)
class TokenUsage:
    """Token accounting normalized across providers."""

    input_tokens: int = 0
    output_tokens: int = 0


@dataclass(frozen=True)
class Completion:
    """A normalized completion returned by any provider adapter."""

    text: str
    provider: str
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)


class LLMProvider(Protocol):
    """Protocol for LLM provider implementations.

    This allows swapping between different LLM backends (Cerebras, Claude on
    Bedrock, Groq) without changing orchestration logic.
    """

    @property
    def name(self) -> str:
        """Stable provider name used for health tracking and reporting."""
        ...

    async def complete(self, request: CompletionRequest) -> Completion:
        """Generate a completion for the given request.

        Args:
            request: The canonical completion request.

        Returns:
            The normalized completion.

        Raises:
            LLMProviderError: If the completion fails.
            LLMTimeoutError: If the request times out.
            LLMRateLimitError: If rate limited by the provider.
        """
        ...

    async def close(self) -> None:
        """Release the underlying HTTP client."""
        ...
