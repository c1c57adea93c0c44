"""Schemas for multi-provider generation."""

from dataclasses import dataclass, field
from typing import Any

from src.infrastructure.llm.protocol import (
    ChatMessage,
    Completion,
    CompletionRequest,
    LLMProvider,
    TokenUsage,
)

SCHEMA_RESPONSE_FORMAT = "schema"
EMERGENCY_PROVIDER = "emergency-fallback"


@dataclass(frozen=True)
class GenerationRequest:
    """A single generation request as seen by the orchestrator.

    ``kind`` only selects the emergency template used when every provider
    fails; it never changes what is sent to a provider.
    """

    prompt: str
    system_prompt: str = ""
    context: Any = None
    interests: tuple[str, ...] = ()
    subject: str | None = None
    grade_level: str | None = None
    message_history: tuple[ChatMessage, ...] = ()
    response_format: str | None = None
    kind: str | None = None
    max_tokens: int = 4000
    temperature: float = 0.2

    @property
    def is_schema_mode(self) -> bool:
        return self.response_format == SCHEMA_RESPONSE_FORMAT

    def to_completion_request(self) -> CompletionRequest:
        """Build the provider request: prior turns followed by the prompt."""
        messages = tuple(
            {"role": m["role"], "content": m["content"]} for m in self.message_history
        ) + ({"role": "user", "content": self.prompt},)
        return CompletionRequest(
            system_prompt=self.system_prompt,
            messages=messages,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            prefer_json=self.is_schema_mode,
        )


@dataclass(frozen=True)
class ProviderDescriptor:
    """A provider slot in the fallback chain (lower priority runs first)."""

    name: str
    priority: int
    provider: LLMProvider


@dataclass(frozen=True)
class OrchestrationConfig:
    """Per-call orchestration settings."""

    providers: tuple[ProviderDescriptor, ...]
    endpoint_name: str
    retry_delay_ms: int = 1000
    attempt_timeout_seconds: float = 30.0
    fallback_content: Any = None  # Overrides the emergency template when set

    def ordered_providers(self) -> list[ProviderDescriptor]:
        """Providers sorted by priority; equal ranks keep their given order."""
        return sorted(self.providers, key=lambda p: p.priority)


@dataclass(frozen=True)
class AttemptSuccess:
    """Outcome of a provider attempt that produced a completion."""

    provider_name: str
    completion: Completion


@dataclass(frozen=True)
class AttemptFailure:
    """Outcome of a provider attempt that raised or timed out."""

    provider_name: str
    error_message: str


AttemptResult = AttemptSuccess | AttemptFailure


@dataclass(frozen=True)
class GenerationMetadata:
    """Diagnostics attached to every generation response."""

    duration_ms: int
    timestamp_utc: str
    providers_attempted: tuple[str, ...]
    providers_skipped: tuple[str, ...] = ()
    emergency_fallback: bool = False
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "durationMs": self.duration_ms,
            "timestamp": self.timestamp_utc,
            "providersAttempted": list(self.providers_attempted),
            "providersSkipped": list(self.providers_skipped),
            "emergencyFallback": self.emergency_fallback,
        }
        if self.last_error is not None:
            data["lastError"] = self.last_error
        return data


@dataclass(frozen=True)
class GenerationResponse:
    """Final orchestrator output.

    ``success`` is True even when emergency content was substituted; callers
    that care must check ``provider`` or ``metadata.emergency_fallback``.
    """

    success: bool
    data: Any
    provider: str
    retry_count: int
    metadata: GenerationMetadata
    error: str | None = None
    usage: TokenUsage = field(default_factory=TokenUsage)

    @property
    def is_emergency(self) -> bool:
        return self.metadata.emergency_fallback

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase wire form."""
        body: dict[str, Any] = {
            "success": self.success,
            "data": self.data,
            "provider": self.provider,
            "retryCount": self.retry_count,
            "metadata": self.metadata.to_dict(),
        }
        if self.error is not None:
            body["error"] = self.error
        return body
