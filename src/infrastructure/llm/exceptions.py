"""Failures raised by provider adapters.

The orchestrator turns any of these into a failed attempt and moves on to
the next provider; none of them reach an HTTP caller.
"""


class LLMProviderError(Exception):
    """A provider call did not produce a completion.

    Attributes:
        provider: Name of the adapter that failed (``"cerebras"``,
            ``"bedrock"``, ``"groq"``).
    """

    def __init__(self, message: str, *, provider: str = "unknown") -> None:
        self.provider = provider
        super().__init__(message)


class LLMTimeoutError(LLMProviderError):
    """The provider did not answer within its client timeout."""


class LLMRateLimitError(LLMProviderError):
    """The provider rejected the call with HTTP 429 or a throttling error."""


class LLMConfigurationError(LLMProviderError):
    """An adapter was constructed without the credentials it needs."""


class LLMResponseError(LLMProviderError):
    """The provider answered with a malformed or empty payload."""
