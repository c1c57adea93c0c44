"""Groq LLM provider implementation."""

from typing import Any

import structlog
from openai import APIConnectionError, APITimeoutError, AsyncOpenAI, RateLimitError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.infrastructure.llm.exceptions import (
    LLMConfigurationError,
    LLMProviderError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTimeoutError,
)
from src.infrastructure.llm.protocol import Completion, CompletionRequest, TokenUsage
from src.infrastructure.observability import get_tracer

logger = structlog.get_logger()
tracer = get_tracer(__name__)


class GroqProvider:
    """LLM provider using Groq's OpenAI-compatible API.

    Includes resilience patterns:
    - Retries with exponential backoff for transient connection failures
    - Configurable timeouts
    """

    PROVIDER_NAME = "groq"
    BASE_URL = "https://api.groq.com/openai/v1"

    def __init__(
        self,
        api_key: str,
        *,
        default_model: str = "openai/gpt-oss-120b",
        base_url: str = BASE_URL,
        timeout_seconds: float = 30.0,
    ) -> None:
        """Initialize the Groq provider.

        Args:
            api_key: Groq API key.
            default_model: Model to use for completions.
            base_url: OpenAI-compatible endpoint root.
            timeout_seconds: Request timeout in seconds.

        Raises:
            LLMConfigurationError: If API key is missing.
        """
        if not api_key:
            raise LLMConfigurationError(
                "Groq API key is required", provider=self.PROVIDER_NAME
            )

        self._client = AsyncOpenAI(
            base_url=base_url,
            api_key=api_key,
            timeout=timeout_seconds,
        )
        self._model = default_model
        self._timeout = timeout_seconds

    @property
    def name(self) -> str:
        return self.PROVIDER_NAME

    async def complete(self, request: CompletionRequest) -> Completion:
        """Generate a completion using Groq.

        Args:
            request: The canonical completion request.

        Returns:
            The normalized completion.

        Raises:
            LLMProviderError: If the completion fails.
            LLMTimeoutError: If the request times out.
            LLMRateLimitError: If rate limited.
        """
        with tracer.start_as_current_span("llm.complete") as span:
            span.set_attribute("llm.provider", self.PROVIDER_NAME)
            span.set_attribute("llm.model", self._model)
            span.set_attribute("llm.input_length", request.input_length)
            span.set_attribute("llm.message_count", len(request.messages))

            try:
                result = await self._complete_with_retry(request)
                span.set_attribute("llm.output_length", len(result.text))
                return result

            except APITimeoutError as e:
                # After all retries exhausted
                span.record_exception(e)
                logger.warning(
                    "llm_timeout",
                    provider=self.PROVIDER_NAME,
                    model=self._model,
                    timeout_seconds=self._timeout,
                )
                raise LLMTimeoutError(
                    f"Request timed out after {self._timeout}s",
                    provider=self.PROVIDER_NAME,
                ) from e

            except APIConnectionError as e:
                # After all retries exhausted
                span.record_exception(e)
                logger.error(
                    "llm_connection_error",
                    provider=self.PROVIDER_NAME,
                    model=self._model,
                    error=str(e),
                )
                raise LLMProviderError(
                    "Unable to connect to Groq",
                    provider=self.PROVIDER_NAME,
                ) from e

    @retry(
        retry=retry_if_exception_type((APIConnectionError, APITimeoutError)),
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, max=5),
        reraise=True,
    )
    async def _complete_with_retry(self, request: CompletionRequest) -> Completion:
        """Execute the API call, retrying transient connection failures.

        APIConnectionError and APITimeoutError propagate unconverted so
        tenacity can retry them.
        """
        messages: list[dict[str, str]] = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.extend(request.messages)

        params: dict[str, Any] = {
            "model": self._model,
            "messages": messages,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
        }
        if request.prefer_json:
            params["response_format"] = {"type": "json_object"}

        logger.debug(
            "llm_request_start",
            provider=self.PROVIDER_NAME,
            model=self._model,
            message_count=len(messages),
            prefer_json=request.prefer_json,
        )

        try:
            response = await self._client.chat.completions.create(**params)

        except RateLimitError as e:
            logger.warning(
                "llm_rate_limited",
                provider=self.PROVIDER_NAME,
                model=self._model,
            )
            raise LLMRateLimitError(
                "Rate limited by Groq. Please try again shortly.",
                provider=self.PROVIDER_NAME,
            ) from e

        except (APIConnectionError, APITimeoutError):
            # Let these bubble up for retry logic
            raise

        except Exception as e:
            logger.error(
                "llm_unexpected_error",
                provider=self.PROVIDER_NAME,
                model=self._model,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise LLMProviderError(
                f"Groq API error: {e}",
                provider=self.PROVIDER_NAME,
            ) from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMResponseError(
                "Groq returned empty response", provider=self.PROVIDER_NAME
            )

        usage = response.usage
        logger.debug(
            "llm_request_success",
            provider=self.PROVIDER_NAME,
            model=self._model,
            response_length=len(content),
        )

        return Completion(
            text=content,
            provider=self.PROVIDER_NAME,
            model=self._model,
            usage=TokenUsage(
                input_tokens=usage.prompt_tokens if usage else 0,
                output_tokens=usage.completion_tokens if usage else 0,
            ),
        )

    async def close(self) -> None:
        """Close the OpenAI-compatible client."""
        await self._client.close()
