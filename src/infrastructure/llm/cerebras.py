"""Cerebras LLM provider using the raw chat completions endpoint."""

from typing import Any

import httpx
import structlog

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


class CerebrasProvider:
    """LLM provider calling Cerebras over plain HTTPS.

    Cerebras is the cheapest and fastest backend, so it normally sits first
    in the fallback chain. No retries happen here; a failure hands over to
    the next provider.
    """

    PROVIDER_NAME = "cerebras"
    BASE_URL = "https://api.cerebras.ai/v1"

    def __init__(
        self,
        api_key: str,
        *,
        default_model: str = "llama-4-scout-17b-16e-instruct",
        base_url: str = BASE_URL,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Cerebras provider.

        Args:
            api_key: Cerebras API key.
            default_model: Model to use for completions.
            base_url: API root; ``/chat/completions`` is appended.
            timeout_seconds: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).

        Raises:
            LLMConfigurationError: If API key is missing.
        """
        if not api_key:
            raise LLMConfigurationError(
                "Cerebras API key is required", provider=self.PROVIDER_NAME
            )

        self._model = default_model
        self._timeout = timeout_seconds
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    @property
    def name(self) -> str:
        return self.PROVIDER_NAME

    def _build_body(self, request: CompletionRequest) -> dict[str, Any]:
        messages: list[dict[str, str]] = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.extend(request.messages)
        return {
            "model": self._model,
            "messages": messages,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
        }

    async def complete(self, request: CompletionRequest) -> Completion:
        """Generate a completion using Cerebras.

        Args:
            request: The canonical completion request.

        Returns:
            The normalized completion. Empty content is returned as "".

        Raises:
            LLMProviderError: On non-2xx responses or transport errors.
            LLMTimeoutError: If the request times out.
            LLMRateLimitError: On HTTP 429.
            LLMResponseError: If the body is not a chat completion.
        """
        with tracer.start_as_current_span("llm.complete") as span:
            span.set_attribute("llm.provider", self.PROVIDER_NAME)
            span.set_attribute("llm.model", self._model)
            span.set_attribute("llm.input_length", request.input_length)

            logger.debug(
                "llm_request_start",
                provider=self.PROVIDER_NAME,
                model=self._model,
                message_count=len(request.messages),
            )

            try:
                response = await self._client.post(
                    self._url, json=self._build_body(request)
                )
                response.raise_for_status()
                data = response.json()

            except httpx.TimeoutException as e:
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

            except httpx.HTTPStatusError as e:
                span.record_exception(e)
                status_code = e.response.status_code
                logger.warning(
                    "llm_http_error",
                    provider=self.PROVIDER_NAME,
                    model=self._model,
                    status_code=status_code,
                    body_snippet=e.response.text[:300],
                )
                if status_code == 429:
                    raise LLMRateLimitError(
                        "Rate limited by Cerebras. Please try again shortly.",
                        provider=self.PROVIDER_NAME,
                    ) from e
                raise LLMProviderError(
                    f"Cerebras API error: {status_code}",
                    provider=self.PROVIDER_NAME,
                ) from e

            except httpx.HTTPError as e:
                span.record_exception(e)
                logger.error(
                    "llm_connection_error",
                    provider=self.PROVIDER_NAME,
                    model=self._model,
                    error=str(e),
                )
                raise LLMProviderError(
                    "Unable to connect to Cerebras",
                    provider=self.PROVIDER_NAME,
                ) from e

            except ValueError as e:
                span.record_exception(e)
                raise LLMResponseError(
                    "Cerebras returned a non-JSON body",
                    provider=self.PROVIDER_NAME,
                ) from e

            completion = self._parse(data)
            span.set_attribute("llm.output_length", len(completion.text))
            logger.debug(
                "llm_request_success",
                provider=self.PROVIDER_NAME,
                model=self._model,
                response_length=len(completion.text),
            )
            return completion

    def _parse(self, data: Any) -> Completion:
        try:
            message = data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as e:
            raise LLMResponseError(
                "Cerebras response is missing choices[0].message",
                provider=self.PROVIDER_NAME,
            ) from e
        if not isinstance(message, dict):
            raise LLMResponseError(
                "Cerebras response is missing choices[0].message",
                provider=self.PROVIDER_NAME,
            )

        usage = data.get("usage") or {}
        return Completion(
            text=message.get("content") or "",
            provider=self.PROVIDER_NAME,
            model=self._model,
            usage=TokenUsage(
                input_tokens=int(usage.get("prompt_tokens", 0)),
                output_tokens=int(usage.get("completion_tokens", 0)),
            ),
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
