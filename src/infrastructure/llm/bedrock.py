"""Claude on AWS Bedrock LLM provider implementation."""

from typing import Any

import structlog
from anthropic import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncAnthropicBedrock,
    RateLimitError,
)
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)
from tenacity.wait import wait_base

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

# Bedrock signals capacity problems through several shapes of error
OVERLOAD_STATUS_CODES = frozenset({429, 529})
OVERLOAD_MARKERS = ("overloaded", "throttling")


def is_overload_error(error: BaseException) -> bool:
    """Return True for Bedrock throttling/overload errors worth retrying."""
    if isinstance(error, APIStatusError) and error.status_code in OVERLOAD_STATUS_CODES:
        return True
    message = str(error).lower()
    return any(marker in message for marker in OVERLOAD_MARKERS)


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "llm_overload_retrying",
        provider=BedrockClaudeProvider.PROVIDER_NAME,
        attempt=retry_state.attempt_number,
        wait_seconds=round(retry_state.next_action.sleep, 2)
        if retry_state.next_action
        else None,
        error=str(error),
    )


class BedrockClaudeProvider:
    """LLM provider calling Claude through AWS Bedrock.

    Overload and throttling errors are retried here with exponential backoff
    and jitter; every other error fails fast so the orchestrator can move on.
    """

    PROVIDER_NAME = "bedrock"

    def __init__(
        self,
        *,
        aws_region: str,
        aws_access_key: str | None = None,
        aws_secret_key: str | None = None,
        default_model: str = "us.anthropic.claude-3-7-sonnet-20250219-v1:0",
        timeout_seconds: float = 30.0,
        max_attempts: int = 4,
        retry_wait: wait_base | None = None,
    ) -> None:
        """Initialize the Bedrock provider.

        Args:
            aws_region: AWS region hosting the model.
            aws_access_key: Access key ID; falls back to the AWS credential chain.
            aws_secret_key: Secret access key.
            default_model: Bedrock model ID.
            timeout_seconds: Request timeout in seconds.
            max_attempts: Total tries for overload errors (first try included).
            retry_wait: Wait strategy between overload retries.

        Raises:
            LLMConfigurationError: If the region is missing.
        """
        if not aws_region:
            raise LLMConfigurationError(
                "AWS region is required for Bedrock", provider=self.PROVIDER_NAME
            )

        self._client = AsyncAnthropicBedrock(
            aws_region=aws_region,
            aws_access_key=aws_access_key,
            aws_secret_key=aws_secret_key,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self._model = default_model
        self._timeout = timeout_seconds
        self._max_attempts = max_attempts
        self._retry_wait = retry_wait or (
            wait_exponential(multiplier=1, max=10) + wait_random(0, 1)
        )

    @property
    def name(self) -> str:
        return self.PROVIDER_NAME

    async def complete(self, request: CompletionRequest) -> Completion:
        """Generate a completion using Claude on Bedrock.

        Args:
            request: The canonical completion request.

        Returns:
            The normalized completion.

        Raises:
            LLMProviderError: If the completion fails.
            LLMTimeoutError: If the request times out.
            LLMRateLimitError: If still throttled after all retries.
        """
        with tracer.start_as_current_span("llm.complete") as span:
            span.set_attribute("llm.provider", self.PROVIDER_NAME)
            span.set_attribute("llm.model", self._model)
            span.set_attribute("llm.input_length", request.input_length)

            try:
                response = await self._create_with_retry(request)

            except APITimeoutError as e:
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

            except RateLimitError as e:
                span.record_exception(e)
                raise LLMRateLimitError(
                    "Bedrock is throttling requests. Please try again shortly.",
                    provider=self.PROVIDER_NAME,
                ) from e

            except APIConnectionError as e:
                span.record_exception(e)
                logger.error(
                    "llm_connection_error",
                    provider=self.PROVIDER_NAME,
                    model=self._model,
                    error=str(e),
                )
                raise LLMProviderError(
                    "Unable to connect to Bedrock",
                    provider=self.PROVIDER_NAME,
                ) from e

            except Exception as e:
                span.record_exception(e)
                logger.error(
                    "llm_unexpected_error",
                    provider=self.PROVIDER_NAME,
                    model=self._model,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise LLMProviderError(
                    f"Bedrock Claude API call failed: {e}",
                    provider=self.PROVIDER_NAME,
                ) from e

            completion = self._parse(response)
            span.set_attribute("llm.output_length", len(completion.text))
            return completion

    async def _create_with_retry(self, request: CompletionRequest) -> Any:
        params: dict[str, Any] = {
            "model": self._model,
            "messages": list(request.messages),
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
        }
        if request.system_prompt:
            params["system"] = request.system_prompt

        logger.debug(
            "llm_request_start",
            provider=self.PROVIDER_NAME,
            model=self._model,
            message_count=len(request.messages),
        )

        async for attempt in AsyncRetrying(
            retry=retry_if_exception(is_overload_error),
            stop=stop_after_attempt(self._max_attempts),
            wait=self._retry_wait,
            before_sleep=_log_retry,
            reraise=True,
        ):
            with attempt:
                return await self._client.messages.create(**params)

        raise AssertionError("unreachable")  # pragma: no cover

    def _parse(self, response: Any) -> Completion:
        text = next(
            (
                block.text
                for block in (response.content or [])
                if getattr(block, "type", None) == "text"
            ),
            None,
        )
        if text is None:
            raise LLMResponseError(
                "Invalid Claude response format", provider=self.PROVIDER_NAME
            )

        usage = response.usage
        logger.debug(
            "llm_request_success",
            provider=self.PROVIDER_NAME,
            model=self._model,
            response_length=len(text),
        )
        return Completion(
            text=text,
            provider=self.PROVIDER_NAME,
            model=self._model,
            usage=TokenUsage(
                input_tokens=usage.input_tokens if usage else 0,
                output_tokens=usage.output_tokens if usage else 0,
            ),
        )

    async def close(self) -> None:
        """Close the Bedrock client."""
        await self._client.close()
