"""Fallback orchestration across multiple LLM providers."""

import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

import structlog

from src.infrastructure.llm.emergency import build_emergency_content
from src.infrastructure.llm.health import ProviderHealthTracker
from src.infrastructure.llm.schemas import (
    EMERGENCY_PROVIDER,
    AttemptFailure,
    AttemptResult,
    AttemptSuccess,
    GenerationMetadata,
    GenerationRequest,
    GenerationResponse,
    OrchestrationConfig,
    ProviderDescriptor,
)
from src.infrastructure.observability import add_span_attributes, traced

logger = structlog.get_logger()


class FallbackOrchestrator:
    """Tries providers in priority order until one succeeds.

    This provides graceful degradation: callers always get renderable content.
    Providers whose circuit is open are skipped, failures are recorded against
    the shared health tracker, and when nothing succeeds the response carries
    deterministic emergency content instead of an error.

    Attempts for one request are strictly sequential. The first success wins
    and no later provider is contacted.
    """

    def __init__(
        self,
        health_tracker: ProviderHealthTracker,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            health_tracker: Shared circuit breaker state for all providers.
            sleep: Awaitable used for the delay between providers.
            clock: Monotonic clock used for duration measurement.
        """
        self._health = health_tracker
        self._sleep = sleep
        self._clock = clock

    @property
    def health_tracker(self) -> ProviderHealthTracker:
        return self._health

    @traced("llm.orchestrate")
    async def execute(
        self,
        request: GenerationRequest,
        config: OrchestrationConfig,
    ) -> GenerationResponse:
        """Generate a completion with automatic provider fallback.

        Args:
            request: The generation request.
            config: Providers and timing for this call.

        Returns:
            A successful GenerationResponse. When every provider was skipped
            or failed, ``provider`` is ``"emergency-fallback"`` and ``error``
            holds the last real failure.
        """
        started = self._clock()
        providers = config.ordered_providers()
        attempted: list[str] = []
        skipped: list[str] = []
        last_error: str | None = None

        logger.info(
            "orchestration_started",
            endpoint=config.endpoint_name,
            providers=[p.name for p in providers],
            subject=request.subject,
            grade_level=request.grade_level,
            interests=len(request.interests),
            kind=request.kind,
        )

        for index, descriptor in enumerate(providers):
            if not self._health.is_available(descriptor.name):
                logger.info(
                    "provider_skipped_circuit_open",
                    endpoint=config.endpoint_name,
                    provider=descriptor.name,
                )
                skipped.append(descriptor.name)
                continue

            attempted.append(descriptor.name)
            result = await self._attempt(descriptor, request, config)

            if isinstance(result, AttemptSuccess):
                self._health.record_success(descriptor.name)
                duration_ms = self._elapsed_ms(started)
                logger.info(
                    "provider_attempt_succeeded",
                    endpoint=config.endpoint_name,
                    provider=descriptor.name,
                    duration_ms=duration_ms,
                    output_length=len(result.completion.text),
                )
                add_span_attributes(
                    {
                        "llm.endpoint": config.endpoint_name,
                        "llm.provider": descriptor.name,
                        "llm.retry_count": len(attempted) - 1,
                    }
                )
                return GenerationResponse(
                    success=True,
                    data=result.completion.text,
                    provider=descriptor.name,
                    retry_count=len(attempted) - 1,
                    metadata=GenerationMetadata(
                        duration_ms=duration_ms,
                        timestamp_utc=_utc_timestamp(),
                        providers_attempted=tuple(attempted),
                        providers_skipped=tuple(skipped),
                    ),
                    usage=result.completion.usage,
                )

            self._health.record_failure(descriptor.name)
            last_error = result.error_message
            logger.warning(
                "provider_attempt_failed",
                endpoint=config.endpoint_name,
                provider=descriptor.name,
                error=result.error_message,
            )

            if index < len(providers) - 1:
                logger.debug(
                    "provider_retry_delay",
                    endpoint=config.endpoint_name,
                    delay_ms=config.retry_delay_ms,
                )
                await self._sleep(config.retry_delay_ms / 1000)

        return self._emergency_response(
            request, config, providers, skipped, last_error, started
        )

    async def _attempt(
        self,
        descriptor: ProviderDescriptor,
        request: GenerationRequest,
        config: OrchestrationConfig,
    ) -> AttemptResult:
        """Invoke one provider, converting every failure into AttemptFailure."""
        logger.debug(
            "provider_attempt_start",
            endpoint=config.endpoint_name,
            provider=descriptor.name,
        )
        try:
            async with asyncio.timeout(config.attempt_timeout_seconds):
                completion = await descriptor.provider.complete(
                    request.to_completion_request()
                )
        except TimeoutError:
            return AttemptFailure(
                provider_name=descriptor.name,
                error_message=(
                    f"Provider {descriptor.name} timed out after "
                    f"{config.attempt_timeout_seconds}s"
                ),
            )
        except Exception as e:
            return AttemptFailure(
                provider_name=descriptor.name,
                error_message=str(e) or type(e).__name__,
            )

        return AttemptSuccess(provider_name=descriptor.name, completion=completion)

    def _emergency_response(
        self,
        request: GenerationRequest,
        config: OrchestrationConfig,
        providers: list[ProviderDescriptor],
        skipped: list[str],
        last_error: str | None,
        started: float,
    ) -> GenerationResponse:
        error = (
            f"All AI providers failed: {last_error}"
            if last_error is not None
            else "No AI providers available"
        )
        logger.error(
            "orchestration_exhausted",
            endpoint=config.endpoint_name,
            providers=[p.name for p in providers],
            skipped=skipped,
            last_error=last_error,
        )
        add_span_attributes(
            {
                "llm.endpoint": config.endpoint_name,
                "llm.provider": EMERGENCY_PROVIDER,
                "llm.emergency_fallback": True,
            }
        )

        if config.fallback_content is not None:
            data = config.fallback_content
        else:
            data = build_emergency_content(request)

        return GenerationResponse(
            success=True,
            data=data,
            provider=EMERGENCY_PROVIDER,
            retry_count=len(providers),
            error=error,
            metadata=GenerationMetadata(
                duration_ms=self._elapsed_ms(started),
                timestamp_utc=_utc_timestamp(),
                providers_attempted=tuple(p.name for p in providers),
                providers_skipped=tuple(skipped),
                emergency_fallback=True,
                last_error=last_error,
            ),
        )

    def _elapsed_ms(self, started: float) -> int:
        return int((self._clock() - started) * 1000)


def _utc_timestamp() -> str:
    return datetime.now(UTC).isoformat()
