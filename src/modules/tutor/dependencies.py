"""Process-wide singletons for the tutor routes.

Each getter builds its object once per process. Tests replace them through
``app.dependency_overrides`` or clear them with ``reset_singletons``.
"""

from datetime import timedelta
from functools import lru_cache

from src.config import get_settings
from src.infrastructure.cache import InMemoryResponseCache
from src.infrastructure.llm import (
    FallbackOrchestrator,
    ProviderDescriptor,
    ProviderHealthTracker,
    build_providers,
)
from src.modules.tutor.service import TutorService


@lru_cache
def get_providers() -> tuple[ProviderDescriptor, ...]:
    return build_providers(get_settings())


@lru_cache
def get_health_tracker() -> ProviderHealthTracker:
    settings = get_settings()
    return ProviderHealthTracker(
        failure_threshold=settings.circuit_breaker_fail_max,
        reset_after=timedelta(minutes=settings.circuit_breaker_reset_minutes),
        known_providers=[d.name for d in get_providers()],
    )


@lru_cache
def get_response_cache() -> InMemoryResponseCache | None:
    """Get the response cache, or None when caching is disabled."""
    settings = get_settings()
    if not settings.cache_enabled:
        return None
    return InMemoryResponseCache(
        max_entries=settings.cache_max_entries,
        default_ttl_minutes=settings.cache_ttl_minutes,
    )


@lru_cache
def get_orchestrator() -> FallbackOrchestrator:
    return FallbackOrchestrator(get_health_tracker())


@lru_cache
def get_tutor_service() -> TutorService:
    settings = get_settings()
    return TutorService(
        get_orchestrator(),
        get_providers(),
        cache=get_response_cache(),
        retry_delay_ms=settings.provider_retry_delay_ms,
        attempt_timeout_seconds=settings.provider_timeout_seconds,
        cache_ttl_minutes=settings.cache_ttl_minutes,
    )


def reset_singletons() -> None:
    """Drop every cached singleton (next call rebuilds from settings)."""
    for getter in (
        get_providers,
        get_health_tracker,
        get_response_cache,
        get_orchestrator,
        get_tutor_service,
    ):
        getter.cache_clear()
