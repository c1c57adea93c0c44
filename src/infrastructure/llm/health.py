"""Per-provider circuit breaker for the fallback chain."""

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import timedelta

import structlog

logger = structlog.get_logger()


@dataclass
class _ProviderHealth:
    consecutive_failures: int = 0
    last_failure_at: float | None = None


@dataclass(frozen=True)
class ProviderHealthStatus:
    """Read-only health snapshot for one provider."""

    name: str
    failures: int
    last_failure_at: float | None  # Epoch seconds
    available: bool


@dataclass(frozen=True)
class HealthMetrics:
    """Aggregate health across all tracked providers."""

    provider_status: dict[str, ProviderHealthStatus] = field(default_factory=dict)
    total_failures: int = 0
    available_providers: list[str] = field(default_factory=list)


class ProviderHealthTracker:
    """Tracks consecutive failures per provider and gates attempts.

    A provider is skipped once it has ``failure_threshold`` consecutive
    failures, until ``reset_after`` has elapsed since its last failure. The
    reset is lazy: it happens inside ``is_available`` rather than on a timer.

    State is process-local. No operation awaits, so a read-modify-write is
    atomic with respect to other tasks on the same event loop.
    """

    def __init__(
        self,
        *,
        failure_threshold: int = 3,
        reset_after: timedelta = timedelta(minutes=5),
        clock: Callable[[], float] = time.time,
        known_providers: Iterable[str] = (),
    ) -> None:
        """Initialize the tracker.

        Args:
            failure_threshold: Consecutive failures that open the circuit.
            reset_after: Cooldown after the last failure before retrying.
            clock: Source of the current time in seconds.
            known_providers: Providers reported by ``status()`` even before
                their first attempt.
        """
        self._failure_threshold = failure_threshold
        self._reset_after_seconds = reset_after.total_seconds()
        self._clock = clock
        self._health: dict[str, _ProviderHealth] = {
            name: _ProviderHealth() for name in known_providers
        }

    def _window_elapsed(self, health: _ProviderHealth, now: float) -> bool:
        if health.last_failure_at is None:
            return True
        return now - health.last_failure_at >= self._reset_after_seconds

    def is_available(self, provider: str) -> bool:
        """Return whether the provider should be attempted.

        Resets the failure count when the cooldown window has elapsed.
        """
        health = self._health.setdefault(provider, _ProviderHealth())

        if self._window_elapsed(health, self._clock()):
            if health.consecutive_failures:
                logger.info(
                    "provider_circuit_reset",
                    provider=provider,
                    previous_failures=health.consecutive_failures,
                )
            health.consecutive_failures = 0
            return True

        return health.consecutive_failures < self._failure_threshold

    def record_failure(self, provider: str) -> None:
        health = self._health.setdefault(provider, _ProviderHealth())
        health.consecutive_failures += 1
        health.last_failure_at = self._clock()

        logger.info(
            "provider_failure_recorded",
            provider=provider,
            consecutive_failures=health.consecutive_failures,
        )
        if health.consecutive_failures == self._failure_threshold:
            logger.warning(
                "provider_circuit_opened",
                provider=provider,
                reset_after_seconds=self._reset_after_seconds,
            )

    def record_success(self, provider: str) -> None:
        health = self._health.setdefault(provider, _ProviderHealth())
        health.consecutive_failures = 0
        logger.debug("provider_success_recorded", provider=provider)

    def failures(self, provider: str) -> int:
        """Current consecutive failure count (0 for unknown providers)."""
        health = self._health.get(provider)
        return health.consecutive_failures if health else 0

    def status(self) -> dict[str, ProviderHealthStatus]:
        """Snapshot every tracked provider without mutating state."""
        now = self._clock()
        return {
            name: ProviderHealthStatus(
                name=name,
                failures=health.consecutive_failures,
                last_failure_at=health.last_failure_at,
                available=(
                    self._window_elapsed(health, now)
                    or health.consecutive_failures < self._failure_threshold
                ),
            )
            for name, health in self._health.items()
        }

    def metrics(self) -> HealthMetrics:
        provider_status = self.status()
        return HealthMetrics(
            provider_status=provider_status,
            total_failures=sum(s.failures for s in provider_status.values()),
            available_providers=[
                name for name, s in provider_status.items() if s.available
            ],
        )

    def reset(self) -> None:
        """Clear failure state for every tracked provider."""
        for health in self._health.values():
            health.consecutive_failures = 0
            health.last_failure_at = None
        logger.info("provider_failures_reset", providers=list(self._health))
