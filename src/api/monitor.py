"""Provider health monitoring endpoints."""

from datetime import UTC, datetime
from typing import Annotated, Literal

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from src.infrastructure.llm import ProviderHealthTracker
from src.modules.tutor.dependencies import get_health_tracker

logger = structlog.get_logger()
router = APIRouter()

HEALTHY_THRESHOLD = 80
DEGRADED_THRESHOLD = 50

OverallStatus = Literal["healthy", "degraded", "critical"]


class MonitorMetrics(BaseModel):
    """Aggregate provider counts."""

    total_providers: int = Field(serialization_alias="totalProviders")
    available_providers: int = Field(serialization_alias="availableProviders")
    total_failures: int = Field(serialization_alias="totalFailures")
    available_provider_names: list[str] = Field(
        serialization_alias="availableProviderNames"
    )


class ProviderState(BaseModel):
    """Per-provider circuit breaker state."""

    name: str
    available: bool
    failures: int
    last_failure: str | None = Field(serialization_alias="lastFailure")
    status: Literal["operational", "circuit_breaker_open"]


class MonitorResponse(BaseModel):
    """Provider health report."""

    success: bool = True
    timestamp: str
    overall_status: OverallStatus = Field(serialization_alias="overallStatus")
    health_score: int = Field(serialization_alias="healthScore")
    metrics: MonitorMetrics
    providers: list[ProviderState]


class ResetResponse(BaseModel):
    """Result of a manual circuit breaker reset."""

    success: bool = True
    message: str
    timestamp: str
    total_failures: int = Field(serialization_alias="totalFailures")
    available_providers: list[str] = Field(serialization_alias="availableProviders")


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def overall_status_for(health_score: float) -> OverallStatus:
    if health_score >= HEALTHY_THRESHOLD:
        return "healthy"
    if health_score >= DEGRADED_THRESHOLD:
        return "degraded"
    return "critical"


@router.get("", response_model=MonitorResponse)
async def provider_health(
    tracker: Annotated[ProviderHealthTracker, Depends(get_health_tracker)],
) -> MonitorResponse:
    """Report circuit breaker state for every tracked provider.

    The health score is the share of available providers. With no providers
    configured the score is 0 and the service is critical.
    """
    metrics = tracker.metrics()
    statuses = metrics.provider_status
    total = len(statuses)
    available = len(metrics.available_providers)
    health_score = (available / total) * 100 if total else 0.0
    overall = overall_status_for(health_score)

    logger.info(
        "provider_health_checked",
        overall_status=overall,
        health_score=round(health_score),
        total_failures=metrics.total_failures,
    )

    return MonitorResponse(
        timestamp=_now_iso(),
        overall_status=overall,
        health_score=round(health_score),
        metrics=MonitorMetrics(
            total_providers=total,
            available_providers=available,
            total_failures=metrics.total_failures,
            available_provider_names=metrics.available_providers,
        ),
        providers=[
            ProviderState(
                name=name,
                available=state.available,
                failures=state.failures,
                last_failure=(
                    datetime.fromtimestamp(state.last_failure_at, UTC).isoformat()
                    if state.last_failure_at is not None
                    else None
                ),
                status="operational" if state.available else "circuit_breaker_open",
            )
            for name, state in statuses.items()
        ],
    )


@router.post("/reset", response_model=ResetResponse)
async def reset_provider_failures(
    tracker: Annotated[ProviderHealthTracker, Depends(get_health_tracker)],
) -> ResetResponse:
    """Clear failure counts for every provider."""
    tracker.reset()
    metrics = tracker.metrics()
    return ResetResponse(
        message="All provider failure counts have been reset",
        timestamp=_now_iso(),
        total_failures=metrics.total_failures,
        available_providers=metrics.available_providers,
    )
