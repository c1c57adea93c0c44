"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from src.api.health import router as health_router
from src.api.monitor import router as monitor_router
from src.api.rate_limit import limiter, rate_limit_exceeded_handler
from src.config import get_settings
from src.infrastructure.observability import (
    init_observability,
    shutdown_observability,
)
from src.modules.tutor import warm_common_responses
from src.modules.tutor.dependencies import (
    get_providers,
    get_response_cache,
    reset_singletons,
)
from src.modules.tutor.routes import router as tutor_router

logger = structlog.get_logger()
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan handler for startup/shutdown."""
    init_observability(
        settings.app_name,
        settings.app_version,
        otlp_endpoint=settings.otel_endpoint,
        console_export=settings.otel_console_export,
        enabled=settings.otel_enabled,
        sample_rate=settings.otel_sample_rate,
        log_level=settings.log_level,
        json_logs=settings.log_json,
        app=app,
    )

    providers = get_providers()
    if not providers:
        logger.warning(
            "no_providers_configured",
            reason="every request will receive emergency content",
        )

    cache = get_response_cache()
    if cache is not None:
        warm_common_responses(cache)

    yield

    for descriptor in providers:
        await descriptor.provider.close()
    reset_singletons()
    shutdown_observability()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(
    RateLimitExceeded,
    rate_limit_exceeded_handler,  # type: ignore[arg-type]
)

# Register routers
app.include_router(health_router, prefix="/health", tags=["health"])
app.include_router(monitor_router, prefix="/api/ai/monitor", tags=["monitor"])
app.include_router(tutor_router)
