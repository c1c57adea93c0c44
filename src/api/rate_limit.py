"""Rate limiting configuration using slowapi."""

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from src.config import get_settings

RATE_LIMIT_MESSAGE = (
    "Too many requests. Please wait a moment before asking another question."
)

limiter = Limiter(key_func=get_remote_address)


def get_rate_limit_string() -> str:
    """Get the rate limit string from settings."""
    settings = get_settings()
    return f"{settings.rate_limit_requests}/{settings.rate_limit_window}"


async def rate_limit_exceeded_handler(
    _request: Request,
    _exc: RateLimitExceeded,
) -> Response:
    """Handle rate limit exceeded errors with a JSON body."""
    return JSONResponse(
        content={
            "success": False,
            "error": "rate_limit_exceeded",
            "message": RATE_LIMIT_MESSAGE,
        },
        status_code=429,
    )
