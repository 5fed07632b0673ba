# File: learnify/core/limiter.py

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from learnify.core.config import Settings


def build_limiter(settings: Settings) -> Limiter:
    # `get_remote_address` keys the limits on the client's IP address.
    return Limiter(
        key_func=get_remote_address,
        enabled=settings.rate_limit_enabled,
        storage_uri=settings.rate_limit_storage_uri,
        default_limits=[settings.rate_limit_default],
    )


async def custom_rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Custom exception handler for rate-limited requests to return a JSON response.
    """
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "status": "fail",
            "message": "Too many requests from this IP, please try again later.",
            "detail": f"Rate limit exceeded ({exc.detail})",
        },
    )
