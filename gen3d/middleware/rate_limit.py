"""
Rate Limiting Middleware using slowapi
"""

import logging
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse
from gen3d.config import settings

logger = logging.getLogger(__name__)


def get_client_key(request: Request) -> str:
    """
    Rate limit key for a caller.

    The proxy and session endpoints are anonymous; callers are told
    apart by address only.
    """
    return f"ip:{get_remote_address(request)}"


# Create limiter with custom key function
limiter = Limiter(key_func=get_client_key, enabled=settings.rate_limit_enabled)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Custom handler for rate limit exceeded errors"""
    logger.warning(f"Rate limit exceeded for {get_client_key(request)}")
    return JSONResponse(
        status_code=429,
        content={
            "error": "RateLimitExceeded",
            "message": f"Rate limit exceeded: {exc.detail}",
            "detail": "Please wait before making more requests",
        },
    )
