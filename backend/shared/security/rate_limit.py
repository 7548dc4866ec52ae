"""
Rate limiting with slowapi, keyed by client IP.
Protects the login endpoint from credential stuffing.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from shared.config.constants import ErrorMessages
from shared.config.logging import get_logger
from shared.config.settings import settings

logger = get_logger(__name__)

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

# e.g. "5/60 second"
LOGIN_RATE_LIMIT = f"{settings.login_rate_limit}/{settings.login_rate_window} second"


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with the usual `message` body and a Retry-After header."""
    logger.warning(
        "Rate limit exceeded",
        path=request.url.path,
        client=get_remote_address(request),
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content={
            "message": ErrorMessages.RATE_LIMIT_EXCEEDED,
            "detail": ErrorMessages.RATE_LIMIT_EXCEEDED,
            "retry_after": str(exc.detail),
        },
        headers={"Retry-After": str(settings.login_rate_window)},
    )
