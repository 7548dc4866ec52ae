"""
Authentication utilities.
Bearer JWT tokens for staff and registered customers.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import jwt
from fastapi import HTTPException, Header, status

from shared.config.constants import ErrorMessages, Roles
from shared.config.logging import get_logger
from shared.config.settings import JWT_AUDIENCE, JWT_ISSUER, JWT_SECRET, settings

logger = get_logger(__name__)


def sign_jwt(payload: dict[str, Any], ttl_seconds: int | None = None) -> str:
    """
    Sign an access token.

    Args:
        payload: Claims to include (sub, email, role).
        ttl_seconds: Token lifetime in seconds. Defaults to the configured expiry.

    Returns:
        Signed JWT token string.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.jwt_access_token_expire_minutes * 60

    now = int(time.time())
    data = {
        **payload,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "type": "access",
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, JWT_SECRET, algorithm="HS256")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def verify_jwt(token: str) -> dict[str, Any]:
    """
    Verify and decode an access token.

    Raises:
        HTTPException: 401 if the token is invalid, expired or malformed.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=["HS256"],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized(ErrorMessages.TOKEN_EXPIRED)
    except jwt.InvalidTokenError as e:
        logger.warning("JWT validation failed", error=str(e))
        raise _unauthorized(ErrorMessages.INVALID_TOKEN)

    try:
        int(payload["sub"])
    except (KeyError, ValueError, TypeError):
        raise _unauthorized(ErrorMessages.INVALID_TOKEN)

    if payload.get("type") != "access" or payload.get("role") not in Roles.ALL:
        raise _unauthorized(ErrorMessages.INVALID_TOKEN)

    return payload


def get_bearer_token(authorization: str | None) -> str:
    """
    Extract bearer token from Authorization header.

    Raises:
        HTTPException: 401 if header is missing or malformed.
    """
    if not authorization:
        raise _unauthorized(ErrorMessages.NOT_AUTHENTICATED)
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized(ErrorMessages.NOT_AUTHENTICATED)
    return token.strip()


def current_user_context(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict[str, Any]:
    """
    FastAPI dependency returning the verified token claims.

    Usage:
        @router.get("/protected")
        def protected_endpoint(ctx = Depends(current_user_context)):
            user_id = int(ctx["sub"])
            role = ctx["role"]

    Returns:
        Dict with: sub (user id), email, role
    """
    return verify_jwt(get_bearer_token(authorization))
