"""
Authentication router.
Handles login and the current user profile.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from shared.config.constants import ErrorMessages
from shared.config.settings import settings
from shared.infrastructure.db import get_db
from shared.security.auth import sign_jwt
from shared.security.rate_limit import LOGIN_RATE_LIMIT, limiter
from shared.utils.schemas import LoginRequest, LoginResponse, PermissionEntry, UserInfo
from rest_api.models import User
from rest_api.services.domain import UserService
from rest_api.services.permissions import PermissionContext, get_current_user


router = APIRouter(prefix="/api/auth", tags=["auth"])


def _user_info(user: User) -> UserInfo:
    return UserInfo(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role,
        permissions=[PermissionEntry(**entry) for entry in PermissionContext(user).as_list()],
    )


@router.post("/login", response_model=LoginResponse)
@limiter.limit(LOGIN_RATE_LIMIT)
def login(request: Request, response: Response, body: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    """
    Authenticate a user and return a bearer token.

    The token carries:
    - sub: user ID
    - email: user's email
    - role: user's role

    Rate limited per client IP.
    """
    user = UserService(db).authenticate(body.email, body.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=ErrorMessages.INVALID_CREDENTIALS,
        )

    access_token = sign_jwt({"sub": str(user.id), "email": user.email, "role": user.role})
    return LoginResponse(
        access_token=access_token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=_user_info(user),
    )


@router.get("/me", response_model=UserInfo)
def me(user: User = Depends(get_current_user)) -> UserInfo:
    """Profile and effective permissions of the caller."""
    return _user_info(user)
