"""JWT login and the authenticated-identity endpoint."""

import logging
import secrets
from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.access import AccessGuard, get_current_user, register_policy
from app.core.config import settings
from app.core.database import get_db
from app.core.errors import UnauthorizedError
from app.core.rate_limit import RateLimiter
from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import User
from app.schemas.auth import CurrentUser, LoginRequest, LoginResponse

logger = logging.getLogger(__name__)
router = APIRouter()

LOGIN_POLICY = register_policy("/auth/login", "POST", public=True)
ME_POLICY = register_policy("/auth/me", "GET")

login_limiter = RateLimiter(settings.LOGIN_RATE_LIMIT, settings.LOGIN_RATE_WINDOW_SEC)


@lru_cache
def _dummy_password_hash() -> str:
    """Hash checked for unknown emails so both failure paths pay the bcrypt cost."""
    return hash_password(secrets.token_urlsafe(16))


def limit_login_attempts(request: Request) -> None:
    """Dependency: throttle login attempts per client address. Raises 429."""
    client = request.client.host if request.client else "unknown"
    login_limiter.hit(f"login:{client}")


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(AccessGuard(LOGIN_POLICY)), Depends(limit_login_attempts)],
)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> LoginResponse:
    """
    Authenticate with email and password; returns a JWT access token and the identity.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    user = db.scalars(select(User).where(User.email == body.email)).first()
    # Same message and same bcrypt work for unknown email and wrong password.
    if user is None:
        verify_password(body.password, _dummy_password_hash())
        raise UnauthorizedError("Invalid credentials")
    if not verify_password(body.password, user.password_hash):
        raise UnauthorizedError("Invalid credentials")

    token = create_access_token(user_id=user.id, email=user.email, role=user.role.value)
    logger.info("User logged in", extra={"user_id": user.id})
    return LoginResponse(
        access_token=token,
        token_type="bearer",
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
    )


@router.get("/me", response_model=CurrentUser, dependencies=[Depends(AccessGuard(ME_POLICY))])
def me(current_user: Annotated[CurrentUser, Depends(get_current_user)]) -> CurrentUser:
    """Return the identity attached to this request by the access guard."""
    return current_user
