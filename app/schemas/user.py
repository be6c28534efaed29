"""Request/response schemas for the users resource and its projection function."""

import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from app.models.user import User, UserRole
from app.schemas.common import CamelModel

LOGIN_RE = re.compile(r"^[a-zA-Z0-9_]+$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PASSWORD_RULES = (
    (re.compile(r"[a-z]"), "a lowercase letter"),
    (re.compile(r"[A-Z]"), "an uppercase letter"),
    (re.compile(r"\d"), "a digit"),
    (re.compile(r"[@$!%*?&]"), "a special character (@$!%*?&)"),
)


def normalize_email(value: str) -> str:
    value = value.strip().lower()
    if len(value) > 255:
        raise ValueError("email must be at most 255 characters")
    if not EMAIL_RE.match(value):
        raise ValueError("email must be a valid address")
    return value


def check_login(value: str) -> str:
    value = value.strip()
    if not LOGIN_RE.match(value):
        raise ValueError("login may only contain letters, digits and underscore")
    return value


def check_name(value: str) -> str:
    value = value.strip()
    if len(value) < 2:
        raise ValueError("name must be at least 2 characters")
    return value


def check_password_strength(value: str) -> str:
    missing = [label for pattern, label in PASSWORD_RULES if not pattern.search(value)]
    if missing:
        raise ValueError("password must contain " + ", ".join(missing))
    return value


class UserCreate(BaseModel):
    """Fields accepted when creating a user. Anything else in the body is dropped."""

    name: str = Field(..., min_length=2, max_length=100)
    login: str = Field(..., min_length=3, max_length=50)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    role: UserRole = UserRole.USER

    @field_validator("name")
    @classmethod
    def name_trim(cls, v: str) -> str:
        return check_name(v)

    @field_validator("login")
    @classmethod
    def login_format(cls, v: str) -> str:
        return check_login(v)

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        return check_password_strength(v)


class UserUpdate(BaseModel):
    """Partial update. Only fields present in the body are applied."""

    name: str | None = Field(default=None, min_length=2, max_length=100)
    login: str | None = Field(default=None, min_length=3, max_length=50)
    email: str | None = Field(default=None, max_length=255)
    password: str | None = Field(
        default=None, min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN
    )
    role: UserRole | None = None

    @field_validator("name")
    @classmethod
    def name_trim(cls, v: str | None) -> str | None:
        return None if v is None else check_name(v)

    @field_validator("login")
    @classmethod
    def login_format(cls, v: str | None) -> str | None:
        return None if v is None else check_login(v)

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str | None) -> str | None:
        return None if v is None else normalize_email(v)

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str | None) -> str | None:
        return None if v is None else check_password_strength(v)


class UserResponse(CamelModel):
    """Public projection of a user. The password hash has no field here."""

    id: int
    name: str
    login: str
    email: str
    role: UserRole
    created_at: datetime
    updated_at: datetime


def to_user_response(user: User) -> UserResponse:
    """Project a User row onto exactly the exposed fields."""
    return UserResponse(
        id=user.id,
        name=user.name,
        login=user.login,
        email=user.email,
        role=user.role,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )
