"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.user import UserRole


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = Field(..., min_length=1, max_length=255, description="Email")
    password: str = Field(..., min_length=1, max_length=128, description="Password")

    @field_validator("email")
    @classmethod
    def email_normalize(cls, v: str) -> str:
        return v.strip().lower()


class LoginResponse(BaseModel):
    """JWT access token plus the identity it was issued for."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    id: int
    name: str
    email: str
    role: UserRole


class CurrentUser(BaseModel):
    """Authenticated user (id, name, email, role) attached to the request."""

    id: int
    name: str
    email: str
    role: UserRole

    model_config = ConfigDict(from_attributes=True)
