"""Pydantic request/response schemas."""

from app.schemas.auth import CurrentUser, LoginRequest, LoginResponse
from app.schemas.common import ErrorEnvelope, MessageResponse, PageResponse
from app.schemas.status import DatabaseStatus, MigrationInfo, StatusResponse
from app.schemas.user import UserCreate, UserResponse, UserUpdate, to_user_response

__all__ = [
    "CurrentUser",
    "DatabaseStatus",
    "ErrorEnvelope",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "MigrationInfo",
    "PageResponse",
    "StatusResponse",
    "UserCreate",
    "UserResponse",
    "UserUpdate",
    "to_user_response",
]
