"""Users resource: generic CRUD routes with password hashing and admin-only writes."""

from typing import Any

from app.api.access import ADMIN_ONLY
from app.api.crud_router import CrudResource, build_crud_router, crud_policies
from app.core.errors import InvalidInputError
from app.core.security import hash_password
from app.models.user import User
from app.schemas.user import UserCreate, UserResponse, UserUpdate, to_user_response

USERS_PREFIX = "/users"


def _hash_password_field(data: dict[str, Any]) -> dict[str, Any]:
    """Replace a plain `password` with its bcrypt hash before it reaches storage."""
    if "password" not in data:
        return data
    data = dict(data)
    password = data.pop("password")
    if password is None:
        raise InvalidInputError("password cannot be null")
    data["password_hash"] = hash_password(password)
    return data


USERS = CrudResource(
    prefix=USERS_PREFIX,
    model=User,
    create_schema=UserCreate,
    update_schema=UserUpdate,
    response_schema=UserResponse,
    to_response=to_user_response,
    policies=crud_policies(
        USERS_PREFIX,
        required_roles={
            "list": ADMIN_ONLY,
            "create": ADMIN_ONLY,
            "update": ADMIN_ONLY,
            "delete": ADMIN_ONLY,
        },
    ),
    prepare_create=_hash_password_field,
    prepare_update=_hash_password_field,
    tags=["users"],
)

router = build_crud_router(USERS)
