"""Access decision layer: authentication then authorization, per route.

Each route declares a RoutePolicy record; AccessGuard(policy) is attached to the
route as a dependency. All declared policies are collected in POLICY_TABLE.
"""

from dataclasses import dataclass, field
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import ForbiddenError, UnauthorizedError
from app.core.security import TokenError, TokenExpiredError, decode_access_token
from app.models.user import User, UserRole
from app.schemas.auth import CurrentUser

security = HTTPBearer(auto_error=False)

ADMIN_ONLY = frozenset({UserRole.ADMIN})


@dataclass(frozen=True)
class RoutePolicy:
    """Access requirements of one route. Empty required_roles means any authenticated user."""

    path: str
    method: str
    required_roles: frozenset[UserRole] = field(default_factory=frozenset)
    public: bool = False


# (METHOD, path) -> policy, for every route that declared one.
POLICY_TABLE: dict[tuple[str, str], RoutePolicy] = {}


def register_policy(
    path: str,
    method: str,
    required_roles: frozenset[UserRole] = frozenset(),
    public: bool = False,
) -> RoutePolicy:
    policy = RoutePolicy(
        path=path,
        method=method.upper(),
        required_roles=frozenset(required_roles),
        public=public,
    )
    POLICY_TABLE[(policy.method, policy.path)] = policy
    return policy


def authenticate(
    credentials: HTTPAuthorizationCredentials | None,
    db: Session,
) -> CurrentUser:
    """Resolve the bearer token to a stored user. Raises UnauthorizedError."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Not authenticated")
    try:
        claims = decode_access_token(credentials.credentials)
    except TokenExpiredError as e:
        raise UnauthorizedError("Token expired") from e
    except TokenError as e:
        raise UnauthorizedError("Invalid token") from e

    user = db.get(User, claims.user_id)
    if user is None:
        raise UnauthorizedError("User not found")
    return CurrentUser(id=user.id, name=user.name, email=user.email, role=user.role)


def authorize(user: CurrentUser, policy: RoutePolicy) -> None:
    """Raise ForbiddenError unless the user's role satisfies the policy."""
    if not policy.required_roles:
        return
    if user.role not in policy.required_roles:
        raise ForbiddenError("You do not have permission to access this resource")


class AccessGuard:
    """Route dependency enforcing one RoutePolicy; attaches the identity to request.state.user."""

    def __init__(self, policy: RoutePolicy) -> None:
        self.policy = policy

    def __call__(
        self,
        request: Request,
        credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
        db: Annotated[Session, Depends(get_db)],
    ) -> CurrentUser | None:
        if self.policy.public:
            return None
        user = authenticate(credentials, db)
        request.state.user = user
        authorize(user, self.policy)
        return user


def get_current_user(request: Request) -> CurrentUser:
    """Dependency: the identity attached by AccessGuard. Raises 401 when absent."""
    user = getattr(request.state, "user", None)
    if user is None:
        raise UnauthorizedError("Not authenticated")
    return user
