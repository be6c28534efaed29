"""Client-side session store: the authenticated identity as observable state.

State is mirrored to a KeyValueStorage under TOKEN_KEY / USER_KEY so a new
process (or a reload) picks up the session where it was left.
"""

import json
import logging
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any

import jwt

from app.client.storage import TOKEN_KEY, USER_KEY, KeyValueStorage
from app.models.user import UserRole

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"


@dataclass(frozen=True)
class SessionUser:
    id: int
    name: str
    email: str
    role: UserRole

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionUser":
        return cls(
            id=int(data["id"]),
            name=str(data["name"]),
            email=str(data["email"]),
            role=UserRole(data["role"]),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["role"] = self.role.value
        return data


@dataclass(frozen=True)
class SessionState:
    user: SessionUser | None
    is_authenticated: bool


Listener = Callable[[SessionState], None]


def is_token_expired(token: str, now: datetime | None = None) -> bool:
    """Local expiry check on the unverified payload. Undecodable tokens count as expired."""
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return True
    exp = payload.get("exp")
    if exp is None:
        return False
    try:
        expires_at = datetime.fromtimestamp(int(exp), UTC)
    except (TypeError, ValueError, OverflowError, OSError):
        return True
    return expires_at <= (now or datetime.now(UTC))


class SessionStore:
    """Holds the current user and authentication flag; notifies subscribers on change."""

    def __init__(
        self,
        storage: KeyValueStorage,
        navigate: Callable[[str], None] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._storage = storage
        self._navigate = navigate
        self._clock = clock or (lambda: datetime.now(UTC))
        self._listeners: list[Listener] = []
        self._state = SessionState(user=None, is_authenticated=False)
        self.restore()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_user(self) -> SessionUser | None:
        return self._state.user

    @property
    def is_authenticated(self) -> bool:
        return self._state.is_authenticated

    @property
    def is_admin(self) -> bool:
        return self.has_role(UserRole.ADMIN)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def navigate(self, path: str) -> None:
        if self._navigate is not None:
            self._navigate(path)

    def get_token(self) -> str | None:
        return self._storage.get_item(TOKEN_KEY)

    def set_session(self, login_response: dict[str, Any]) -> SessionUser:
        """Store the token and identity returned by POST /auth/login."""
        user = SessionUser.from_dict(login_response)
        self._storage.set_item(TOKEN_KEY, login_response["access_token"])
        self._save_user(user)
        self._set_state(SessionState(user=user, is_authenticated=True))
        return user

    def update_user(self, user: SessionUser | dict[str, Any]) -> SessionUser:
        if isinstance(user, dict):
            user = SessionUser.from_dict(user)
        self._save_user(user)
        self._set_state(SessionState(user=user, is_authenticated=self._state.is_authenticated))
        return user

    def logout(self, redirect: bool = True) -> None:
        """Forget the session everywhere and send the user to the login page."""
        self._storage.remove_item(TOKEN_KEY)
        self._storage.remove_item(USER_KEY)
        self._set_state(SessionState(user=None, is_authenticated=False))
        if redirect:
            self.navigate(LOGIN_PATH)

    def is_user_authenticated(self) -> bool:
        """True while a stored token exists and has not expired; logs out otherwise."""
        token = self.get_token()
        if not token:
            return False
        if is_token_expired(token, self._clock()):
            self.logout()
            return False
        return True

    def has_role(self, role: UserRole) -> bool:
        user = self._state.user
        return user is not None and user.role == role

    def has_any_role(self, roles: Iterable[UserRole]) -> bool:
        user = self._state.user
        return user is not None and user.role in set(roles)

    def restore(self) -> None:
        """Rebuild state from storage; an expired or corrupt session is cleared."""
        token = self.get_token()
        raw_user = self._storage.get_item(USER_KEY)
        if not token:
            return
        if is_token_expired(token, self._clock()):
            self.logout()
            return
        if raw_user is None:
            return
        try:
            user = SessionUser.from_dict(json.loads(raw_user))
        except (ValueError, KeyError, TypeError):
            logger.warning("Stored session user is unreadable; clearing session")
            self.logout()
            return
        self._set_state(SessionState(user=user, is_authenticated=True))

    def _save_user(self, user: SessionUser) -> None:
        self._storage.set_item(USER_KEY, json.dumps(user.to_dict()))

    def _set_state(self, state: SessionState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)
