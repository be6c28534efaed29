"""Password hashing and JWT issuance/validation for authentication."""

import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from app.core.config import settings

# Min/max lengths for login credentials (input validation).
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

# bcrypt only looks at the first 72 bytes of its input.
BCRYPT_MAX_BYTES = 72


class TokenError(Exception):
    """Base class for token validation failures."""


class TokenExpiredError(TokenError):
    pass


class TokenMalformedError(TokenError):
    pass


class TokenSignatureError(TokenError):
    pass


@dataclass(frozen=True)
class TokenClaims:
    """Decoded session token payload."""

    user_id: int
    email: str
    role: str
    issued_at: datetime
    expires_at: datetime


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def create_access_token(
    user_id: int,
    email: str,
    role: str,
    now: datetime | None = None,
) -> str:
    """Create a JWT access token carrying sub (user id), email, role, iat and exp."""
    issued = now or datetime.now(UTC)
    expire = issued + timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "iat": int(issued.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(
        payload,
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str, now: datetime | None = None) -> TokenClaims:
    """
    Verify signature and expiry; return the decoded claims.

    Expiry is compared against `now` (current UTC time by default) rather than
    PyJWT's clock so callers can evaluate a token at a given instant.
    Raises TokenExpiredError, TokenSignatureError or TokenMalformedError.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_exp": False, "require": ["sub", "exp", "iat"]},
        )
    except jwt.InvalidSignatureError as e:
        raise TokenSignatureError("Token signature is invalid") from e
    except jwt.PyJWTError as e:
        raise TokenMalformedError("Token is malformed") from e

    try:
        user_id = int(payload["sub"])
        expires_at = datetime.fromtimestamp(int(payload["exp"]), UTC)
        issued_at = datetime.fromtimestamp(int(payload["iat"]), UTC)
    except (TypeError, ValueError) as e:
        raise TokenMalformedError("Token payload is invalid") from e

    current = now or datetime.now(UTC)
    if current >= expires_at:
        raise TokenExpiredError("Token has expired")

    return TokenClaims(
        user_id=user_id,
        email=str(payload.get("email", "")),
        role=str(payload.get("role", "")),
        issued_at=issued_at,
        expires_at=expires_at,
    )


def generate_jwt_secret(num_bytes: int = 64) -> str:
    """Return a random hex secret suitable for JWT_SECRET."""
    return secrets.token_hex(num_bytes)
