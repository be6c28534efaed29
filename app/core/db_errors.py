"""Classify storage constraint violations into domain errors.

Drivers report constraint failures differently; the SQLSTATE code is used when
the driver exposes one (psycopg2 `pgcode`), otherwise the message text is matched.
"""

import re

from sqlalchemy.exc import IntegrityError

from app.core.errors import (
    AppError,
    ConflictError,
    InvalidInputError,
    InvalidReferenceError,
)

PG_UNIQUE_VIOLATION = "23505"
PG_FOREIGN_KEY_VIOLATION = "23503"
PG_NOT_NULL_VIOLATION = "23502"

# PostgreSQL: Key (email)=(a@b.com) already exists.
_PG_KEY_RE = re.compile(r"Key \((\w+)\)")
# MySQL: Duplicate entry 'x' for key 'users.email'
_MYSQL_KEY_RE = re.compile(r"for key '(?:\w+\.)?(\w+)'")
# SQLite: UNIQUE constraint failed: users.email
_SQLITE_KEY_RE = re.compile(r"UNIQUE constraint failed: (?:\w+\.)?(\w+)")


def _driver_code(exc: IntegrityError) -> str | None:
    orig = exc.orig
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def extract_duplicate_field(message: str) -> str | None:
    """Return the column named in a duplicate-key message, if any."""
    for pattern in (_PG_KEY_RE, _MYSQL_KEY_RE, _SQLITE_KEY_RE):
        match = pattern.search(message)
        if match:
            return match.group(1)
    return None


def classify_integrity_error(exc: IntegrityError) -> AppError:
    """Map a storage IntegrityError onto Conflict / InvalidReference / InvalidInput."""
    code = _driver_code(exc)
    message = str(exc.orig) if exc.orig is not None else str(exc)
    lowered = message.lower()

    if (
        code == PG_UNIQUE_VIOLATION
        or "duplicate key" in lowered
        or "duplicate entry" in lowered
        or "unique constraint failed" in lowered
    ):
        field = extract_duplicate_field(message)
        if field:
            return ConflictError(f"{field} is already in use", field=field)
        return ConflictError("Duplicate record")

    if code == PG_FOREIGN_KEY_VIOLATION or "foreign key" in lowered:
        return InvalidReferenceError("Invalid reference to another resource")

    if (
        code == PG_NOT_NULL_VIOLATION
        or "not-null" in lowered
        or "not null constraint failed" in lowered
        or "cannot be null" in lowered
    ):
        return InvalidInputError("Required field is missing")

    return InvalidInputError("Could not process the request against the database")
