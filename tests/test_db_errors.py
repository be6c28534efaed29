"""Unit tests for app.core.db_errors: constraint violations mapped to domain errors."""

import unittest

from sqlalchemy.exc import IntegrityError

from app.core.db_errors import classify_integrity_error, extract_duplicate_field
from app.core.errors import ConflictError, InvalidInputError, InvalidReferenceError


class _DriverError(Exception):
    def __init__(self, message: str, pgcode: str | None = None) -> None:
        super().__init__(message)
        self.pgcode = pgcode


def _integrity(message: str, pgcode: str | None = None) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, _DriverError(message, pgcode))


class TestExtractDuplicateField(unittest.TestCase):
    def test_postgres_detail(self) -> None:
        msg = 'duplicate key value violates unique constraint "uq_users_email"\nDETAIL:  Key (email)=(a@b.com) already exists.'
        self.assertEqual(extract_duplicate_field(msg), "email")

    def test_mysql(self) -> None:
        self.assertEqual(extract_duplicate_field("Duplicate entry 'x' for key 'users.login'"), "login")

    def test_sqlite(self) -> None:
        self.assertEqual(extract_duplicate_field("UNIQUE constraint failed: users.email"), "email")

    def test_unknown(self) -> None:
        self.assertIsNone(extract_duplicate_field("something else"))


class TestClassifyIntegrityError(unittest.TestCase):
    def test_unique_with_field(self) -> None:
        err = classify_integrity_error(
            _integrity("duplicate key value\nDETAIL:  Key (login)=(bob) already exists.", "23505")
        )
        self.assertIsInstance(err, ConflictError)
        self.assertEqual(err.field, "login")
        self.assertEqual(err.message, "login is already in use")
        self.assertEqual(err.status_code, 409)

    def test_unique_without_field(self) -> None:
        err = classify_integrity_error(_integrity("duplicate key value violates unique constraint", "23505"))
        self.assertIsInstance(err, ConflictError)
        self.assertEqual(err.message, "Duplicate record")

    def test_foreign_key(self) -> None:
        err = classify_integrity_error(_integrity("violates foreign key constraint", "23503"))
        self.assertIsInstance(err, InvalidReferenceError)
        self.assertEqual(err.status_code, 400)

    def test_not_null(self) -> None:
        err = classify_integrity_error(_integrity("NOT NULL constraint failed: users.name"))
        self.assertIsInstance(err, InvalidInputError)
        self.assertEqual(err.message, "Required field is missing")

    def test_other(self) -> None:
        err = classify_integrity_error(_integrity("CHECK constraint failed: role"))
        self.assertIsInstance(err, InvalidInputError)


if __name__ == "__main__":
    unittest.main()
