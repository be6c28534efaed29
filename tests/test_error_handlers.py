"""Tests for app.core.error_handlers: classification, redaction and the rendered envelope."""

import logging
import unittest

from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError

from app.core.error_handlers import normalize_error, register_error_handlers, sanitize_body
from app.core.errors import (
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
)

ENVELOPE_KEYS = {"statusCode", "message", "error", "timestamp", "path"}


class TestNormalizeError(unittest.TestCase):
    def test_domain_errors_keep_status_and_message(self) -> None:
        cases = [
            (NotFoundError("User with ID 3 not found"), 404, "Not Found"),
            (ConflictError("email is already in use", field="email"), 409, "Conflict"),
            (UnauthorizedError("Invalid token"), 401, "Unauthorized"),
            (ForbiddenError("nope"), 403, "Forbidden"),
            (RateLimitedError("slow down", retry_after=10), 429, "Too Many Requests"),
        ]
        for exc, status_code, label in cases:
            with self.subTest(exc=type(exc).__name__):
                self.assertEqual(normalize_error(exc), (status_code, exc.message, label))

    def test_internal_error_message_is_generic(self) -> None:
        status_code, message, _ = normalize_error(InternalError("db password is hunter2"))
        self.assertEqual(status_code, 500)
        self.assertEqual(message, "Internal server error")

    def test_unknown_exception_is_generic_500(self) -> None:
        self.assertEqual(
            normalize_error(RuntimeError("stack detail")),
            (500, "Internal server error", "Internal Server Error"),
        )

    def test_integrity_error_classified(self) -> None:
        exc = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: users.login"))
        self.assertEqual(normalize_error(exc), (409, "login is already in use", "Conflict"))


class TestSanitizeBody(unittest.TestCase):
    def test_redacts_nested_sensitive_fields(self) -> None:
        body = {
            "email": "a@example.com",
            "password": "Str0ng!Pass",
            "profile": {"senha": "x", "Token": "y"},
            "items": [{"secret": "z", "name": "ok"}],
        }
        clean = sanitize_body(body)
        self.assertEqual(clean["email"], "a@example.com")
        self.assertEqual(clean["password"], "[REDACTED]")
        self.assertEqual(clean["profile"], {"senha": "[REDACTED]", "Token": "[REDACTED]"})
        self.assertEqual(clean["items"], [{"secret": "[REDACTED]", "name": "ok"}])
        self.assertEqual(body["password"], "Str0ng!Pass")

    def test_non_dict_untouched(self) -> None:
        self.assertIsNone(sanitize_body(None))
        self.assertEqual(sanitize_body("text"), "text")


class _Payload(BaseModel):
    name: str
    password: str


def _build_app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/boom")
    def boom() -> dict:
        raise RuntimeError("connection string postgres://secret@db")

    @app.get("/missing")
    def missing() -> dict:
        raise NotFoundError("Thing with ID 1 not found")

    @app.get("/limited")
    def limited() -> dict:
        raise RateLimitedError("Too many attempts", retry_after=30)

    @app.post("/payload")
    def payload(body: _Payload) -> dict:
        return {"ok": True}

    return app


class TestRenderedEnvelope(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(_build_app())

    def tearDown(self) -> None:
        self.client.close()

    def test_domain_error_envelope(self) -> None:
        response = self.client.get("/missing")
        self.assertEqual(response.status_code, 404)
        body = response.json()
        self.assertEqual(set(body), ENVELOPE_KEYS)
        self.assertEqual(body["statusCode"], 404)
        self.assertEqual(body["message"], "Thing with ID 1 not found")
        self.assertEqual(body["error"], "Not Found")
        self.assertEqual(body["path"], "/missing")

    def test_unhandled_error_does_not_leak(self) -> None:
        with self.assertLogs("app.core.error_handlers", level=logging.ERROR):
            response = self.client.get("/boom")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["message"], "Internal server error")
        self.assertNotIn("secret", response.text)

    def test_unknown_route_is_enveloped(self) -> None:
        response = self.client.get("/nowhere")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(set(response.json()), ENVELOPE_KEYS)

    def test_rate_limit_sets_retry_after(self) -> None:
        response = self.client.get("/limited")
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.headers["Retry-After"], "30")

    def test_validation_error_is_400_with_field_messages(self) -> None:
        response = self.client.post("/payload", json={"password": "x"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("name: Field required", response.json()["message"])

    def test_invalid_json_message(self) -> None:
        response = self.client.post(
            "/payload",
            content=b'{"name": ',
            headers={"Content-Type": "application/json"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Invalid JSON in request body")

    def test_logged_body_is_redacted(self) -> None:
        with self.assertLogs("app.core.error_handlers", level=logging.WARNING) as logs:
            self.client.post("/payload", json={"password": "Str0ng!Pass"})
        record = logs.records[0]
        self.assertEqual(record.status_code, 400)
        self.assertIn("[REDACTED]", record.body)
        self.assertNotIn("Str0ng!Pass", record.body)


if __name__ == "__main__":
    unittest.main()
