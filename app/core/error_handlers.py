"""Error normalizer: the only place that turns failures into response bodies.

Every exception that escapes request handling is classified by
`normalize_error`, logged once by `_log_error`, and rendered as the uniform
envelope `{statusCode, message, error, timestamp, path}`.
"""

import json
import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.core.db_errors import classify_integrity_error
from app.core.errors import AppError, InternalError, RateLimitedError
from app.schemas.common import ErrorEnvelope

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"
SENSITIVE_FIELDS = frozenset(
    {"password", "password_hash", "senha", "token", "access_token", "secret", "authorization"}
)

STATUS_LABELS = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    415: "Unsupported Media Type",
    422: "Unprocessable Entity",
    429: "Too Many Requests",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def status_label(status_code: int) -> str:
    return STATUS_LABELS.get(status_code, "Error")


def _format_validation_errors(exc: RequestValidationError) -> str:
    """Join field-specific validation messages; a malformed JSON body gets its own message."""
    messages: list[str] = []
    for err in exc.errors():
        if err.get("type") == "json_invalid":
            return "Invalid JSON in request body"
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        msg = str(err.get("msg", "Invalid value")).removeprefix("Value error, ")
        messages.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return ", ".join(messages) or "Validation error"


def _http_exception_message(exc: StarletteHTTPException) -> str:
    detail = exc.detail
    if isinstance(detail, list):
        return ", ".join(str(item) for item in detail)
    if isinstance(detail, dict):
        message = detail.get("message", detail)
        if isinstance(message, list):
            return ", ".join(str(item) for item in message)
        return str(message)
    return str(detail)


def normalize_error(exc: Exception) -> tuple[int, str, str]:
    """
    Classify a failure into (status_code, message, error label).

    Order: domain errors, framework HTTP errors, request validation,
    storage constraint errors, then a generic 500 that never leaks detail.
    """
    if isinstance(exc, InternalError):
        return exc.status_code, InternalError().message, exc.error
    if isinstance(exc, AppError):
        return exc.status_code, exc.message, exc.error
    if isinstance(exc, StarletteHTTPException):
        return exc.status_code, _http_exception_message(exc), status_label(exc.status_code)
    if isinstance(exc, RequestValidationError):
        return 400, _format_validation_errors(exc), status_label(400)
    if isinstance(exc, IntegrityError):
        mapped = classify_integrity_error(exc)
        return mapped.status_code, mapped.message, mapped.error
    fallback = InternalError()
    return fallback.status_code, fallback.message, fallback.error


def sanitize_body(body: Any) -> Any:
    """Redact password-like fields (recursively) before a body is logged."""
    if isinstance(body, dict):
        return {
            key: REDACTED if str(key).lower() in SENSITIVE_FIELDS else sanitize_body(value)
            for key, value in body.items()
        }
    if isinstance(body, list):
        return [sanitize_body(item) for item in body]
    return body


def _request_body(request: Request, exc: Exception) -> Any:
    if isinstance(exc, RequestValidationError):
        return exc.body
    return getattr(request.state, "json_body", None)


def _log_error(request: Request, exc: Exception, status_code: int) -> None:
    user = getattr(request.state, "user", None)
    context = {
        "method": request.method,
        "path": request.url.path,
        "user_id": getattr(user, "id", None),
        "body": json.dumps(sanitize_body(_request_body(request, exc)), default=str),
        "status_code": status_code,
    }
    if status_code >= 500:
        logger.error(
            "[%s] %s - unhandled error",
            request.method,
            request.url.path,
            exc_info=exc,
            extra=context,
        )
    else:
        logger.warning(
            "[%s] %s - %s",
            request.method,
            request.url.path,
            getattr(exc, "message", None) or str(exc),
            extra=context,
        )


def build_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Classify, log and render one failure."""
    status_code, message, error = normalize_error(exc)
    _log_error(request, exc, status_code)
    envelope = ErrorEnvelope(
        status_code=status_code,
        message=message,
        error=error,
        timestamp=datetime.now(UTC),
        path=request.url.path,
    )
    headers: dict[str, str] | None = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}
    elif isinstance(exc, StarletteHTTPException) and exc.headers:
        headers = dict(exc.headers)
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(mode="json", by_alias=True),
        headers=headers,
    )


async def _handle(request: Request, exc: Exception) -> JSONResponse:
    return build_error_response(request, exc)


async def _error_boundary(request: Request, call_next: RequestResponseEndpoint) -> Response:
    try:
        return await call_next(request)
    except Exception as exc:
        return build_error_response(request, exc)


def register_error_handlers(app: FastAPI) -> None:
    """
    Route every failure through build_error_response.

    Known exception types are handled inside the routing layer; the HTTP
    middleware is the outermost boundary and catches everything else.
    """
    for exc_type in (AppError, StarletteHTTPException, RequestValidationError, SQLAlchemyError):
        app.add_exception_handler(exc_type, _handle)

    app.add_middleware(BaseHTTPMiddleware, dispatch=_error_boundary)
