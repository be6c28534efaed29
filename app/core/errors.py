"""Domain error taxonomy. Each error knows its HTTP status and envelope label."""


class AppError(Exception):
    """Base class for failures that map onto a client-visible error envelope."""

    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidInputError(AppError):
    """Missing or malformed request data; fixable by the client."""

    status_code = 400
    error = "Bad Request"


class NotFoundError(AppError):
    status_code = 404
    error = "Not Found"


class ConflictError(AppError):
    """Uniqueness violation. `field` names the offending column when known."""

    status_code = 409
    error = "Conflict"

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidReferenceError(AppError):
    """Foreign-key violation: the record points at (or is pointed at by) another resource."""

    status_code = 400
    error = "Bad Request"


class UnauthorizedError(AppError):
    status_code = 401
    error = "Unauthorized"


class ForbiddenError(AppError):
    status_code = 403
    error = "Forbidden"


class RateLimitedError(AppError):
    status_code = 429
    error = "Too Many Requests"

    def __init__(self, message: str, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(message)


class InternalError(AppError):
    """Unclassified failure. The message is always generic."""

    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
