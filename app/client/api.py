"""HTTP client for the API that keeps the session store in step with responses.

Every request carries the stored bearer token unless one is already set.
Error responses are turned into ApiClientError with a user-facing message;
401 on an authenticated request ends the session, 403 sends the user to the
dashboard.
"""

import logging
from typing import Any

import httpx

from app.client.session import SessionStore, SessionUser

logger = logging.getLogger(__name__)

DASHBOARD_PATH = "/dashboard"
DEFAULT_TIMEOUT = 30.0

STATUS_MESSAGES = {
    401: "Session expired. Please log in again.",
    403: "You do not have permission to access this resource.",
    404: "Resource not found.",
    429: "Too many attempts. Please wait a moment and try again.",
    500: "Internal server error. Please try again later.",
}
CONNECTION_MESSAGE = "Could not connect to the server. Check your connection."
DEFAULT_MESSAGE = "An unexpected error occurred."


class ApiClientError(Exception):
    def __init__(self, status_code: int, message: str, error: str | None = None, path: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.error = error
        self.path = path


def extract_error_message(body: Any, default: str = DEFAULT_MESSAGE) -> str:
    """Pull the human-readable message out of an error envelope."""
    if not isinstance(body, dict):
        return default
    message = body.get("message")
    if isinstance(message, list):
        return ", ".join(str(m) for m in message) or default
    if isinstance(message, str) and message:
        return message
    error = body.get("error")
    return error if isinstance(error, str) and error else default


class ApiClient:
    def __init__(
        self,
        base_url: str,
        session: SessionStore,
        transport: httpx.BaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.session = session
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            event_hooks={"request": [self._attach_token], "response": [self._check_response]},
        )

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _attach_token(self, request: httpx.Request) -> None:
        if "Authorization" in request.headers:
            return
        token = self.session.get_token()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"

    def _check_response(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        response.read()
        try:
            body = response.json()
        except ValueError:
            body = None

        status_code = response.status_code
        sent_token = "Authorization" in response.request.headers
        if status_code == 401 and sent_token:
            self.session.logout()
            message = STATUS_MESSAGES[401]
        elif status_code == 403:
            self.session.navigate(DASHBOARD_PATH)
            message = STATUS_MESSAGES[403]
        elif status_code in (404, 500):
            message = STATUS_MESSAGES[status_code]
        else:
            message = extract_error_message(body, STATUS_MESSAGES.get(status_code, DEFAULT_MESSAGE))

        logger.warning(
            "API request failed",
            extra={"status_code": status_code, "path": response.request.url.path},
        )
        raise ApiClientError(
            status_code,
            message,
            error=body.get("error") if isinstance(body, dict) else response.reason_phrase,
            path=response.request.url.path,
        )

    def request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and return the decoded JSON body (None when empty)."""
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise ApiClientError(0, CONNECTION_MESSAGE) from e
        if not response.content:
            return None
        return response.json()

    def get(self, path: str, **kwargs: Any) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> Any:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        return self.request("DELETE", path, **kwargs)

    def login(self, email: str, password: str) -> SessionUser:
        data = self.post("/auth/login", json={"email": email, "password": password})
        return self.session.set_session(data)

    def fetch_me(self) -> SessionUser:
        return self.session.update_user(self.get("/auth/me"))

    def logout(self) -> None:
        self.session.logout()
