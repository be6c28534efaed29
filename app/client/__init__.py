from app.client.api import ApiClient, ApiClientError
from app.client.session import SessionState, SessionStore, SessionUser
from app.client.storage import JsonFileStorage, MemoryStorage
from app.client.theme import ThemeStore

__all__ = [
    "ApiClient",
    "ApiClientError",
    "JsonFileStorage",
    "MemoryStorage",
    "SessionState",
    "SessionStore",
    "SessionUser",
    "ThemeStore",
]
