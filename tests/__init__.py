import os

# Settings are read at import time; point them at an in-memory database before any app import.
os.environ.setdefault("APP_ENV", "dev")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-0123456789abcdef0123456789abcdef")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOGIN_RATE_LIMIT", "5")
os.environ.setdefault("LOGIN_RATE_WINDOW_SEC", "60")
