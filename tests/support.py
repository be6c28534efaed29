"""Shared fixtures: an isolated SQLite database per test and a wired TestClient."""

import unittest

from fastapi.testclient import TestClient
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.v1.auth import login_limiter
from app.core.database import get_db
from app.core.security import create_access_token, hash_password
from app.main import app
from app.models import Base, User, UserRole

STRONG_PASSWORD = "Str0ng!Pass"
# Precomputed so row-heavy tests do not pay bcrypt cost per row.
DUMMY_HASH = "$2b$04$abcdefghijklmnopqrstuu3XyQ0n3yE7m3mS7rX0rLwJ2h8v1l7bW"


def make_engine() -> Engine:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


def make_user(
    db: Session,
    login: str,
    role: UserRole = UserRole.USER,
    password: str | None = None,
) -> User:
    user = User(
        name=login.capitalize(),
        login=login,
        email=f"{login}@example.com",
        password_hash=hash_password(password) if password else DUMMY_HASH,
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def bearer(user: User) -> dict[str, str]:
    token = create_access_token(user_id=user.id, email=user.email, role=user.role.value)
    return {"Authorization": f"Bearer {token}"}


class DatabaseTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine()
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.db = self.SessionLocal()

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()


class ApiTestCase(DatabaseTestCase):
    """TestClient against the real app with get_db pointed at the test database."""

    def setUp(self) -> None:
        super().setUp()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        login_limiter.reset()
        self.client = TestClient(app)
        self.admin = make_user(self.db, "admin", UserRole.ADMIN, password=STRONG_PASSWORD)
        self.user = make_user(self.db, "bob", UserRole.USER, password=STRONG_PASSWORD)

    def tearDown(self) -> None:
        self.client.close()
        app.dependency_overrides.clear()
        login_limiter.reset()
        super().tearDown()
