"""
Create the first administrator from ADMIN_NAME / ADMIN_EMAIL / ADMIN_PASSWORD
(and optionally ADMIN_LOGIN).
Idempotent: exits successfully when a user with ADMIN_EMAIL already exists.

  python -m app.scripts.seed_admin
"""

import logging
import re
import sys

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import SessionLocal
from app.core.logging import configure_logging
from app.core.security import hash_password
from app.models.user import User, UserRole
from app.schemas.user import check_login

logger = logging.getLogger(__name__)

LOGIN_MIN_LEN = 3
LOGIN_MAX_LEN = 50


def _login_taken(db: Session, login: str) -> bool:
    return db.scalars(select(User.id).where(User.login == login)).first() is not None


def admin_login(db: Session, email: str, configured: str | None = None) -> str:
    """
    ADMIN_LOGIN when set (validated as-is); otherwise the email local part with
    disallowed characters replaced by '_', padded to the minimum length and
    suffixed with a counter until it is unused.
    """
    if configured:
        return check_login(configured)

    base = re.sub(r"[^a-zA-Z0-9_]", "_", email.split("@")[0])[:LOGIN_MAX_LEN]
    base = base.ljust(LOGIN_MIN_LEN, "_")
    login = base
    n = 1
    while _login_taken(db, login):
        n += 1
        suffix = f"_{n}"
        login = base[: LOGIN_MAX_LEN - len(suffix)] + suffix
    return check_login(login)


def seed_admin(db: Session, settings: Settings) -> User | None:
    """Create the configured admin unless one with that email exists. Returns the new user or None."""
    email = (settings.ADMIN_EMAIL or "").strip().lower()
    existing = db.scalars(select(User).where(User.email == email)).first()
    if existing is not None:
        logger.info("Admin user already exists: %s", email)
        return None

    admin = User(
        name=settings.ADMIN_NAME,
        login=admin_login(db, email, settings.ADMIN_LOGIN),
        email=email,
        password_hash=hash_password(settings.ADMIN_PASSWORD.get_secret_value()),
        role=UserRole.ADMIN,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("Admin user created: %s", email)
    return admin


def main() -> int:
    configure_logging()
    settings = get_settings()
    if not settings.ADMIN_NAME or not settings.ADMIN_EMAIL or settings.ADMIN_PASSWORD is None:
        logger.error(
            "ADMIN_NAME, ADMIN_EMAIL and ADMIN_PASSWORD must be set (environment or .env)."
        )
        return 1

    db = SessionLocal()
    try:
        seed_admin(db, settings)
        return 0
    except Exception as e:
        db.rollback()
        logger.exception("Admin seeding failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
