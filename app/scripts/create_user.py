"""
Create a user (e.g. first admin). Run from project root:
  python -m app.scripts.create_user NAME LOGIN EMAIL PASSWORD [role]
Example:
  python -m app.scripts.create_user "Administrator" admin admin@example.com 'S3cure@pass' ADMIN
"""
import argparse
import sys

from pydantic import ValidationError

from app.core.database import SessionLocal
from app.core.errors import AppError
from app.core.security import hash_password
from app.models.user import User, UserRole
from app.schemas.user import UserCreate
from app.services.crud import CrudRepository


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Warden user (no registration UI).")
    parser.add_argument("name", help="Display name (2-100 chars)")
    parser.add_argument("login", help="Login handle (3-50 chars, letters/digits/underscore)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help="Password (8-128 chars, mixed case, digit, special)")
    parser.add_argument(
        "role",
        nargs="?",
        default=UserRole.USER.value,
        choices=[r.value for r in UserRole],
    )
    args = parser.parse_args(argv)

    try:
        body = UserCreate(
            name=args.name,
            login=args.login,
            email=args.email,
            password=args.password,
            role=args.role,
        )
    except ValidationError as e:
        for err in e.errors():
            field = ".".join(str(p) for p in err["loc"])
            print(f"{field}: {err['msg']}", file=sys.stderr)
        return 1

    data = body.model_dump()
    data["password_hash"] = hash_password(data.pop("password"))

    db = SessionLocal()
    try:
        user = CrudRepository(db, User).create(data)
        print(f"Created user '{user.login}' <{user.email}> with id {user.id} and role '{user.role.value}'.")
        return 0
    except AppError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
