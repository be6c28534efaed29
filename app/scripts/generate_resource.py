"""
Scaffold a new CRUD resource: model, schemas with a projection function, a
router declaring a CrudResource, and an Alembic revision creating its table.
Run from project root:
  python -m app.scripts.generate_resource NAME [--root DIR]
Examples:
  python -m app.scripts.generate_resource product
  python -m app.scripts.generate_resource user-profile
Existing files are never overwritten.
"""
import argparse
import re
import sys
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from string import Template

from alembic.config import Config
from alembic.script import ScriptDirectory

PROJECT_ROOT = Path(__file__).resolve().parents[2]
NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")


@dataclass(frozen=True)
class ResourceNames:
    snake: str
    pascal: str
    kebab: str
    table: str
    constant: str

    @classmethod
    def from_name(cls, name: str) -> "ResourceNames":
        if not NAME_RE.match(name):
            raise ValueError(
                "resource name must start with a letter and contain only letters, digits, '-' or '_'"
            )
        snake = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name).replace("-", "_").lower()
        snake = re.sub(r"_+", "_", snake).strip("_")
        return cls(
            snake=snake,
            pascal="".join(word.capitalize() for word in snake.split("_")),
            kebab=snake.replace("_", "-"),
            table=f"{snake}s",
            constant=f"{snake.upper()}S",
        )


MODEL_TEMPLATE = Template('''"""ORM model for $pascal records."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin


class $pascal(TimestampMixin, Base):
    __tablename__ = "$table"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
''')

SCHEMAS_TEMPLATE = Template('''"""Request/response schemas for the $kebab resource and its projection function."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.models.$snake import $pascal
from app.schemas.common import CamelModel


class ${pascal}Create(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class ${pascal}Update(BaseModel):
    """Partial update. Only fields present in the body are applied."""

    name: str | None = Field(default=None, min_length=1, max_length=100)


class ${pascal}Response(CamelModel):
    id: int
    name: str
    created_at: datetime
    updated_at: datetime


def to_${snake}_response(entity: $pascal) -> ${pascal}Response:
    """Project a $pascal row onto exactly the exposed fields."""
    return ${pascal}Response(
        id=entity.id,
        name=entity.name,
        created_at=entity.created_at,
        updated_at=entity.updated_at,
    )
''')

ROUTER_TEMPLATE = Template('''"""$pascal resource: generic CRUD routes."""

from app.api.crud_router import CrudResource, build_crud_router, crud_policies
from app.models.$snake import $pascal
from app.schemas.$snake import (
    ${pascal}Create,
    ${pascal}Response,
    ${pascal}Update,
    to_${snake}_response,
)

${constant}_PREFIX = "/$kebab"

$constant = CrudResource(
    prefix=${constant}_PREFIX,
    model=$pascal,
    create_schema=${pascal}Create,
    update_schema=${pascal}Update,
    response_schema=${pascal}Response,
    to_response=to_${snake}_response,
    policies=crud_policies(${constant}_PREFIX),
    tags=["$kebab"],
)

router = build_crud_router($constant)
''')

MIGRATION_TEMPLATE = Template('''"""Create $table table.

Revision ID: $revision
Revises: $down_doc
Create Date: $date

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "$revision"
down_revision: Union[str, None] = $down_revision
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "$table",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("$table")
''')


def current_head(root: Path) -> str | None:
    """Head revision of root/alembic, or None when the project has no migrations yet."""
    location = root / "alembic"
    if not (location / "versions").is_dir():
        return None
    config = Config()
    config.set_main_option("script_location", str(location))
    return ScriptDirectory.from_config(config).get_current_head()


def render_files(names: ResourceNames, root: Path, now: datetime) -> dict[Path, str]:
    revision = now.strftime("%Y%m%d%H%M%S")
    down = current_head(root)
    return {
        root / "app" / "models" / f"{names.snake}.py": MODEL_TEMPLATE.substitute(vars(names)),
        root / "app" / "schemas" / f"{names.snake}.py": SCHEMAS_TEMPLATE.substitute(vars(names)),
        root / "app" / "api" / "v1" / f"{names.snake}.py": ROUTER_TEMPLATE.substitute(vars(names)),
        root / "alembic" / "versions" / f"{revision}_create_{names.table}_table.py": MIGRATION_TEMPLATE.substitute(
            table=names.table,
            revision=revision,
            down_revision=f'"{down}"' if down else "None",
            down_doc=down or "",
            date=now.strftime("%Y-%m-%d"),
        ),
    }


def generate_resource(name: str, root: Path = PROJECT_ROOT, now: datetime | None = None) -> dict[Path, bool]:
    """Write the resource files under root. Returns path -> created (False when it already existed)."""
    names = ResourceNames.from_name(name)
    results: dict[Path, bool] = {}
    for path, content in render_files(names, root, now or datetime.now(UTC)).items():
        if path.exists():
            results[path] = False
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        results[path] = True
    return results


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Scaffold a CRUD resource (model, schemas, routes, migration).")
    parser.add_argument("name", help="Resource name, e.g. product or user-profile")
    parser.add_argument("--root", type=Path, default=PROJECT_ROOT, help="Project root (default: this checkout)")
    args = parser.parse_args(argv)

    try:
        names = ResourceNames.from_name(args.name)
        results = generate_resource(args.name, args.root)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1

    for path, created in results.items():
        rel = path.relative_to(args.root)
        print(f"{'created' if created else 'skipped (exists)'}: {rel}")

    print(
        "\nNext steps:\n"
        f"  1. app/models/__init__.py: from app.models.{names.snake} import {names.pascal}\n"
        f"  2. app/api/v1/__init__.py: import {names.snake} and\n"
        f"     router.include_router({names.snake}.router, prefix={names.snake}.{names.constant}_PREFIX)\n"
        "  3. Add your columns to the model, schemas, projection and migration\n"
        "  4. alembic upgrade head"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
