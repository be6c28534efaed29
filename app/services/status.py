"""Database status probes for GET /status.

PostgreSQL reports connection limits and usage; other dialects (SQLite in
local runs) report what they can and leave the rest as None.
"""

from pathlib import Path

from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.schemas.status import DatabaseStatus, MigrationInfo

PROJECT_ROOT = Path(__file__).resolve().parents[2]
ALEMBIC_SCRIPT_LOCATION = PROJECT_ROOT / "alembic"


def _is_postgres(db: Session) -> bool:
    return db.get_bind().dialect.name == "postgresql"


def database_name(db: Session) -> str | None:
    if _is_postgres(db):
        return db.execute(text("SELECT current_database()")).scalar_one()
    return db.get_bind().url.database or None


def database_version(db: Session) -> str | None:
    if _is_postgres(db):
        return db.execute(text("SELECT version()")).scalar_one()
    if db.get_bind().dialect.name == "sqlite":
        return "SQLite " + db.execute(text("SELECT sqlite_version()")).scalar_one()
    return None


def max_connections(db: Session) -> int | None:
    if not _is_postgres(db):
        return None
    return int(db.execute(text("SHOW max_connections")).scalar_one())


def current_connections(db: Session) -> int | None:
    if not _is_postgres(db):
        return None
    return int(db.execute(text("SELECT count(*) FROM pg_stat_activity")).scalar_one())


def _script_directory() -> ScriptDirectory:
    config = Config()
    config.set_main_option("script_location", str(ALEMBIC_SCRIPT_LOCATION))
    return ScriptDirectory.from_config(config)


def applied_migrations(db: Session) -> list[MigrationInfo]:
    """Revisions from the current database head(s) down to base, newest first."""
    context = MigrationContext.configure(db.connection())
    heads = context.get_current_heads()
    if not heads:
        return []
    script = _script_directory()
    return [
        MigrationInfo(revision=rev.revision, description=(rev.doc or "").strip())
        for rev in script.iterate_revisions(heads, "base")
    ]


def collect_database_status(db: Session) -> DatabaseStatus:
    migrations = applied_migrations(db)
    return DatabaseStatus(
        name=database_name(db),
        version=database_version(db),
        max_connections=max_connections(db),
        current_connections=current_connections(db),
        applied_migrations=len(migrations),
        migrations=migrations,
    )
