"""Tests for the command-line scripts: create_user, seed_admin and generate_resource."""

import io
import shutil
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

from pydantic import SecretStr
from sqlalchemy import select

from app.core.security import verify_password
from app.models import User, UserRole
from app.scripts import create_user, generate_resource
from app.scripts.generate_resource import ResourceNames
from app.scripts.seed_admin import seed_admin
from tests.support import STRONG_PASSWORD, DatabaseTestCase, make_user


def _admin_settings() -> MagicMock:
    settings = MagicMock()
    settings.ADMIN_NAME = "Administrator"
    settings.ADMIN_EMAIL = " Root@Example.com "
    settings.ADMIN_LOGIN = None
    settings.ADMIN_PASSWORD = SecretStr(STRONG_PASSWORD)
    return settings


class TestSeedAdmin(DatabaseTestCase):
    def test_creates_admin_once(self) -> None:
        admin = seed_admin(self.db, _admin_settings())
        self.assertIsNotNone(admin)
        self.assertEqual(admin.email, "root@example.com")
        self.assertEqual(admin.login, "root")
        self.assertEqual(admin.role, UserRole.ADMIN)
        self.assertTrue(verify_password(STRONG_PASSWORD, admin.password_hash))

        self.assertIsNone(seed_admin(self.db, _admin_settings()))
        self.assertEqual(len(self.db.scalars(select(User)).all()), 1)

    def test_login_derived_from_dotted_email_is_valid(self) -> None:
        settings = _admin_settings()
        settings.ADMIN_EMAIL = "first.last@example.com"
        self.assertEqual(seed_admin(self.db, settings).login, "first_last")

    def test_derived_login_avoids_taken_login(self) -> None:
        make_user(self.db, "root")
        settings = _admin_settings()
        settings.ADMIN_EMAIL = "root@corp.example.com"
        admin = seed_admin(self.db, settings)
        self.assertEqual(admin.login, "root_2")
        self.assertEqual(admin.role, UserRole.ADMIN)

    def test_short_local_part_padded(self) -> None:
        settings = _admin_settings()
        settings.ADMIN_EMAIL = "a@example.com"
        self.assertEqual(seed_admin(self.db, settings).login, "a__")

    def test_configured_login_used(self) -> None:
        settings = _admin_settings()
        settings.ADMIN_LOGIN = "sysadmin"
        self.assertEqual(seed_admin(self.db, settings).login, "sysadmin")

    def test_invalid_configured_login_rejected(self) -> None:
        settings = _admin_settings()
        settings.ADMIN_LOGIN = "sys.admin"
        with self.assertRaises(ValueError):
            seed_admin(self.db, settings)
        self.assertEqual(self.db.scalars(select(User)).all(), [])


class TestCreateUserScript(DatabaseTestCase):
    def _run(self, *argv: str) -> tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with patch.object(create_user, "SessionLocal", self.SessionLocal), redirect_stdout(out), redirect_stderr(err):
            code = create_user.main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_creates_user(self) -> None:
        code, out, _ = self._run("Ada Lovelace", "ada", "ada@example.com", STRONG_PASSWORD, "ADMIN")
        self.assertEqual(code, 0)
        self.assertIn("Created user 'ada'", out)
        user = self.db.scalars(select(User).where(User.login == "ada")).one()
        self.assertEqual(user.role, UserRole.ADMIN)

    def test_validation_errors_reported(self) -> None:
        code, _, err = self._run("Ada", "ada", "not-an-email", "weak")
        self.assertEqual(code, 1)
        self.assertIn("email", err)
        self.assertIn("password", err)

    def test_duplicate_reported(self) -> None:
        self._run("Ada", "ada", "ada@example.com", STRONG_PASSWORD)
        code, _, err = self._run("Ada Two", "ada", "ada2@example.com", STRONG_PASSWORD)
        self.assertEqual(code, 1)
        self.assertIn("login is already in use", err)


class TestResourceNames(unittest.TestCase):
    def test_name_forms(self) -> None:
        for raw in ("user-profile", "user_profile", "UserProfile"):
            with self.subTest(raw=raw):
                names = ResourceNames.from_name(raw)
                self.assertEqual(names.snake, "user_profile")
                self.assertEqual(names.pascal, "UserProfile")
                self.assertEqual(names.kebab, "user-profile")
                self.assertEqual(names.table, "user_profiles")
                self.assertEqual(names.constant, "USER_PROFILES")

    def test_invalid_name(self) -> None:
        for raw in ("1thing", "bad name", "drop;table"):
            with self.subTest(raw=raw), self.assertRaises(ValueError):
                ResourceNames.from_name(raw)


class TestGenerateResource(unittest.TestCase):
    NOW = datetime(2026, 5, 4, 3, 2, 1, tzinfo=UTC)

    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)

    def _read(self, *parts: str) -> str:
        return self.root.joinpath(*parts).read_text(encoding="utf-8")

    def test_writes_model_schemas_router_and_migration(self) -> None:
        results = generate_resource.generate_resource("product", self.root, now=self.NOW)
        self.assertEqual(len(results), 4)
        self.assertTrue(all(results.values()))

        model = self._read("app", "models", "product.py")
        schemas = self._read("app", "schemas", "product.py")
        router = self._read("app", "api", "v1", "product.py")
        migration = self._read("alembic", "versions", "20260504030201_create_products_table.py")

        self.assertIn("class Product(TimestampMixin, Base):", model)
        self.assertIn('__tablename__ = "products"', model)
        self.assertIn("def to_product_response(entity: Product) -> ProductResponse:", schemas)
        self.assertIn("PRODUCTS = CrudResource(", router)
        self.assertIn('PRODUCTS_PREFIX = "/product"', router)
        self.assertIn("router = build_crud_router(PRODUCTS)", router)
        self.assertIn('revision: str = "20260504030201"', migration)
        self.assertIn("down_revision: Union[str, None] = None", migration)
        for path in results:
            compile(path.read_text(encoding="utf-8"), str(path), "exec")

    def test_migration_chains_onto_current_head(self) -> None:
        versions = self.root / "alembic" / "versions"
        versions.mkdir(parents=True)
        source = Path(generate_resource.PROJECT_ROOT, "alembic", "versions", "20260301000000_create_users_table.py")
        shutil.copy(source, versions)
        generate_resource.generate_resource("order", self.root, now=self.NOW)
        migration = self._read("alembic", "versions", "20260504030201_create_orders_table.py")
        self.assertIn('down_revision: Union[str, None] = "20260301000000"', migration)

    def test_existing_files_are_kept(self) -> None:
        model = self.root / "app" / "models" / "product.py"
        model.parent.mkdir(parents=True)
        model.write_text("# hand-written\n", encoding="utf-8")
        results = generate_resource.generate_resource("product", self.root, now=self.NOW)
        self.assertFalse(results[model])
        self.assertEqual(model.read_text(encoding="utf-8"), "# hand-written\n")

    def test_cli(self) -> None:
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            ok = generate_resource.main(["user-profile", "--root", str(self.root)])
            bad = generate_resource.main(["9lives", "--root", str(self.root)])
        self.assertEqual(ok, 0)
        self.assertIn("created: app/api/v1/user_profile.py", out.getvalue())
        self.assertIn("alembic upgrade head", out.getvalue())
        self.assertEqual(bad, 1)
        self.assertIn("resource name must start with a letter", err.getvalue())


if __name__ == "__main__":
    unittest.main()
