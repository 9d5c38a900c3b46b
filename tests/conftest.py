"""Shared fixtures: small Django/Prisma projects on disk and a fake database."""

import asyncio
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from orm_drift.adapters.base import QueryResult


# ============================================================================
# Project builders
# ============================================================================


def write_files(root: Path, files: dict[str, str]) -> Path:
    """Write ``{relative_path: content}`` under *root* (content is dedented)."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content))
    return root


DJANGO_FILES: dict[str, str] = {
    "manage.py": """\
        #!/usr/bin/env python
        import sys
    """,
    "accounts/__init__.py": "",
    "accounts/models.py": """\
        from django.db import models


        class Profile(models.Model):
            bio = models.TextField(null=True)
    """,
    "accounts/migrations/__init__.py": "",
    "accounts/migrations/0001_initial.py": """\
        from django.db import migrations


        class Migration(migrations.Migration):
            initial = True
            dependencies = []
            operations = []
    """,
    "accounts/migrations/0002_profile.py": """\
        from django.db import migrations


        class Migration(migrations.Migration):
            dependencies = [
                ("accounts", "0001_initial"),
                ("shop", "0001_initial"),
            ]
            operations = []
    """,
    "shop/__init__.py": "",
    "shop/models.py": """\
        from django.db import models


        class Customer(models.Model):
            name = models.CharField(max_length=100)


        class Order(models.Model):
            owner = models.ForeignKey(Customer, on_delete=models.CASCADE)
            total = models.DecimalField(max_digits=10, decimal_places=2)
    """,
    "shop/migrations/__init__.py": "",
    "shop/migrations/0001_initial.py": """\
        from django.conf import settings
        from django.db import migrations


        class Migration(migrations.Migration):
            initial = True
            dependencies = [
                ("accounts", "0001_initial"),
                migrations.swappable_dependency(settings.AUTH_USER_MODEL),
            ]
            operations = []
    """,
}


PRISMA_SCHEMA = """\
    datasource db {
      provider = "postgresql"
      url      = env("DATABASE_URL")
    }

    generator client {
      provider = "prisma-client-js"
    }

    enum Role {
      USER
      ADMIN
    }

    // Accounts
    model User {
      id        String   @id @default(dbgenerated("gen_random_uuid()")) @db.Uuid
      email     String   @unique
      name      String?  @db.VarChar(120)
      role      Role     @default(USER)
      posts     Post[]
      createdAt DateTime @default(now()) @map("created_at")

      @@map("users")
    }

    model Post {
      id       Int      @id @default(autoincrement())
      title    String
      tags     String[]
      author   User     @relation(fields: [authorId], references: [id])
      authorId String   @db.Uuid // owner
    }
"""


def make_django_project(root: Path) -> Path:
    """Two apps (accounts, shop) whose migrations interleave."""
    return write_files(root, DJANGO_FILES)


def make_prisma_project(root: Path) -> Path:
    """``prisma/schema.prisma`` with two migrations and a lock file."""
    write_files(
        root,
        {
            "prisma/schema.prisma": PRISMA_SCHEMA,
            "prisma/migrations/20240101_init/migration.sql": "CREATE TABLE users ();\n",
            "prisma/migrations/20231215_seed/migration.sql": "-- seed\n",
            "prisma/migrations/migration_lock.toml": 'provider = "postgresql"\n',
        },
    )
    return root / "prisma" / "schema.prisma"


@pytest.fixture
def django_project(tmp_path: Path) -> Path:
    return make_django_project(tmp_path / "backend")


@pytest.fixture
def prisma_schema(tmp_path: Path) -> Path:
    return make_prisma_project(tmp_path / "web")


# ============================================================================
# Fake database
# ============================================================================


def column(name: str, data_type: str, nullable: bool = False, udt_name: str | None = None) -> dict:
    """One information_schema.columns row."""
    return {
        "column_name": name,
        "data_type": data_type,
        "is_nullable": "YES" if nullable else "NO",
        "column_default": None,
        "udt_name": udt_name or data_type,
    }


APPLIED_AT = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class FakeQueryClient:
    """In-memory stand-in for ``QueryClient``.

    Answers the introspection queries issued by ``SchemaIntrospector`` from
    ``tables`` (table -> column rows) and the tracking rows.  ``None`` for a
    tracking attribute means the tracking table does not exist.

    Args:
        tables: Live tables and their information_schema column rows.
        django_applied: ``(app, name)`` pairs in django_migrations.
        prisma_applied: Directory names in _prisma_migrations.
        failing_tables: Tables whose reads raise.
        slow_tables: Tables whose reads never finish in time.
        fail_tracking: Make tracking-table reads raise.
    """

    def __init__(
        self,
        tables: dict[str, list[dict]] | None = None,
        django_applied: list[tuple[str, str]] | None = None,
        prisma_applied: list[str] | None = None,
        failing_tables: set[str] | None = None,
        slow_tables: set[str] | None = None,
        fail_tracking: bool = False,
    ) -> None:
        self.tables = tables or {}
        self.django_applied = django_applied
        self.prisma_applied = prisma_applied
        self.failing_tables = failing_tables or set()
        self.slow_tables = slow_tables or set()
        self.fail_tracking = fail_tracking
        self.queries: list[tuple[str, dict[str, Any] | None]] = []
        self.closed = False

    def _table_exists(self, table: str) -> bool:
        if table == "django_migrations":
            return self.django_applied is not None
        if table == "_prisma_migrations":
            return self.prisma_applied is not None
        return table in self.tables

    async def query(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        database: str | None = None,
    ) -> QueryResult:
        self.queries.append((sql, params))
        table = (params or {}).get("table")

        if table in self.failing_tables:
            raise RuntimeError(f"connection reset while reading {table}")
        if table in self.slow_tables:
            await asyncio.sleep(10)

        if "information_schema.tables" in sql:
            return QueryResult(rows=[{"exists": self._table_exists(table)}], fields=["exists"])

        if "information_schema.columns" in sql:
            rows = self.tables.get(table, [])
            return QueryResult(rows=rows, fields=list(rows[0].keys()) if rows else [])

        if "django_migrations" in sql:
            if self.fail_tracking:
                raise RuntimeError("permission denied for table django_migrations")
            rows = [
                {"app": app, "name": name, "applied": APPLIED_AT}
                for app, name in self.django_applied or []
            ]
            return QueryResult(rows=rows, fields=["app", "name", "applied"])

        if "_prisma_migrations" in sql:
            if self.fail_tracking:
                raise RuntimeError("permission denied for table _prisma_migrations")
            rows = [
                {"migration_name": name, "finished_at": APPLIED_AT}
                for name in self.prisma_applied or []
            ]
            return QueryResult(rows=rows, fields=["migration_name", "finished_at"])

        raise AssertionError(f"Unexpected query: {sql}")

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def order_columns() -> list[dict]:
    """Live shop_order table: in sync with the model plus an extra column."""
    return [
        column("id", "integer"),
        column("owner_id", "integer"),
        column("total", "numeric"),
        column("notes", "text", nullable=True),
    ]
