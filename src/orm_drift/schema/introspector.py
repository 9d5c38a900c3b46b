"""PostgreSQL schema introspection via information_schema.

This module reads the live database through a ``QueryClient``:
- Table existence
- Columns with data types and nullability
- Migration tracking tables (``django_migrations``, ``_prisma_migrations``)

Only read-only queries are issued.  Driver failures are wrapped in
``IntrospectionError`` so callers can isolate them per table or per
migration set.
"""

import logging
from datetime import datetime

from sqlalchemy.dialects import postgresql

from orm_drift.adapters.base import QueryClient, QueryResult
from orm_drift.errors import IntrospectionError
from orm_drift.orm.models import AppliedMigration, ORMKind
from orm_drift.schema.models import ColumnSchema

logger = logging.getLogger(__name__)

# Tracking table per ecosystem
TRACKING_TABLES: dict[ORMKind, str] = {
    ORMKind.DJANGO: "django_migrations",
    ORMKind.PRISMA: "_prisma_migrations",
}

_IDENTIFIERS = postgresql.dialect().identifier_preparer


class SchemaIntrospector:
    """Introspects a PostgreSQL schema through a ``QueryClient``.

    Usage:
        introspector = SchemaIntrospector(adapter, schema_name="public")

        if await introspector.table_exists("blog_post"):
            columns = await introspector.get_columns("blog_post")

        applied = await introspector.get_applied_migrations(ORMKind.DJANGO)
    """

    def __init__(
        self,
        client: QueryClient,
        schema_name: str = "public",
        database: str | None = None,
    ) -> None:
        """Initialize with a query client.

        Args:
            client: Read-only SQL channel.
            schema_name: PostgreSQL schema to introspect (default: public).
            database: Optional database name passed to every query.
        """
        self._client = client
        self._schema_name = schema_name
        self._database = database

    async def _query(self, sql: str, params: dict | None = None) -> QueryResult:
        try:
            return await self._client.query(sql, params, database=self._database)
        except IntrospectionError:
            raise
        except Exception as e:
            raise IntrospectionError(f"Introspection query failed: {e}") from e

    def _qualified(self, table_name: str) -> str:
        """Quoted ``schema.table`` for SQL that cannot bind identifiers."""
        return (
            f"{_IDENTIFIERS.quote_identifier(self._schema_name)}."
            f"{_IDENTIFIERS.quote_identifier(table_name)}"
        )

    async def table_exists(self, table_name: str) -> bool:
        """Return True if *table_name* exists in the schema."""
        query = """
            SELECT EXISTS (
                SELECT 1
                FROM information_schema.tables
                WHERE table_schema = :schema
                  AND table_name = :table
            ) AS exists
        """
        result = await self._query(query, {"schema": self._schema_name, "table": table_name})
        return bool(result.scalar())

    async def get_columns(self, table_name: str) -> list[ColumnSchema]:
        """Get columns of a table in ordinal order."""
        query = """
            SELECT
                column_name,
                data_type,
                is_nullable,
                column_default,
                udt_name
            FROM information_schema.columns
            WHERE table_schema = :schema
              AND table_name = :table
            ORDER BY ordinal_position
        """
        result = await self._query(query, {"schema": self._schema_name, "table": table_name})
        return [
            ColumnSchema(
                name=row["column_name"],
                data_type=row["data_type"],
                is_nullable=(row["is_nullable"] == "YES"),
                default=row.get("column_default"),
                udt_name=row.get("udt_name"),
            )
            for row in result.rows
        ]

    async def get_applied_migration_records(self, kind: ORMKind) -> list[AppliedMigration]:
        """Read the tracking table of *kind*.

        A missing tracking table means nothing has been applied yet and
        yields an empty list.

        Raises:
            IntrospectionError: If the tracking table cannot be read.
        """
        tracking_table = TRACKING_TABLES[kind]
        if not await self.table_exists(tracking_table):
            logger.debug("Tracking table %s not found; no migrations applied", tracking_table)
            return []

        if kind is ORMKind.DJANGO:
            result = await self._query(
                f"SELECT app, name, applied FROM {self._qualified('django_migrations')} "
                "ORDER BY applied, id"
            )
            return [
                AppliedMigration(
                    id=f"{row['app']}.{row['name']}",
                    name=row["name"],
                    app_name=row["app"],
                    applied_at=_as_datetime(row.get("applied")),
                )
                for row in result.rows
            ]

        result = await self._query(
            f"SELECT migration_name, finished_at FROM {self._qualified('_prisma_migrations')} "
            "WHERE finished_at IS NOT NULL AND rolled_back_at IS NULL "
            "ORDER BY finished_at"
        )
        return [
            AppliedMigration(
                id=row["migration_name"],
                name=row["migration_name"],
                applied_at=_as_datetime(row.get("finished_at")),
            )
            for row in result.rows
        ]

    async def get_applied_migrations(self, kind: ORMKind) -> set[str]:
        """Identifiers of applied migrations (``"app.name"`` or directory name)."""
        return {record.id for record in await self.get_applied_migration_records(kind)}


def _as_datetime(value: object) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    return None
