"""Tests for SchemaIntrospector against a fake query client."""

from unittest.mock import AsyncMock

import pytest

from orm_drift.adapters.base import QueryResult
from orm_drift.errors import IntrospectionError
from orm_drift.orm.models import ORMKind
from orm_drift.schema.introspector import SchemaIntrospector

from conftest import APPLIED_AT, FakeQueryClient, column


class TestTableIntrospection:
    """Verify table existence and column reads."""

    @pytest.mark.asyncio
    async def test_table_exists(self) -> None:
        client = FakeQueryClient(tables={"shop_order": [column("id", "integer")]})
        introspector = SchemaIntrospector(client)

        assert await introspector.table_exists("shop_order") is True
        assert await introspector.table_exists("shop_customer") is False

    @pytest.mark.asyncio
    async def test_schema_and_table_are_parameters(self) -> None:
        client = FakeQueryClient()
        await SchemaIntrospector(client, schema_name="app").table_exists("shop_order")

        _, params = client.queries[0]
        assert params == {"schema": "app", "table": "shop_order"}

    @pytest.mark.asyncio
    async def test_get_columns_keeps_raw_types(self) -> None:
        client = FakeQueryClient(
            tables={
                "shop_order": [
                    column("id", "integer"),
                    column("title", "character varying", nullable=True),
                    column("status", "USER-DEFINED", udt_name="order_status"),
                ]
            }
        )

        columns = await SchemaIntrospector(client).get_columns("shop_order")

        assert [c.name for c in columns] == ["id", "title", "status"]
        assert columns[0].data_type == "integer"
        assert columns[0].is_nullable is False
        assert columns[1].data_type == "character varying"
        assert columns[1].is_nullable is True
        assert columns[2].udt_name == "order_status"

    @pytest.mark.asyncio
    async def test_driver_error_wrapped(self) -> None:
        client = FakeQueryClient(failing_tables={"shop_order"})

        with pytest.raises(IntrospectionError, match="connection reset"):
            await SchemaIntrospector(client).table_exists("shop_order")

    @pytest.mark.asyncio
    async def test_database_forwarded(self) -> None:
        client = AsyncMock()
        client.query.return_value = QueryResult(rows=[{"exists": True}], fields=["exists"])

        await SchemaIntrospector(client, database="analytics").table_exists("events")

        assert client.query.call_args.kwargs["database"] == "analytics"


class TestAppliedMigrations:
    """Verify tracking-table reads per ecosystem."""

    @pytest.mark.asyncio
    async def test_django_ids(self) -> None:
        client = FakeQueryClient(django_applied=[("shop", "0001_initial"), ("accounts", "0001_initial")])

        applied = await SchemaIntrospector(client).get_applied_migrations(ORMKind.DJANGO)

        assert applied == {"shop.0001_initial", "accounts.0001_initial"}

    @pytest.mark.asyncio
    async def test_django_records(self) -> None:
        client = FakeQueryClient(django_applied=[("shop", "0001_initial")])

        (record,) = await SchemaIntrospector(client).get_applied_migration_records(ORMKind.DJANGO)

        assert record.id == "shop.0001_initial"
        assert record.app_name == "shop"
        assert record.name == "0001_initial"
        assert record.applied_at == APPLIED_AT

    @pytest.mark.asyncio
    async def test_prisma_ids(self) -> None:
        client = FakeQueryClient(prisma_applied=["20231215_seed"])

        applied = await SchemaIntrospector(client).get_applied_migrations(ORMKind.PRISMA)

        assert applied == {"20231215_seed"}

    @pytest.mark.asyncio
    async def test_prisma_excludes_unfinished_and_rolled_back(self) -> None:
        client = FakeQueryClient(prisma_applied=[])

        await SchemaIntrospector(client).get_applied_migrations(ORMKind.PRISMA)

        sql, _ = client.queries[-1]
        assert "finished_at IS NOT NULL" in sql
        assert "rolled_back_at IS NULL" in sql

    @pytest.mark.asyncio
    async def test_missing_tracking_table_is_empty(self) -> None:
        client = FakeQueryClient()

        assert await SchemaIntrospector(client).get_applied_migrations(ORMKind.DJANGO) == set()
        assert await SchemaIntrospector(client).get_applied_migrations(ORMKind.PRISMA) == set()

    @pytest.mark.asyncio
    async def test_tracking_read_failure_raises(self) -> None:
        client = FakeQueryClient(django_applied=[], fail_tracking=True)

        with pytest.raises(IntrospectionError, match="permission denied"):
            await SchemaIntrospector(client).get_applied_migrations(ORMKind.DJANGO)


class TestTrackingTableIdentifiers:
    """Verify the schema name is quoted in tracking-table reads."""

    @pytest.mark.asyncio
    async def test_mixed_case_schema_quoted(self) -> None:
        client = FakeQueryClient(django_applied=[("shop", "0001_initial")])

        applied = await SchemaIntrospector(client, schema_name="Sales").get_applied_migrations(
            ORMKind.DJANGO
        )

        sql, _ = client.queries[-1]
        assert applied == {"shop.0001_initial"}
        assert 'FROM "Sales"."django_migrations"' in sql

    @pytest.mark.asyncio
    async def test_embedded_quote_escaped(self) -> None:
        client = FakeQueryClient(prisma_applied=[])

        await SchemaIntrospector(client, schema_name='x"; DROP TABLE t; --').get_applied_migrations(
            ORMKind.PRISMA
        )

        sql, _ = client.queries[-1]
        assert 'FROM "x""; DROP TABLE t; --"."_prisma_migrations"' in sql
