"""Tests for declared/live type mapping to canonical categories."""

import pytest

from orm_drift.orm.types import (
    CanonicalType,
    django_canonical_type,
    postgres_canonical_type,
    prisma_canonical_type,
)


class TestDjangoTypes:
    """Verify Django field classes map to canonical families."""

    @pytest.mark.parametrize(
        ("field_type", "expected"),
        [
            ("AutoField", CanonicalType.INTEGER),
            ("PositiveIntegerField", CanonicalType.INTEGER),
            ("ForeignKey", CanonicalType.INTEGER),
            ("CharField", CanonicalType.TEXT),
            ("EmailField", CanonicalType.TEXT),
            ("BooleanField", CanonicalType.BOOLEAN),
            ("DateField", CanonicalType.TIMESTAMP),
            ("DecimalField", CanonicalType.NUMERIC),
            ("UUIDField", CanonicalType.UUID),
            ("JSONField", CanonicalType.JSON),
            ("BinaryField", CanonicalType.BINARY),
        ],
    )
    def test_known_types(self, field_type: str, expected: CanonicalType) -> None:
        """Known field classes resolve to their family."""
        assert django_canonical_type(field_type) is expected

    def test_unknown_type(self) -> None:
        """Custom field classes map to unknown, never raise."""
        assert django_canonical_type("MoneyField") is CanonicalType.UNKNOWN


class TestPrismaTypes:
    """Verify Prisma scalars, native types, lists and enums."""

    def test_scalar(self) -> None:
        assert prisma_canonical_type("Int") is CanonicalType.INTEGER
        assert prisma_canonical_type("DateTime") is CanonicalType.TIMESTAMP

    def test_native_type_refines_scalar(self) -> None:
        """String @db.Uuid is a uuid column."""
        assert prisma_canonical_type("String") is CanonicalType.TEXT
        assert prisma_canonical_type("String", native_type="Uuid") is CanonicalType.UUID

    def test_list_is_array(self) -> None:
        assert prisma_canonical_type("String", is_list=True) is CanonicalType.ARRAY

    def test_declared_enum(self) -> None:
        assert prisma_canonical_type("Role", enum_names={"Role"}) is CanonicalType.ENUM

    def test_unknown(self) -> None:
        assert prisma_canonical_type("Geometry") is CanonicalType.UNKNOWN


class TestPostgresTypes:
    """Verify information_schema types map to canonical families."""

    @pytest.mark.parametrize(
        ("data_type", "expected"),
        [
            ("integer", CanonicalType.INTEGER),
            ("int", CanonicalType.INTEGER),
            ("bigint", CanonicalType.INTEGER),
            ("character varying", CanonicalType.TEXT),
            ("varchar", CanonicalType.TEXT),
            ("inet", CanonicalType.TEXT),
            ("timestamptz", CanonicalType.TIMESTAMP),
            ("date", CanonicalType.TIMESTAMP),
            ("interval", CanonicalType.TIMESTAMP),
            ("numeric", CanonicalType.NUMERIC),
            ("double precision", CanonicalType.NUMERIC),
            ("jsonb", CanonicalType.JSON),
            ("bytea", CanonicalType.BINARY),
            ("ARRAY", CanonicalType.ARRAY),
        ],
    )
    def test_known_types(self, data_type: str, expected: CanonicalType) -> None:
        assert postgres_canonical_type(data_type) is expected

    def test_user_defined_enum(self) -> None:
        """USER-DEFINED without a known udt is an enum."""
        assert postgres_canonical_type("USER-DEFINED", "role") is CanonicalType.ENUM

    def test_user_defined_extension_type(self) -> None:
        """citext is reported as USER-DEFINED but is text."""
        assert postgres_canonical_type("USER-DEFINED", "citext") is CanonicalType.TEXT

    def test_pg_catalog_array_spelling(self) -> None:
        assert postgres_canonical_type("_int4") is CanonicalType.ARRAY

    def test_unknown(self) -> None:
        assert postgres_canonical_type("tsvector") is CanonicalType.UNKNOWN
