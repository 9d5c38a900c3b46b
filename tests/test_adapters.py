"""Tests for the SQL channel models and the PostgreSQL adapter."""

from unittest.mock import MagicMock, patch
from uuid import UUID

import pytest

from orm_drift.adapters.base import QueryResult
from orm_drift.adapters.postgres import (
    AsyncPostgresAdapter,
    create_async_engine_pooled,
    normalize_url,
)


class TestQueryResult:
    """Verify scalar extraction."""

    def test_scalar_uses_first_field(self) -> None:
        result = QueryResult(rows=[{"b": 2, "a": 1}], fields=["a", "b"])

        assert result.scalar() == 1

    def test_scalar_without_fields(self) -> None:
        assert QueryResult(rows=[{"exists": True}]).scalar() is True

    def test_scalar_empty(self) -> None:
        assert QueryResult().scalar() is None


class TestNormalizeUrl:
    """Verify URL scheme normalization for asyncpg."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("postgres://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
            ("postgresql://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
            ("postgresql+asyncpg://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
        ],
    )
    def test_schemes(self, url: str, expected: str) -> None:
        assert normalize_url(url) == expected


class TestEngineCreation:
    """Verify pool defaults and overrides."""

    def test_defaults(self) -> None:
        with patch("orm_drift.adapters.postgres.create_async_engine") as create:
            create_async_engine_pooled("postgresql+asyncpg://h/db", connect_timeout=3)

        kwargs = create.call_args.kwargs
        assert kwargs["pool_size"] == 5
        assert kwargs["pool_pre_ping"] is True
        assert kwargs["connect_args"] == {"timeout": 3}

    def test_overrides(self) -> None:
        with patch("orm_drift.adapters.postgres.create_async_engine") as create:
            create_async_engine_pooled("postgresql+asyncpg://h/db", pool_size=1)

        assert create.call_args.kwargs["pool_size"] == 1

    def test_adapter_normalizes_url(self) -> None:
        with patch("orm_drift.adapters.postgres.create_async_engine") as create:
            AsyncPostgresAdapter("postgres://u:p@h/db")

        assert create.call_args.args[0] == "postgresql+asyncpg://u:p@h/db"

    def test_database_override_gets_own_engine(self) -> None:
        with patch(
            "orm_drift.adapters.postgres.create_async_engine",
            side_effect=lambda *args, **kwargs: MagicMock(),
        ) as create:
            adapter = AsyncPostgresAdapter("postgresql://u:p@h/app")
            first = adapter._engine_for("analytics")
            second = adapter._engine_for("analytics")

        assert first is second
        assert create.call_count == 2
        assert create.call_args.args[0] == "postgresql+asyncpg://u:p@h/analytics"


class TestSerialization:
    """Verify row values are made JSON-friendly."""

    def test_uuid_becomes_str(self) -> None:
        with patch("orm_drift.adapters.postgres.create_async_engine"):
            adapter = AsyncPostgresAdapter("postgresql://h/db")

        row = adapter._serialize_row(
            {"id": UUID("12345678-1234-5678-1234-567812345678"), "n": 3}
        )

        assert row == {"id": "12345678-1234-5678-1234-567812345678", "n": 3}
