"""SQL channel protocol definition.

Defines the ``QueryClient`` Protocol the introspector reads the live database
through.  All methods are ``async def``.  The engine only issues read-only
introspection queries; it never builds DDL.

Usage:
    from orm_drift.adapters.base import QueryClient

    async def count_tables(client: QueryClient) -> int:
        result = await client.query(
            "SELECT count(*) AS n FROM information_schema.tables"
        )
        return result.scalar()
"""

from typing import Any, Protocol

from pydantic import BaseModel, Field


class QueryResult(BaseModel):
    """Rows returned by the SQL channel.

    Example:
        >>> result = QueryResult(rows=[{"exists": True}], fields=["exists"])
        >>> result.scalar()
        True
    """

    rows: list[dict[str, Any]] = Field(default_factory=list)
    fields: list[str] = Field(default_factory=list)

    def scalar(self) -> Any:
        """First column of the first row, or None when there are no rows."""
        if not self.rows:
            return None
        first = self.rows[0]
        if self.fields:
            return first.get(self.fields[0])
        return next(iter(first.values()), None)


class QueryClient(Protocol):
    """Read-only SQL channel used for introspection.

    Implementations must report driver and connection failures by raising;
    the reconciler turns them into per-item ``unknown`` statuses.
    """

    async def query(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        database: str | None = None,
    ) -> QueryResult:
        """Run a read-only query.

        Args:
            sql: SQL text with ``:name`` placeholders.
            params: Optional dict of named parameters.
            database: Optional database name overriding the one in the
                connection URL.

        Returns:
            ``QueryResult`` with one dict per row and the column names.

        Example:
            result = await client.query(
                "SELECT column_name FROM information_schema.columns "
                "WHERE table_name = :table",
                {"table": "blog_post"},
            )
        """
        ...

    async def close(self) -> None:
        """Close connections and clean up resources."""
        ...
