"""SQL channel adapters package.

Provides the ``QueryClient`` Protocol and the async PostgreSQL
implementation used for read-only introspection.

Usage:
    from orm_drift.adapters import QueryClient, AsyncPostgresAdapter
"""

from orm_drift.adapters.base import QueryClient, QueryResult
from orm_drift.adapters.postgres import AsyncPostgresAdapter

__all__ = [
    "QueryClient",
    "QueryResult",
    "AsyncPostgresAdapter",
]
