"""Reconciliation pass over every ORM detected in a workspace.

One pass detects ORMs, parses declared models and migrations, reads the live
database and joins both sides into a ``ReconciliationReport``.

Concurrency:
- ORMs are reconciled concurrently (``asyncio.gather``).
- File parsing runs in worker threads (``asyncio.to_thread``) so the event
  loop keeps serving database reads.
- Every live read is bounded by ``query_timeout`` and by a semaphore of
  ``max_concurrent_queries``.

A failed or timed-out read marks only the model (or the ORM's migration set)
it belongs to as ``unknown``; every other result of the pass is kept.

Usage:
    from orm_drift.reconciler import reconcile_workspace

    adapter = await get_adapter(profile_name="local")
    try:
        report = await reconcile_workspace([Path(".")], adapter)
    finally:
        await adapter.close()

    for orm in report.orms:
        print(orm.config.display_name, orm.in_sync)
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from pathlib import Path
from typing import Generic, TypeVar

from orm_drift.adapters.base import QueryClient
from orm_drift.errors import IntrospectionError
from orm_drift.orm.detector import detect_orms
from orm_drift.orm.models import App, AppliedMigration, Model, ORMConfig, ORMKind
from orm_drift.orm.ordering import ordering_for
from orm_drift.orm.parsers import get_parser
from orm_drift.schema.comparator import detect_drift
from orm_drift.schema.introspector import SchemaIntrospector
from orm_drift.schema.migrations import reconcile_migrations, unknown_migration_reports
from orm_drift.schema.models import (
    ColumnSchema,
    ModelReport,
    ModelStatus,
    OrmReport,
    ReconciliationReport,
)
from orm_drift.workspace import LocalWorkspace, WorkspaceReader

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============================================================================
# Bounded live reads
# ============================================================================


class LiveSchemaReader:
    """``SchemaIntrospector`` calls bounded by a timeout and a semaphore.

    Timeouts surface as ``IntrospectionError`` like any other failed read.
    """

    def __init__(
        self,
        introspector: SchemaIntrospector,
        query_timeout: float = 10.0,
        max_concurrent_queries: int = 5,
    ) -> None:
        self._introspector = introspector
        self._timeout = query_timeout
        self._semaphore = asyncio.Semaphore(max_concurrent_queries)

    async def _bounded(self, make_call: Callable[[], Awaitable[T]], what: str) -> T:
        async with self._semaphore:
            try:
                return await asyncio.wait_for(make_call(), timeout=self._timeout)
            except asyncio.TimeoutError as e:
                raise IntrospectionError(f"{what} timed out after {self._timeout}s") from e

    async def live_columns(self, table_name: str) -> list[ColumnSchema] | None:
        """Columns of *table_name*, or None if the table does not exist."""
        exists = await self._bounded(
            lambda: self._introspector.table_exists(table_name),
            f"Existence check of {table_name}",
        )
        if not exists:
            return None
        return await self._bounded(
            lambda: self._introspector.get_columns(table_name),
            f"Column read of {table_name}",
        )

    async def applied_migrations(self, kind: ORMKind) -> list[AppliedMigration]:
        return await self._bounded(
            lambda: self._introspector.get_applied_migration_records(kind),
            f"{kind.value} tracking table read",
        )


# ============================================================================
# Reconciliation
# ============================================================================


async def reconcile_model(model: Model, reader: LiveSchemaReader) -> ModelReport:
    """Compare one model with its live table; a failed read yields ``unknown``."""
    try:
        live_columns = await reader.live_columns(model.table_name)
    except IntrospectionError as e:
        logger.warning("Could not introspect %s for %s: %s", model.table_name, model.name, e)
        return ModelReport(model=model, status=ModelStatus.UNKNOWN, error=str(e))

    drift = detect_drift(model, live_columns)
    return ModelReport(model=model, status=drift.status, drift=drift)


async def _parse_declarations(config: ORMConfig, parser) -> tuple[list[App], list[Model]]:
    if config.kind is ORMKind.DJANGO:
        apps = await asyncio.to_thread(parser.find_apps)
        return apps, [model for app in apps for model in app.models]
    return [], await asyncio.to_thread(parser.find_models)


async def reconcile_orm(
    config: ORMConfig,
    reader: LiveSchemaReader,
    workspace: WorkspaceReader | None = None,
) -> OrmReport:
    """Reconcile one detected ORM installation.

    The model pipeline (parse, then per-model live reads), the migration
    parse and the tracking-table read run concurrently.
    """
    workspace = workspace or LocalWorkspace()
    parser = get_parser(config, workspace)

    async def read_applied() -> list[AppliedMigration] | IntrospectionError:
        try:
            return await reader.applied_migrations(config.kind)
        except IntrospectionError as e:
            logger.warning("Could not read %s migration history: %s", config.display_name, e)
            return e

    async def reconcile_models() -> tuple[list[App], list[ModelReport]]:
        apps, models = await _parse_declarations(config, parser)
        reports = await asyncio.gather(*(reconcile_model(m, reader) for m in models))
        return apps, list(reports)

    (apps, model_reports), migrations, applied = await asyncio.gather(
        reconcile_models(),
        asyncio.to_thread(parser.find_migrations),
        read_applied(),
    )

    if isinstance(applied, IntrospectionError):
        migration_error = str(applied)
        migration_reports = unknown_migration_reports(migrations, migration_error)
    else:
        migration_error = None
        migration_reports = reconcile_migrations(migrations, applied, ordering_for(config.kind))

    return OrmReport(
        config=config,
        apps=apps,
        models=model_reports,
        migrations=migration_reports,
        migration_error=migration_error,
    )


async def reconcile_workspace(
    roots: Iterable[Path],
    client: QueryClient,
    workspace: WorkspaceReader | None = None,
    schema_name: str = "public",
    query_timeout: float = 10.0,
    max_concurrent_queries: int = 5,
) -> ReconciliationReport:
    """Run one full reconciliation pass.

    Args:
        roots: Workspace roots to scan for ORMs.
        client: Read-only SQL channel to the live database.
        workspace: File reader; defaults to ``LocalWorkspace()``.
        schema_name: PostgreSQL schema holding the tables.
        query_timeout: Seconds allowed for each live read.
        max_concurrent_queries: Upper bound on concurrent live reads.

    Returns:
        One ``OrmReport`` per detected ORM, in detection order.  A workspace
        without ORMs yields an empty report.
    """
    workspace = workspace or LocalWorkspace()
    configs = await asyncio.to_thread(detect_orms, list(roots), workspace)
    if not configs:
        logger.info("No ORM detected")
        return ReconciliationReport()

    reader = LiveSchemaReader(
        SchemaIntrospector(client, schema_name=schema_name),
        query_timeout=query_timeout,
        max_concurrent_queries=max_concurrent_queries,
    )
    reports = await asyncio.gather(
        *(reconcile_orm(config, reader, workspace) for config in configs)
    )
    return ReconciliationReport(orms=list(reports))


# ============================================================================
# Refresh coordination
# ============================================================================


class RefreshCoordinator(Generic[T]):
    """Serializes refresh requests for a pass function.

    A refresh requested while a pass is in flight does not interrupt it.
    Instead one follow-up pass is queued behind it, and every caller that
    asked during the in-flight pass awaits that same follow-up.  Callers
    being cancelled never cancel a shared pass.

    Example:
        coordinator = RefreshCoordinator(
            lambda: reconcile_workspace(roots, adapter)
        )
        report = await coordinator.refresh()
    """

    def __init__(self, run_pass: Callable[[], Awaitable[T]]) -> None:
        self._run_pass = run_pass
        self._current: asyncio.Task[T] | None = None
        self._follow_up: asyncio.Task[T] | None = None
        self.passes_started = 0

    @property
    def in_flight(self) -> bool:
        return self._current is not None and not self._current.done()

    async def _start(self) -> T:
        self.passes_started += 1
        return await self._run_pass()

    async def _follow(self, previous: asyncio.Task[T]) -> T:
        await asyncio.wait([previous])
        self._current = self._follow_up
        self._follow_up = None
        return await self._start()

    async def refresh(self) -> T:
        """Run a pass, or join the follow-up of the pass in flight."""
        if self._follow_up is not None:
            task = self._follow_up
        elif self._current is not None and not self._current.done():
            task = self._follow_up = asyncio.create_task(self._follow(self._current))
        else:
            task = self._current = asyncio.create_task(self._start())
        return await asyncio.shield(task)
