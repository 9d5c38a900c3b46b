"""Migration status reconciliation.

Merges migrations parsed from disk with the identifiers read from a live
tracking table.  Pure logic -- no I/O.  The tracking read itself lives in
``SchemaIntrospector.get_applied_migrations``.

Three outcomes are kept distinct:
- on disk and in the tracking table -> ``applied``
- on disk only -> ``pending``
- in the tracking table only -> ``applied_unknown`` (an inconsistency that
  is reported, never folded into applied or pending)

Usage:
    from orm_drift.schema.migrations import reconcile_migrations

    applied = await introspector.get_applied_migration_records(config.kind)
    reports = reconcile_migrations(migrations, applied, ordering_for(config.kind))
"""

from collections.abc import Iterable, Sequence

from orm_drift.orm.models import AppliedMigration, Migration
from orm_drift.orm.ordering import OrderingStrategy
from orm_drift.schema.models import MigrationReport, MigrationStatus


def _applied_ids(applied: Iterable[str] | Iterable[AppliedMigration]) -> dict[str, AppliedMigration]:
    records: dict[str, AppliedMigration] = {}
    for entry in applied:
        if isinstance(entry, AppliedMigration):
            records[entry.id] = entry
        else:
            app_name, sep, name = entry.partition(".")
            records[entry] = (
                AppliedMigration(id=entry, name=name, app_name=app_name)
                if sep
                else AppliedMigration(id=entry, name=entry)
            )
    return records


def check_migration_status(
    migrations: Sequence[Migration],
    applied: Iterable[str] | Iterable[AppliedMigration],
) -> list[Migration]:
    """Return copies of *migrations* with ``is_applied`` filled in.

    Pure and idempotent: the same inputs always give the same assignments,
    and the input migrations are not modified.

    Args:
        migrations: Migrations parsed from disk.
        applied: Tracking-table identifiers (``"app.name"`` for Django, the
            directory name for Prisma) or ``AppliedMigration`` records.

    Example:
        >>> [m.is_applied for m in check_migration_status(migrations, {"blog.0001_initial"})]
        [True, False]
    """
    records = _applied_ids(applied)
    return [
        m.model_copy(
            update={
                "is_applied": m.id in records,
                "applied_at": records[m.id].applied_at if m.id in records else None,
            }
        )
        for m in migrations
    ]


def find_unknown_applied(
    migrations: Sequence[Migration],
    applied: Iterable[str] | Iterable[AppliedMigration],
) -> list[AppliedMigration]:
    """Tracking-table entries with no on-disk migration, sorted by id."""
    on_disk = {m.id for m in migrations}
    records = _applied_ids(applied)
    return [records[key] for key in sorted(records) if key not in on_disk]


def reconcile_migrations(
    migrations: Sequence[Migration],
    applied: Iterable[str] | Iterable[AppliedMigration],
    ordering: OrderingStrategy | None = None,
) -> list[MigrationReport]:
    """Compute a status for every migration known to disk or to the database.

    Tracking entries without a file become ``applied_unknown`` reports whose
    migration is synthesized from the tracking row.  The union is ordered with
    *ordering*; without one, on-disk order is kept and unknown entries follow.
    """
    applied_records = list(_applied_ids(applied).values())
    merged = check_migration_status(migrations, applied_records)
    unknown = [
        Migration(
            id=record.id,
            name=record.name,
            app_name=record.app_name,
            sequence_key=record.id if record.app_name is None else record.name,
            is_applied=True,
            applied_at=record.applied_at,
        )
        for record in find_unknown_applied(migrations, applied_records)
    ]

    unknown_ids = {m.id for m in unknown}
    combined = merged + unknown
    if ordering is not None:
        combined = ordering.order(combined)

    reports: list[MigrationReport] = []
    for m in combined:
        if m.id in unknown_ids:
            reports.append(
                MigrationReport(migration=m, status=MigrationStatus.APPLIED_UNKNOWN, on_disk=False)
            )
        else:
            status = MigrationStatus.APPLIED if m.is_applied else MigrationStatus.PENDING
            reports.append(MigrationReport(migration=m, status=status))
    return reports


def unknown_migration_reports(migrations: Sequence[Migration], error: str) -> list[MigrationReport]:
    """Reports for a migration set whose tracking table could not be read."""
    return [
        MigrationReport(migration=m, status=MigrationStatus.UNKNOWN, error=error)
        for m in migrations
    ]
