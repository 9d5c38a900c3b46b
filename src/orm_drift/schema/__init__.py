"""Live-schema introspection and reconciliation against declared models.

Provides drift detection (``detect_drift``), migration status
reconciliation (``check_migration_status``, ``reconcile_migrations``) and
live database introspection (``SchemaIntrospector``).

Usage:
    from orm_drift.schema import detect_drift, SchemaIntrospector
    from orm_drift.schema import check_migration_status, reconcile_migrations
"""

from orm_drift.schema.comparator import detect_drift, model_status
from orm_drift.schema.introspector import SchemaIntrospector
from orm_drift.schema.migrations import (
    check_migration_status,
    find_unknown_applied,
    reconcile_migrations,
    unknown_migration_reports,
)
from orm_drift.schema.models import (
    ColumnChange,
    ColumnSchema,
    DriftResult,
    MigrationReport,
    MigrationStatus,
    ModelReport,
    ModelStatus,
    OrmReport,
    ReconciliationReport,
)

__all__ = [
    "detect_drift",
    "model_status",
    "SchemaIntrospector",
    "check_migration_status",
    "find_unknown_applied",
    "reconcile_migrations",
    "unknown_migration_reports",
    "ColumnChange",
    "ColumnSchema",
    "DriftResult",
    "MigrationReport",
    "MigrationStatus",
    "ModelReport",
    "ModelStatus",
    "OrmReport",
    "ReconciliationReport",
]
