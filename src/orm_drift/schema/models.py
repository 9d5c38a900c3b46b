"""Pydantic models for live-schema introspection and reconciliation results.

This module contains schema-domain models:
- Introspection models: ColumnSchema
- Drift models: ColumnChange, DriftResult
- Status enums: ModelStatus, MigrationStatus
- Report models: ModelReport, MigrationReport, OrmReport, ReconciliationReport

Declared-side models (Model, ModelField, Migration) live in
orm_drift.orm.models.
"""

from enum import Enum

from pydantic import BaseModel, Field, computed_field

from orm_drift.orm.models import App, Migration, Model, ModelField, ORMConfig
from orm_drift.orm.types import CanonicalType


# ============================================================================
# Status enums
# ============================================================================


class ModelStatus(str, Enum):
    """Reconciled status of one model against its live table."""

    SYNCED = "synced"
    CHANGED = "changed"
    MISSING = "missing"
    UNKNOWN = "unknown"  # Introspection failed


class MigrationStatus(str, Enum):
    """Reconciled status of one migration against the tracking table."""

    APPLIED = "applied"
    PENDING = "pending"
    APPLIED_UNKNOWN = "applied_unknown"  # In tracking table, not on disk
    UNKNOWN = "unknown"  # Tracking table read failed


# ============================================================================
# Introspection Models
# ============================================================================


class ColumnSchema(BaseModel):
    """Schema for a live database column.

    Example:
        >>> col = ColumnSchema(name="id", data_type="uuid")
        >>> col.is_nullable
        True
    """

    name: str
    data_type: str
    is_nullable: bool = True
    default: str | None = None
    udt_name: str | None = None


# ============================================================================
# Drift Models
# ============================================================================


class ColumnChange(BaseModel):
    """A column present on both sides whose type family or nullability differs."""

    name: str
    declared_type: str
    live_type: str
    declared_nullable: bool
    live_nullable: bool
    declared_canonical: CanonicalType = CanonicalType.UNKNOWN
    live_canonical: CanonicalType = CanonicalType.UNKNOWN

    @property
    def type_changed(self) -> bool:
        """True if the canonical type families differ."""
        return self.declared_canonical != self.live_canonical

    @property
    def nullability_changed(self) -> bool:
        return self.declared_nullable != self.live_nullable


class DriftResult(BaseModel):
    """Result of comparing one declared model with its live table.

    Only missing or changed columns count as changes; extra live columns are
    informational.

    Example:
        >>> result = DriftResult(table_name="shop_order", extra_columns=["notes"])
        >>> result.has_changes
        False
        >>> result.status.value
        'synced'
    """

    table_name: str = ""
    table_exists: bool = True
    missing_columns: list[ModelField] = Field(default_factory=list)
    extra_columns: list[str] = Field(default_factory=list)  # Warning only
    changed_columns: list[ColumnChange] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_changes(self) -> bool:
        """True if any declared column is missing or changed."""
        return bool(self.missing_columns or self.changed_columns)

    @property
    def status(self) -> ModelStatus:
        """Presentation status derived from the drift."""
        if not self.table_exists:
            return ModelStatus.MISSING
        if self.has_changes:
            return ModelStatus.CHANGED
        return ModelStatus.SYNCED

    def format_report(self) -> str:
        """Format drift as a human-readable report."""
        if not self.table_exists:
            return f"Table {self.table_name} does not exist"
        if not self.has_changes and not self.extra_columns:
            return f"Table {self.table_name} in sync"

        lines = [f"Table {self.table_name}:"]

        if self.missing_columns:
            lines.append(f"  Missing columns ({len(self.missing_columns)}):")
            for f in self.missing_columns:
                lines.append(f"    - {f.column_name} ({f.declared_type})")

        if self.changed_columns:
            lines.append(f"  Changed columns ({len(self.changed_columns)}):")
            for change in self.changed_columns:
                declared_null = "NULL" if change.declared_nullable else "NOT NULL"
                live_null = "NULL" if change.live_nullable else "NOT NULL"
                lines.append(
                    f"    - {change.name}: declared {change.declared_type} {declared_null}, "
                    f"live {change.live_type} {live_null}"
                )

        if self.extra_columns:
            lines.append(f"  Extra columns (warning): {', '.join(self.extra_columns)}")

        return "\n".join(lines)


# ============================================================================
# Reports
# ============================================================================


class ModelReport(BaseModel):
    """Status of one model in a reconciliation pass."""

    model: Model
    status: ModelStatus
    drift: DriftResult | None = None
    error: str | None = None


class MigrationReport(BaseModel):
    """Status of one migration in a reconciliation pass.

    ``on_disk`` is False for tracking-table entries with no migration file.
    """

    migration: Migration
    status: MigrationStatus
    on_disk: bool = True
    error: str | None = None


class OrmReport(BaseModel):
    """Reconciliation of one detected ORM."""

    config: ORMConfig
    apps: list[App] = Field(default_factory=list)
    models: list[ModelReport] = Field(default_factory=list)
    migrations: list[MigrationReport] = Field(default_factory=list)
    migration_error: str | None = None

    def count(self, status: ModelStatus | MigrationStatus) -> int:
        """Number of models or migrations with *status*."""
        if isinstance(status, ModelStatus):
            return sum(1 for r in self.models if r.status is status)
        return sum(1 for r in self.migrations if r.status is status)

    @property
    def in_sync(self) -> bool:
        """True if every model is synced and every migration applied."""
        return all(r.status is ModelStatus.SYNCED for r in self.models) and all(
            r.status is MigrationStatus.APPLIED for r in self.migrations
        )


class ReconciliationReport(BaseModel):
    """Result of one reconciliation pass over every detected ORM."""

    orms: list[OrmReport] = Field(default_factory=list)

    @property
    def in_sync(self) -> bool:
        return all(orm.in_sync for orm in self.orms)
