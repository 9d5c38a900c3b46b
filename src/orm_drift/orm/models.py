"""Pydantic models for declared ORM state.

This module contains the canonical, ecosystem-agnostic shapes that both the
Django and the Prisma parsers produce:
- Detection: ORMKind, ORMConfig
- Declarations: ModelField, Model, App
- Migrations: Migration, AppliedMigration

All models are frozen value objects.  Derived state (``Migration.is_applied``)
is produced with ``model_copy(update=...)``, never by mutation.
"""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from orm_drift.orm.types import CanonicalType


# ============================================================================
# Detection
# ============================================================================


class ORMKind(str, Enum):
    """Supported ORM ecosystems."""

    DJANGO = "django"
    PRISMA = "prisma"


class ORMConfig(BaseModel):
    """One detected ORM installation in the workspace.

    Example:
        >>> config = ORMConfig(kind=ORMKind.PRISMA, display_name="Prisma",
        ...                    icon="symbol-interface")
        >>> config.kind.value
        'prisma'
    """

    model_config = ConfigDict(frozen=True)

    kind: ORMKind
    display_name: str
    icon: str
    project_root: Path | None = None
    config_path: Path | None = None


# ============================================================================
# Declarations
# ============================================================================


class ModelField(BaseModel):
    """One declared attribute of a model.

    ``column_name`` is the live column the field is expected to map to.  It
    defaults to ``name``; parsers set it when the ecosystem derives a
    different column (Django foreign keys, ``db_column``, Prisma ``@map``).

    Example:
        >>> field = ModelField(name="title", declared_type="CharField",
        ...                    canonical_type=CanonicalType.TEXT)
        >>> field.column_name
        'title'
    """

    model_config = ConfigDict(frozen=True)

    name: str
    declared_type: str
    canonical_type: CanonicalType = CanonicalType.UNKNOWN
    nullable: bool = False
    is_primary_key: bool = False
    is_foreign_key: bool = False
    referenced_model: str | None = None
    max_length: int | None = None
    column_name: str = ""
    is_relation: bool = False  # Virtual relation, no column of its own
    is_unique: bool = False

    @model_validator(mode="before")
    @classmethod
    def _default_column_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("column_name"):
            data = {**data, "column_name": data.get("name", "")}
        return data

    @property
    def has_column(self) -> bool:
        """True if the field is backed by a column of the model's table."""
        return not self.is_relation


class Model(BaseModel):
    """A declared model and the table it maps to."""

    model_config = ConfigDict(frozen=True)

    name: str
    table_name: str = Field(min_length=1)
    app_name: str | None = None
    fields: list[ModelField] = Field(default_factory=list)
    file_path: Path | None = None

    @property
    def primary_key(self) -> ModelField | None:
        """First primary-key field, if any."""
        for field in self.fields:
            if field.is_primary_key:
                return field
        return None

    @property
    def column_fields(self) -> list[ModelField]:
        """Fields that are backed by a column."""
        return [f for f in self.fields if f.has_column]


class App(BaseModel):
    """A Django app: a named directory unit that groups models."""

    model_config = ConfigDict(frozen=True)

    name: str
    path: Path
    models: list[Model] = Field(default_factory=list)


# ============================================================================
# Migrations
# ============================================================================


class Migration(BaseModel):
    """A migration declared on disk.

    ``is_applied`` is derived by the migration status reconciler and is
    always ``False`` when produced by a parser.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    app_name: str | None = None
    depends_on: list[str] = Field(default_factory=list)
    run_before: list[str] = Field(default_factory=list)
    sequence_key: str = ""
    is_applied: bool = False
    applied_at: datetime | None = None
    file_path: Path | None = None


class AppliedMigration(BaseModel):
    """One row of a migration tracking table."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    app_name: str | None = None
    applied_at: datetime | None = None


def dedupe_tables(models: list[Model], logger: Any) -> list[Model]:
    """Drop models whose table name was already claimed by an earlier model.

    Table names are unique within one ecosystem's model set; the first
    declaration wins and later ones are reported as warnings.
    """
    seen: dict[str, Model] = {}
    result: list[Model] = []
    for model in models:
        owner = seen.get(model.table_name)
        if owner is not None:
            logger.warning(
                "Model %s maps to table %r already used by %s; skipping",
                model.name,
                model.table_name,
                owner.name,
            )
            continue
        seen[model.table_name] = model
        result.append(model)
    return result
