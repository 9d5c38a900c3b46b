"""Declared-side ORM model: detection, canonical models, type mapping, ordering.

Parsers live in ``orm_drift.orm.django`` and ``orm_drift.orm.prisma``; use
``orm_drift.orm.parsers.get_parser`` to pick one for a detected ORM.

Usage:
    from orm_drift.orm import detect_orms, ORMKind, Model, Migration
"""

from orm_drift.orm.detector import detect_orms
from orm_drift.orm.models import (
    App,
    AppliedMigration,
    Migration,
    Model,
    ModelField,
    ORMConfig,
    ORMKind,
)
from orm_drift.orm.ordering import (
    DependencyOrdering,
    OrderingStrategy,
    SequenceOrdering,
    ordering_for,
)
from orm_drift.orm.types import CanonicalType

__all__ = [
    "detect_orms",
    "App",
    "AppliedMigration",
    "Migration",
    "Model",
    "ModelField",
    "ORMConfig",
    "ORMKind",
    "DependencyOrdering",
    "OrderingStrategy",
    "SequenceOrdering",
    "ordering_for",
    "CanonicalType",
]
