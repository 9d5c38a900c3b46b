"""orm-drift: ORM schema and migration reconciliation engine.

Detects Django and Prisma projects in a workspace, parses their declared
models and migrations, and reconciles both against a live PostgreSQL
database (read-only).

Usage:
    from orm_drift import reconcile_workspace, get_adapter
    from orm_drift import detect_orms, get_parser, detect_drift
    from orm_drift import SchemaIntrospector, check_migration_status
"""

__version__ = "0.1.0"

# Adapters
from orm_drift.adapters.base import QueryClient, QueryResult
from orm_drift.adapters.postgres import AsyncPostgresAdapter

# Config
from orm_drift.config.loader import load_config
from orm_drift.config.models import DatabaseProfile, OrmDriftConfig, ReconcileSettings

# Errors
from orm_drift.errors import (
    ConfigError,
    IntrospectionError,
    OrmDriftError,
    ParseError,
    ProfileNotFoundError,
    WorkspaceReadError,
)

# Factory
from orm_drift.factory import get_active_profile_name, get_adapter, resolve_url

# Declared side
from orm_drift.orm.detector import detect_orms
from orm_drift.orm.models import App, Migration, Model, ModelField, ORMConfig, ORMKind
from orm_drift.orm.parsers import get_parser
from orm_drift.orm.types import CanonicalType

# Reconciliation
from orm_drift.reconciler import RefreshCoordinator, reconcile_workspace
from orm_drift.schema.comparator import detect_drift
from orm_drift.schema.introspector import SchemaIntrospector
from orm_drift.schema.migrations import check_migration_status, reconcile_migrations
from orm_drift.schema.models import (
    DriftResult,
    MigrationStatus,
    ModelStatus,
    ReconciliationReport,
)

# Workspace
from orm_drift.workspace import LocalWorkspace, WorkspaceReader

__all__ = [
    # Adapters
    "QueryClient",
    "QueryResult",
    "AsyncPostgresAdapter",
    # Config
    "load_config",
    "DatabaseProfile",
    "OrmDriftConfig",
    "ReconcileSettings",
    # Errors
    "OrmDriftError",
    "ParseError",
    "WorkspaceReadError",
    "IntrospectionError",
    "ConfigError",
    "ProfileNotFoundError",
    # Factory
    "get_adapter",
    "get_active_profile_name",
    "resolve_url",
    # Declared side
    "detect_orms",
    "get_parser",
    "App",
    "Migration",
    "Model",
    "ModelField",
    "ORMConfig",
    "ORMKind",
    "CanonicalType",
    # Reconciliation
    "reconcile_workspace",
    "RefreshCoordinator",
    "detect_drift",
    "SchemaIntrospector",
    "check_migration_status",
    "reconcile_migrations",
    "DriftResult",
    "MigrationStatus",
    "ModelStatus",
    "ReconciliationReport",
    # Workspace
    "LocalWorkspace",
    "WorkspaceReader",
]
