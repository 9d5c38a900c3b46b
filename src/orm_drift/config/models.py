"""Pydantic models for orm-drift configuration."""

from pydantic import BaseModel, Field

from orm_drift.workspace import DEFAULT_EXCLUDED_DIRS


# ============================================================================
# Configuration Models
# ============================================================================


class DatabaseProfile(BaseModel):
    """Database connection profile from orm-drift.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution


class ReconcileSettings(BaseModel):
    """Tuning of a reconciliation pass."""

    schema_name: str = Field(default="public", alias="schema")
    query_timeout: float = Field(default=10.0, gt=0)
    max_concurrent_queries: int = Field(default=5, ge=1)
    exclude_dirs: list[str] = Field(default_factory=lambda: sorted(DEFAULT_EXCLUDED_DIRS))

    model_config = {"populate_by_name": True}


class OrmDriftConfig(BaseModel):
    """Complete configuration from orm-drift.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    reconcile: ReconcileSettings = Field(default_factory=ReconcileSettings)
