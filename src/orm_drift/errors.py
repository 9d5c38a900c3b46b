"""Exception types shared across the reconciliation engine.

Absence (no ORM, no tracking table, no migrations directory) is never an
exception. Parse and introspection failures are raised close to their source
and caught by the caller that owns the failure-isolation boundary.
"""


class OrmDriftError(Exception):
    """Base class for orm-drift errors."""

    pass


class ParseError(OrmDriftError):
    """Raised when a declaration file cannot be parsed."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


class WorkspaceReadError(OrmDriftError):
    """Raised when a workspace file exists but cannot be read."""

    pass


class IntrospectionError(OrmDriftError):
    """Raised when a live database read fails or times out."""

    pass


class ConfigError(OrmDriftError):
    """Raised when orm-drift.toml is malformed."""

    pass


class ProfileNotFoundError(OrmDriftError):
    """Raised when no database profile is configured."""

    pass
