"""Configuration loading from orm-drift.toml."""

import tomllib
from pathlib import Path

from pydantic import ValidationError

from orm_drift.config.models import DatabaseProfile, OrmDriftConfig, ReconcileSettings
from orm_drift.errors import ConfigError

CONFIG_FILE_NAME = "orm-drift.toml"


def load_config(config_path: Path | None = None) -> OrmDriftConfig:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to orm-drift.toml (default: ./orm-drift.toml)

    Returns:
        OrmDriftConfig with all profiles and reconcile settings

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigError: If config format is invalid
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILE_NAME

    if not config_path.exists():
        raise FileNotFoundError(
            f"Config not found: {config_path}\n"
            f"Create {CONFIG_FILE_NAME} with a [profiles.<name>] table, "
            f"or set DATABASE_URL."
        )

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    try:
        # Parse profiles
        profiles = {}
        for name, profile_data in data.get("profiles", {}).items():
            profiles[name] = DatabaseProfile(**profile_data)

        reconcile = ReconcileSettings(**data.get("reconcile", {}))
    except (ValidationError, TypeError, AttributeError) as e:
        raise ConfigError(f"Invalid config in {config_path}: {e}") from e

    return OrmDriftConfig(profiles=profiles, reconcile=reconcile)
