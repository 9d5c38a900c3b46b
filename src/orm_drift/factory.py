"""Database client factory.

Supports two configuration modes:
1. Profile mode (orm-drift.toml + ``{prefix}ORM_DRIFT_PROFILE``): named
   connection profiles.
2. URL mode (``{prefix}DATABASE_URL``): a single connection URL, no config
   file needed.

Usage:
    from orm_drift.factory import get_adapter

    adapter = await get_adapter(profile_name="local")
    try:
        report = await reconcile_workspace([Path(".")], adapter)
    finally:
        await adapter.close()
"""

import os
from pathlib import Path
from urllib.parse import quote

from orm_drift.adapters.postgres import AsyncPostgresAdapter
from orm_drift.config.loader import CONFIG_FILE_NAME, load_config
from orm_drift.config.models import DatabaseProfile
from orm_drift.errors import ProfileNotFoundError

PROFILE_ENV_VAR = "ORM_DRIFT_PROFILE"
DATABASE_URL_ENV_VAR = "DATABASE_URL"


# ============================================================================
# Profile Resolution
# ============================================================================


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get active profile name from the environment.

    Args:
        env_prefix: Prefix for the env var (``"APP_"`` reads
            ``APP_ORM_DRIFT_PROFILE``).

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If the env var is not set
    """
    env_var = f"{env_prefix}{PROFILE_ENV_VAR}"
    env_profile = os.environ.get(env_var)
    if env_profile:
        return env_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Run: {env_var}=<name> orm-drift status\n"
        f"  or: orm-drift status --profile <name>"
    )


def get_active_profile(
    profile_name: str | None = None,
    env_prefix: str = "",
    config_path: Path | None = None,
) -> tuple[str, DatabaseProfile]:
    """Get profile name and configuration.

    Raises:
        ProfileNotFoundError: If no profile is selected or it is not defined
        FileNotFoundError: If orm-drift.toml doesn't exist
        ConfigError: If orm-drift.toml is invalid
    """
    if profile_name is None:
        profile_name = get_active_profile_name(env_prefix)

    config = load_config(config_path)
    if profile_name not in config.profiles:
        available = ", ".join(config.profiles.keys()) or "(none)"
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found in {CONFIG_FILE_NAME}.\n"
            f"Available profiles: {available}"
        )

    return profile_name, config.profiles[profile_name]


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Args:
        profile: Database profile from config

    Returns:
        Connection URL with password substituted (URL-encoded)
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


# ============================================================================
# Database Adapter Factory
# ============================================================================


async def get_adapter(
    profile_name: str | None = None,
    database_url: str | None = None,
    env_prefix: str = "",
    config_path: Path | None = None,
    connect_timeout: float = 5,
) -> AsyncPostgresAdapter:
    """Create a read-only introspection adapter.

    Resolution order:
    1. ``database_url`` argument
    2. ``profile_name`` argument, then ``{prefix}ORM_DRIFT_PROFILE``
    3. ``{prefix}DATABASE_URL`` env var

    A new adapter is created on every call; the caller closes it.

    Raises:
        ProfileNotFoundError: If no database configuration found

    Example:
        >>> adapter = await get_adapter(database_url="postgresql://u:p@localhost/app")
        >>> await adapter.test_connection()
        True
    """
    if database_url:
        return AsyncPostgresAdapter(database_url=database_url, connect_timeout=connect_timeout)

    if profile_name is None:
        try:
            profile_name = get_active_profile_name(env_prefix)
        except ProfileNotFoundError:
            env_url = os.environ.get(f"{env_prefix}{DATABASE_URL_ENV_VAR}")
            if env_url:
                return AsyncPostgresAdapter(database_url=env_url, connect_timeout=connect_timeout)
            raise ProfileNotFoundError(
                "No database configuration found.\n"
                "Either:\n"
                f"  1. Create {CONFIG_FILE_NAME} and set "
                f"{env_prefix}{PROFILE_ENV_VAR}=<name> (or pass --profile)\n"
                f"  2. Set {env_prefix}{DATABASE_URL_ENV_VAR}"
            ) from None

    _, profile = get_active_profile(profile_name, env_prefix, config_path)
    return AsyncPostgresAdapter(database_url=resolve_url(profile), connect_timeout=connect_timeout)
