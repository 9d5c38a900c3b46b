"""Configuration management: profiles, TOML loading, and config models.

Usage:
    >>> from orm_drift.config import load_config, DatabaseProfile, OrmDriftConfig
"""

from orm_drift.config.loader import CONFIG_FILE_NAME, load_config
from orm_drift.config.models import DatabaseProfile, OrmDriftConfig, ReconcileSettings

__all__ = [
    "load_config",
    "CONFIG_FILE_NAME",
    "DatabaseProfile",
    "OrmDriftConfig",
    "ReconcileSettings",
]
