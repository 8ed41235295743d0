"""Application configuration helpers."""

from __future__ import annotations

from .errors import ConfigurationError
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "StorageConfig",
    "get_database_config",
    "get_storage_config",
]
