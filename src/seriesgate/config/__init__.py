"""Application configuration helpers."""

from __future__ import annotations

from .blobstore import BlobStoreConfig, HttpClientConfig, RateLimit, get_blob_store_config
from .catalog import DEFAULT_COUPONS, default_catalog
from .env import require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "DEFAULT_COUPONS",
    "BlobStoreConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "HttpClientConfig",
    "MissingConfigurationError",
    "RateLimit",
    "StorageConfig",
    "configure_logging",
    "default_catalog",
    "get_blob_store_config",
    "get_database_config",
    "get_storage_config",
    "require_env_vars",
]
