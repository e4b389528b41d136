"""Application configuration helpers."""

from __future__ import annotations

from .entity_api import EntityApiConfig, get_entity_api_config
from .env import env_bool, env_choice, env_float, env_int, optional_env, require_env_vars
from .errors import ConfigurationError, InvalidConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .runs import RunConfig, StoreBackend, get_run_config
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_storage_config,
)

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "EntityApiConfig",
    "InvalidConfigurationError",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "RunConfig",
    "StorageConfig",
    "StoreBackend",
    "configure_logging",
    "env_bool",
    "env_choice",
    "env_float",
    "env_int",
    "get_database_config",
    "get_database_uri",
    "get_entity_api_config",
    "get_run_config",
    "get_storage_config",
    "optional_env",
    "require_env_vars",
]
