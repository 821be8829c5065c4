"""Application configuration helpers."""

from __future__ import annotations

from .acquisition import AcquisitionConfig, RetrySettings, get_acquisition_config
from .env import require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .upstreams import (
    ClientCredentialsGrant,
    CredentialGrant,
    JsonLoginGrant,
    StaticToken,
    UpstreamConfig,
)

__all__ = [
    "AcquisitionConfig",
    "CacheConfig",
    "ClientCredentialsGrant",
    "ConfigurationError",
    "CredentialGrant",
    "DatabaseConfig",
    "JsonLoginGrant",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "RetrySettings",
    "StaticToken",
    "StorageConfig",
    "UpstreamConfig",
    "configure_logging",
    "get_acquisition_config",
    "get_database_config",
    "get_storage_config",
    "require_env_var",
    "require_env_vars",
]
