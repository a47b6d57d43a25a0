"""Application configuration helpers."""

from __future__ import annotations

from .engine import EngineConfig, get_engine_config
from .errors import ConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .scheme_registry import SchemeRegistryConfig, get_scheme_registry_config
from .storage import StorageConfig, get_storage_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "EngineConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SchemeRegistryConfig",
    "StorageConfig",
    "configure_logging",
    "get_engine_config",
    "get_scheme_registry_config",
    "get_storage_config",
]
