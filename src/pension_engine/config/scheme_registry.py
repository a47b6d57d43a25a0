"""Scheme registry configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .env import choice_env, float_env, int_env, optional_env
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .storage import get_storage_config

if TYPE_CHECKING:
    from .storage import StorageConfig

DEFAULT_TIMEOUT_SECONDS: Final[float] = 2.0
CACHE_BACKENDS: Final[tuple[str, ...]] = ("memory", "sqlite")


@dataclass(frozen=True, slots=True)
class SchemeRegistryConfig:
    """Where rule sets come from.

    Without a ``base_url`` no registry is consulted and every scheme resolves
    to the default rule set.
    """

    resilience: ResilienceConfig

    @property
    def base_url(self) -> str | None:
        return self.resilience.base_url

    @property
    def enabled(self) -> bool:
        return self.resilience.base_url is not None


def get_scheme_registry_config(*, storage: StorageConfig | None = None) -> SchemeRegistryConfig:
    base_url = optional_env("SCHEME_REGISTRY_URL")
    timeout = float_env("SCHEME_REGISTRY_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
    retries = int_env("SCHEME_REGISTRY_RETRIES", 0)
    max_calls = int_env("SCHEME_REGISTRY_MAX_CALLS_PER_SECOND", None, minimum=1)

    resilience = ResilienceConfig(
        name="scheme-registry",
        base_url=base_url.rstrip("/") if base_url else None,
        timeout_seconds=timeout or DEFAULT_TIMEOUT_SECONDS,
        retry=RetryPolicy(total=retries or 0),
        ratelimit=RateLimit(max_calls=max_calls, per_seconds=1.0) if max_calls else None,
        cache=_cache_config(storage),
        default_headers={"Accept": "application/json"},
    )
    return SchemeRegistryConfig(resilience=resilience)


def _cache_config(storage: StorageConfig | None) -> CacheConfig | None:
    ttl = float_env("SCHEME_REGISTRY_CACHE_TTL_SECONDS")
    backend = choice_env("SCHEME_REGISTRY_CACHE_BACKEND", CACHE_BACKENDS, "memory")
    if ttl is None:
        return None
    if backend == "sqlite":
        storage_config = storage or get_storage_config()
        return CacheConfig(
            backend="sqlite",
            sqlite_path=str(storage_config.http_cache_path()),
            default_ttl_seconds=ttl,
        )
    return CacheConfig(backend="memory", default_ttl_seconds=ttl)
