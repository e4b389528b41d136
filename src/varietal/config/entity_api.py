"""Hosted entity API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_int, optional_env, require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig

DEFAULT_CATALOG_API_URL = "https://app.base44.com"
CATALOG_API_TIMEOUT_SECONDS = 30.0
REFERENCE_CACHE_TTL_SECONDS = 300.0


def _is_document_list(payload: object) -> bool:
    return isinstance(payload, list)


@dataclass(frozen=True)
class EntityApiConfig:
    """Credentials plus two client profiles.

    ``resilience`` serves catalog reads and every write and never caches.
    ``reference_resilience`` serves the read-only taxonomy collections and
    keeps list responses in the sqlite HTTP cache beside the database, so
    repeated runs within the TTL skip the taxonomy round trips.
    """

    app_id: str
    api_key: str
    resilience: ResilienceConfig
    reference_resilience: ResilienceConfig


def entity_api_base_url(root: str, app_id: str) -> str:
    return f"{root.rstrip('/')}/api/apps/{app_id}/"


def get_entity_api_config(
    *,
    resilience: ResilienceConfig | None = None,
    reference_resilience: ResilienceConfig | None = None,
) -> EntityApiConfig:
    values = require_env_vars(("CATALOG_API_APP_ID", "CATALOG_API_KEY"))
    app_id = values["CATALOG_API_APP_ID"]
    api_key = values["CATALOG_API_KEY"]
    root = optional_env("CATALOG_API_URL") or DEFAULT_CATALOG_API_URL
    base_url = entity_api_base_url(root, app_id)
    headers = {"api_key": api_key, "Content-Type": "application/json"}
    max_calls = env_int("CATALOG_API_RATE_PER_SECOND", 5, minimum=1)
    cache_enabled = env_bool("CATALOG_API_CACHE", True)  # noqa: FBT003

    return EntityApiConfig(
        app_id=app_id,
        api_key=api_key,
        resilience=resilience
        or ResilienceConfig(
            name="entity-api",
            base_url=base_url,
            timeout_seconds=CATALOG_API_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=max_calls, per_seconds=1.0),
            default_headers=headers,
        ),
        reference_resilience=reference_resilience
        or ResilienceConfig(
            name="entity-api-reference",
            base_url=base_url,
            timeout_seconds=CATALOG_API_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=max_calls, per_seconds=1.0),
            cache=CacheConfig(
                enabled=cache_enabled,
                backend="sqlite",
                default_ttl_seconds=REFERENCE_CACHE_TTL_SECONDS,
                should_cache=_is_document_list,
            ),
            default_headers=headers,
        ),
    )
