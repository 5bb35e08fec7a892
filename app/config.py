"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

PROVIDER_ENV_PREFIXES: dict[str, str] = {
    "audit": "SITE_AUDIT",
    "backlinks": "BACKLINKS",
    "traffic": "TRAFFIC",
    "content_changes": "CONTENT_CHANGES",
    "instagram": "INSTAGRAM",
    "facebook": "FACEBOOK",
    "google_ads": "GOOGLE_ADS",
    "meta_ads": "META_ADS",
}

_DEFAULT_BASE_URLS: dict[str, str] = {
    "audit": "https://www.googleapis.com/pagespeedonline/v5/runPagespeed",
    "backlinks": "https://api.backlinkindex.io/v1/summary",
    "traffic": "https://api.similarweb.com/v1/website",
    "instagram": "https://graph.facebook.com/v19.0/ig_business_discovery",
    "facebook": "https://graph.facebook.com/v19.0",
    "google_ads": "https://adstransparency.googleapis.com/v1/advertisers:search",
    "meta_ads": "https://graph.facebook.com/v19.0/ads_archive",
}


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class ComparisonCacheSettings:
    """
    Lifetime policy for persisted competitor comparisons.
    """

    ttl_days: int = 7
    enabled: bool = True


@dataclass(frozen=True)
class ProviderHTTPSettings:
    """
    Shared HTTP behavior settings for provider clients.
    """

    timeout_seconds: float = 15.0
    max_retries: int = 2
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    max_workers: int = 8


@dataclass(frozen=True)
class ProviderEndpointSettings:
    """
    Endpoint and credential for one external data provider.
    """

    name: str
    enabled: bool = True
    base_url: str = ""
    api_key: str | None = None


@lru_cache(maxsize=1)
def get_comparison_cache_settings() -> ComparisonCacheSettings:
    """
    Return cached comparison cache settings from environment variables.
    """

    return ComparisonCacheSettings(
        ttl_days=max(1, _get_int_env("COMPARISON_CACHE_TTL_DAYS", 7)),
        enabled=_get_bool_env("COMPARISON_CACHE_ENABLED", True),
    )


@lru_cache(maxsize=1)
def get_provider_http_settings() -> ProviderHTTPSettings:
    """
    Return shared provider HTTP settings from environment variables.
    """

    return ProviderHTTPSettings(
        timeout_seconds=max(1.0, _get_float_env("PROVIDER_HTTP_TIMEOUT_SECONDS", 15.0)),
        max_retries=max(0, _get_int_env("PROVIDER_HTTP_MAX_RETRIES", 2)),
        backoff_initial_seconds=max(0.1, _get_float_env("PROVIDER_HTTP_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("PROVIDER_HTTP_BACKOFF_MULTIPLIER", 2.0)),
        max_workers=max(1, _get_int_env("PROVIDER_MAX_WORKERS", 8)),
    )


def get_provider_endpoint_settings(name: str) -> ProviderEndpointSettings:
    """
    Return endpoint settings for one provider, e.g. ``get_provider_endpoint_settings("backlinks")``.
    """

    prefix = PROVIDER_ENV_PREFIXES.get(name)
    if prefix is None:
        raise ValueError(
            f"Unknown provider '{name}'. Allowed values: {sorted(PROVIDER_ENV_PREFIXES)}."
        )
    return _load_provider_endpoint_settings(name, prefix)


@lru_cache(maxsize=None)
def _load_provider_endpoint_settings(name: str, prefix: str) -> ProviderEndpointSettings:
    return ProviderEndpointSettings(
        name=name,
        enabled=_get_bool_env(f"{prefix}_ENABLED", True),
        base_url=_get_str_env(f"{prefix}_BASE_URL", _DEFAULT_BASE_URLS.get(name, "")),
        api_key=_get_optional_str_env(f"{prefix}_API_KEY"),
    )
