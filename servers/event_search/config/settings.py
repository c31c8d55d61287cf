"""
Configuration for the event search core.

Config is a plain nested dict:
- providers: per-provider enable flag, timeout, endpoint and key variable
- search: radius/limit defaults and the party jitter default
- cache, rate_limit, resilience: collaborator thresholds

API keys are only ever read from the environment.
"""

import copy
import os
from typing import Any, Mapping, Optional

import structlog

log = structlog.get_logger(__name__)

CURRENT_VERSION = 1

# Provider -> environment variables holding its key, in lookup order
API_KEY_ENV = {
    "ticketmaster": ["TICKETMASTER_KEY"],
    "predicthq": ["PREDICTHQ_API_KEY"],
    "rapidapi": ["RAPIDAPI_KEY", "X_RAPIDAPI_KEY"],
}


def get_default_config() -> dict[str, Any]:
    """Return default config."""
    return {
        "version": CURRENT_VERSION,
        "providers": {
            "ticketmaster": {
                "enabled": True,
                "timeout": 10.0,
                "base_url": "https://app.ticketmaster.com/discovery/v2/events.json",
                "api_key_env": "TICKETMASTER_KEY",
            },
            "predicthq": {
                "enabled": True,
                "timeout": 10.0,
                "base_url": "https://api.predicthq.com/v1/events/",
                "api_key_env": "PREDICTHQ_API_KEY",
            },
            "rapidapi": {
                "enabled": True,
                "timeout": 15.0,
                "base_url": "https://real-time-events-search.p.rapidapi.com/search-events",
                "api_key_env": "RAPIDAPI_KEY",
            },
        },
        "search": {
            "default_radius_miles": 25,
            "default_limit": 100,
            "max_limit": 200,
            "party_jitter": True,
        },
        "cache": {
            "enabled": True,
            "ttl_seconds": 300,
            "max_entries": 100,
        },
        "rate_limit": {
            "max_requests": 60,
            "window_seconds": 60,
        },
        "resilience": {
            "retry_attempts": 2,
            "retry_base_delay": 0.5,
            "failure_threshold": 5,
            "recovery_timeout": 60,
        },
    }


def deep_merge(base: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge overrides into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def resolve_api_key(provider: str, config: dict[str, Any], env: Mapping[str, str]) -> Optional[str]:
    """Look up a provider's API key in the environment."""
    names = []
    configured = config.get("providers", {}).get(provider, {}).get("api_key_env")
    if configured:
        names.append(configured)
    names.extend(n for n in API_KEY_ENV.get(provider, []) if n not in names)

    for name in names:
        value = (env.get(name) or "").strip()
        if value:
            return value
    return None


def load_config(
    overrides: Optional[Mapping[str, Any]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> dict[str, Any]:
    """
    Build the effective config.

    Args:
        overrides: Nested values merged over the defaults
        env: Environment mapping, defaults to os.environ

    Returns:
        Config dict with providers.<name>.api_key resolved (None if unset)
    """
    env = os.environ if env is None else env
    config = deep_merge(get_default_config(), overrides or {})

    for provider, settings in config["providers"].items():
        settings["api_key"] = resolve_api_key(provider, config, env)
        if settings.get("enabled") and not settings["api_key"]:
            log.info("provider_key_missing", provider=provider)

    return config


def validate_config(config: dict[str, Any]) -> list[str]:
    """
    Validate config and return list of errors.

    Returns:
        List of error messages (empty if valid)
    """
    errors: list[str] = []

    version = config.get("version", CURRENT_VERSION)
    if version > CURRENT_VERSION:
        errors.append(
            f"Config version {version} is newer than supported version {CURRENT_VERSION}"
        )

    for name, provider in config.get("providers", {}).items():
        if name not in API_KEY_ENV:
            errors.append(f"Unknown provider: {name}")
        timeout = provider.get("timeout", 0)
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            errors.append(f"Invalid timeout for {name}: {timeout} (must be > 0)")

    search = config.get("search", {})
    radius = search.get("default_radius_miles", 25)
    if not isinstance(radius, (int, float)) or radius <= 0:
        errors.append(f"Invalid default radius: {radius} (must be > 0)")
    default_limit = search.get("default_limit", 100)
    max_limit = search.get("max_limit", 200)
    if default_limit < 1 or default_limit > max_limit:
        errors.append(f"Invalid default limit: {default_limit} (must be 1-{max_limit})")

    cache = config.get("cache", {})
    if cache.get("ttl_seconds", 300) <= 0:
        errors.append(f"Invalid cache ttl: {cache.get('ttl_seconds')} (must be > 0)")
    if cache.get("max_entries", 100) < 1:
        errors.append(f"Invalid cache size: {cache.get('max_entries')} (must be >= 1)")

    rate_limit = config.get("rate_limit", {})
    if rate_limit.get("max_requests", 60) < 1:
        errors.append("rate_limit.max_requests must be >= 1")
    if rate_limit.get("window_seconds", 60) <= 0:
        errors.append("rate_limit.window_seconds must be > 0")

    resilience = config.get("resilience", {})
    if resilience.get("retry_attempts", 2) < 1:
        errors.append("resilience.retry_attempts must be >= 1")
    if resilience.get("failure_threshold", 5) < 1:
        errors.append("resilience.failure_threshold must be >= 1")

    return errors
