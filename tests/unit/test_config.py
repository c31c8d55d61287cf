"""Tests for configuration loading and validation."""

from servers.event_search.config.settings import (
    deep_merge,
    get_default_config,
    load_config,
    resolve_api_key,
    validate_config,
)


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults(self):
        config = load_config(env={})

        assert config["search"]["default_radius_miles"] == 25
        assert config["search"]["max_limit"] == 200
        assert config["cache"]["ttl_seconds"] == 300
        assert config["resilience"]["retry_attempts"] == 2
        assert all(p["api_key"] is None for p in config["providers"].values())

    def test_overrides_merge_deeply(self):
        config = load_config({"providers": {"ticketmaster": {"timeout": 3}}}, env={})

        assert config["providers"]["ticketmaster"]["timeout"] == 3
        assert config["providers"]["ticketmaster"]["enabled"] is True

    def test_keys_read_from_environment(self):
        config = load_config(env={"PREDICTHQ_API_KEY": " phq ", "RAPIDAPI_KEY": ""})

        assert config["providers"]["predicthq"]["api_key"] == "phq"
        assert config["providers"]["rapidapi"]["api_key"] is None

    def test_defaults_not_mutated(self):
        load_config({"search": {"default_limit": 5}}, env={})
        assert get_default_config()["search"]["default_limit"] == 100


class TestHelpers:
    """Tests for config helpers."""

    def test_deep_merge_keeps_base(self):
        base = {"a": {"b": 1, "c": 2}}
        merged = deep_merge(base, {"a": {"c": 3}})

        assert merged == {"a": {"b": 1, "c": 3}}
        assert base == {"a": {"b": 1, "c": 2}}

    def test_rapidapi_alternate_variable(self):
        config = get_default_config()
        assert resolve_api_key("rapidapi", config, {"X_RAPIDAPI_KEY": "alt"}) == "alt"

    def test_custom_key_variable(self):
        config = deep_merge(get_default_config(), {"providers": {"ticketmaster": {"api_key_env": "TM"}}})
        assert resolve_api_key("ticketmaster", config, {"TM": "custom"}) == "custom"


class TestValidateConfig:
    """Tests for validate_config."""

    def test_default_config_valid(self):
        assert validate_config(load_config(env={})) == []

    def test_newer_version_rejected(self):
        config = get_default_config()
        config["version"] = 99
        assert any("newer" in e for e in validate_config(config))

    def test_bad_values(self):
        config = deep_merge(get_default_config(), {
            "providers": {"ticketmaster": {"timeout": 0}, "eventbrite": {"timeout": 5}},
            "search": {"default_radius_miles": -1, "default_limit": 500},
            "cache": {"ttl_seconds": 0},
            "rate_limit": {"max_requests": 0},
            "resilience": {"retry_attempts": 0},
        })
        errors = validate_config(config)

        assert "Unknown provider: eventbrite" in errors
        assert any("timeout for ticketmaster" in e for e in errors)
        assert any("default radius" in e for e in errors)
        assert any("default limit" in e for e in errors)
        assert any("cache ttl" in e for e in errors)
        assert "rate_limit.max_requests must be >= 1" in errors
        assert "resilience.retry_attempts must be >= 1" in errors
