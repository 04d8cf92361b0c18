"""Tests for settings, adapter options and the config loader."""

import os

import pytest

from sandbox_cache.core.config import (
    CacheSettings,
    ConfigLoader,
    DiskOptions,
    MemoryOptions,
    RedisOptions,
    SandboxOptions,
    Settings,
    validate_options,
)
from sandbox_cache.core.exceptions import CacheError, ConfigurationError


class TestSettings:

    def test_defaults(self, clean_config):
        settings = Settings()

        assert settings.app_name == "sandbox-cache"
        assert settings.cache.sandbox is False
        assert settings.get_redis_url() == "redis://localhost:6379"
        assert not settings.is_test()

    def test_environment(self, clean_config):
        os.environ["ENV"] = "test"
        os.environ["CACHE_SANDBOX"] = "true"
        os.environ["CACHE_DEFAULT_TTL_MS"] = "250"

        settings = Settings()

        assert settings.is_test()
        assert settings.cache.sandbox is True
        assert settings.cache.default_ttl_ms == 250

    def test_invalid_redis_url(self):
        with pytest.raises(ValueError):
            CacheSettings(redis_url="http://localhost")

    def test_non_positive_ttl(self):
        with pytest.raises(ValueError):
            CacheSettings(default_ttl_ms=0)


class TestOptions:

    def test_models_by_kind(self):
        assert isinstance(validate_options("memory"), MemoryOptions)
        assert isinstance(validate_options("disk", {"file_path": "/tmp"}), DiskOptions)
        assert isinstance(validate_options("redis", {"uri": "redis://h:1"}), RedisOptions)
        assert isinstance(validate_options("sandbox"), SandboxOptions)

    def test_model_instance_passed_through(self):
        options = RedisOptions(uri="redis://h:1")
        assert validate_options("redis", options) is options

    def test_redis_defaults(self):
        options = RedisOptions(uri="redis://h:1")
        assert (options.size, options.max_overflow, options.retry_attempts) == (50, 20, 3)

    def test_unknown_adapter(self):
        with pytest.raises(ConfigurationError) as exc:
            validate_options("memcached")
        assert exc.value.config_key == "adapter"

    def test_invalid_values(self):
        with pytest.raises(ConfigurationError) as exc:
            validate_options("disk", {"type": "bag"})

        error = exc.value
        assert isinstance(error, CacheError)
        assert error.to_dict()["code"] == "configuration"
        assert error.details["errors"]

    def test_options_are_frozen(self):
        options = MemoryOptions(default_ttl=10)
        with pytest.raises(ValueError):
            options.default_ttl = 20


class TestConfigLoader:

    def test_get_before_load(self, clean_config):
        with pytest.raises(ConfigurationError, match="not loaded"):
            ConfigLoader.get_settings()

    def test_load_is_cached(self, clean_config):
        first = ConfigLoader.load_config()
        assert ConfigLoader.load_config() is first
        assert ConfigLoader.get_settings() is first

    def test_reload_applies_overrides(self, clean_config):
        ConfigLoader.load_config()
        settings = ConfigLoader.reload_config({"cache_sandbox": True})

        assert settings.cache.sandbox is True

    def test_overrides_leave_environment_alone(self, clean_config):
        settings = ConfigLoader.load_config({"ENV": "test", "CACHE_SANDBOX": "true"})

        assert settings.is_test()
        assert settings.cache.sandbox is True
        assert "ENV" not in os.environ
        assert "CACHE_SANDBOX" not in os.environ

        assert ConfigLoader.reload_config().cache.sandbox is False

    def test_cache_overrides_keep_environment_defaults(self, clean_config):
        os.environ["CACHE_DISK_PATH"] = "/tmp/tables"

        settings = ConfigLoader.load_config({"CACHE_SANDBOX": "true"})

        assert settings.cache.sandbox is True
        assert settings.cache.disk_path == "/tmp/tables"

    def test_unknown_override(self, clean_config):
        with pytest.raises(ConfigurationError) as exc:
            ConfigLoader.load_config({"CACHE_POOL": 3})
        assert exc.value.config_key == "CACHE_POOL"

    def test_invalid_override_value(self, clean_config):
        with pytest.raises(ConfigurationError) as exc:
            ConfigLoader.load_config({"CACHE_REDIS_URL": "http://localhost"})

        assert exc.value.details["errors"]
        with pytest.raises(ConfigurationError):
            ConfigLoader.get_settings()
