"""
tests/test_cache_service.py
The Cache facade, the supervisor and the container.

Covers:
  - construction-time configuration errors
  - adapter selection, sandbox replacement and extension checks
  - lifecycle through start/close and the async context manager
  - supervisor startup, rollback and health
"""

import os

import pytest
from unittest.mock import AsyncMock

from sandbox_cache.application.services import Cache
from sandbox_cache.core.config import CacheSettings, Settings
from sandbox_cache.core.container import Container, initialize_container, shutdown_container
from sandbox_cache.core.exceptions import ConfigurationError, ServiceError, UnsupportedError
from sandbox_cache.core.protocols import (
    CacheProtocol,
    CommandCacheProtocol,
    HashCacheProtocol,
    JSONCacheProtocol,
    TableCacheProtocol,
)
from sandbox_cache.infrastructure.cache import DiskCache, MemoryCache, RedisCache, SandboxCache
from sandbox_cache.startup import CacheSupervisor


# ══════════════════════════════════════════════════════════════════════════════
#  CONSTRUCTION
# ══════════════════════════════════════════════════════════════════════════════

class TestConstruction:

    @pytest.mark.parametrize("name", ["", None])
    def test_missing_name(self, name):
        with pytest.raises(ConfigurationError):
            Cache(name, "memory")

    def test_unknown_adapter(self):
        with pytest.raises(ConfigurationError, match="Unknown cache adapter"):
            Cache("c", "memcached")

    def test_invalid_options(self):
        with pytest.raises(ConfigurationError) as exc:
            Cache("c", "redis", {"size": 10})
        assert exc.value.config_key == "options"

    def test_unknown_option(self):
        with pytest.raises(ConfigurationError):
            Cache("c", "memory", {"max_size": 10})

    @pytest.mark.parametrize("kind, adapter_class", [
        ("memory", MemoryCache),
        ("disk", DiskCache),
        ("redis", RedisCache),
        ("sandbox", SandboxCache),
    ])
    def test_adapter_selection(self, kind, adapter_class):
        options = {"uri": "redis://localhost:6379"} if kind == "redis" else None
        cache = Cache("c", kind, options)
        assert isinstance(cache.adapter, adapter_class)
        assert isinstance(cache.adapter, CacheProtocol)

    def test_sandbox_replaces_adapter_and_ignores_options(self):
        cache = Cache("c", "redis", {"not": "validated"}, sandbox=True)
        assert isinstance(cache.adapter, SandboxCache)
        assert cache.adapter_kind == "redis"

    def test_extension_support(self):
        assert Cache("c", "redis", {"uri": "redis://x:6379"}).supports(JSONCacheProtocol)
        assert not Cache("c", "memory").supports(HashCacheProtocol)
        assert Cache("c", "memory").supports(TableCacheProtocol)
        assert Cache("c", "disk").supports(TableCacheProtocol)
        assert not Cache("c", "disk").supports(CommandCacheProtocol)

        sandbox = Cache("c", "sandbox")
        for protocol in (HashCacheProtocol, JSONCacheProtocol, TableCacheProtocol):
            assert sandbox.supports(protocol)

    def test_from_settings(self):
        settings = Settings(cache=CacheSettings(sandbox=True, default_ttl_ms=500))
        cache = Cache.from_settings("c", "redis", settings=settings)

        assert cache.sandbox
        assert cache.default_ttl == 500
        assert isinstance(cache.adapter, SandboxCache)

    def test_from_settings_fills_options(self):
        settings = Settings(cache=CacheSettings(redis_url="redis://cache:6380", disk_path="/tmp/tables"))

        assert Cache.from_settings("r", "redis", settings=settings).adapter.options.uri == "redis://cache:6380"
        assert Cache.from_settings("d", "disk", settings=settings).adapter.options.file_path == "/tmp/tables"


# ══════════════════════════════════════════════════════════════════════════════
#  OPERATIONS
# ══════════════════════════════════════════════════════════════════════════════

class TestOperations:

    @pytest.mark.asyncio
    async def test_memory_round_trip(self):
        async with Cache("c", "memory") as cache:
            await cache.put("user:1", {"name": "a"})
            assert await cache.get("user:1") == {"name": "a"}

            await cache.delete("user:1")
            assert await cache.get("user:1") is None

    @pytest.mark.asyncio
    async def test_unsupported_extension(self):
        cache = Cache("c", "memory")

        with pytest.raises(UnsupportedError, match="memory adapter"):
            await cache.hash_get("h", "f")
        with pytest.raises(UnsupportedError):
            await cache.json_get("doc")
        with pytest.raises(UnsupportedError):
            await cache.command(["PING"])

    @pytest.mark.asyncio
    async def test_json_set_value_only_writes_root(self, plain_sandbox):
        assert await plain_sandbox.json_set("doc", {"items": []}) is True
        assert await plain_sandbox.json_array_append("doc", ["items"], [1, 2]) == 2
        assert await plain_sandbox.json_get("doc", ["items"]) == [1, 2]

    @pytest.mark.asyncio
    async def test_hash_set_many_reports_new_fields(self, plain_sandbox):
        groups = [("h", [("f1", "v"), ("f2", "v")])]

        assert await plain_sandbox.hash_set_many(groups) == [2]
        assert await plain_sandbox.hash_set_many(groups) == [0]

    @pytest.mark.asyncio
    async def test_insert_raw_and_match(self, plain_sandbox):
        await plain_sandbox.insert_raw(("k1", "v"))
        await plain_sandbox.insert_raw(("k2", "v"))

        assert sorted(await plain_sandbox.match_object(("_", "v"))) == [("k1", "v"), ("k2", "v")]

    @pytest.mark.asyncio
    async def test_default_ttl_forwarded(self):
        cache = Cache("c", "memory", default_ttl=250)
        cache.adapter.put = AsyncMock()

        await cache.put("k", 1)
        await cache.put("k", 1, ttl=10)

        assert cache.adapter.put.await_args_list[0].args == ("k", 1, 250)
        assert cache.adapter.put.await_args_list[1].args == ("k", 1, 10)

    @pytest.mark.asyncio
    async def test_health_follows_lifecycle(self):
        cache = Cache("c", "sandbox")
        assert not await cache.health_check()

        await cache.start()
        assert await cache.health_check()

        await cache.close()
        assert not await cache.health_check()


# ══════════════════════════════════════════════════════════════════════════════
#  SUPERVISOR
# ══════════════════════════════════════════════════════════════════════════════

class TestSupervisor:

    def test_duplicate_names(self):
        with pytest.raises(ConfigurationError, match="Duplicate"):
            CacheSupervisor([Cache("c", "memory"), Cache("c", "sandbox")])

    def test_get(self):
        supervisor = CacheSupervisor([Cache("a", "memory")])
        assert supervisor.get("a").name == "a"

        with pytest.raises(ConfigurationError):
            supervisor.get("b")

    @pytest.mark.asyncio
    async def test_startup_and_health(self):
        async with CacheSupervisor([Cache("a", "memory"), Cache("b", "sandbox")]) as supervisor:
            assert supervisor.started
            health = await supervisor.health_check()

        assert health == {"status": "healthy", "caches": {"a": True, "b": True}}
        assert not supervisor.started

    @pytest.mark.asyncio
    async def test_failed_startup_closes_started_caches(self):
        first = Cache("a", "sandbox")
        broken = Cache("b", "redis", {"uri": "redis://localhost:1"})
        broken.adapter.initialize = AsyncMock(side_effect=ServiceError("down", service_name="RedisCache"))

        supervisor = CacheSupervisor([first, broken])
        with pytest.raises(ServiceError):
            await supervisor.startup()

        assert not await first.health_check()
        assert not supervisor.started


class TestContainer:

    @pytest.mark.asyncio
    async def test_sandbox_container(self, clean_config):
        container = await initialize_container(
            [{"name": "users", "adapter": "redis", "options": {"uri": "redis://localhost:6379"}}],
            test_mode=True
        )
        try:
            cache = container.supervisor().get("users")
            assert isinstance(cache.adapter, SandboxCache)
            assert cache.registry is container.registry()
            assert container.settings().is_test()
        finally:
            await shutdown_container()

        assert "CACHE_SANDBOX" not in os.environ
        assert "ENV" not in os.environ

    def test_container_builds_declared_caches(self, clean_config):
        container = Container()
        container.config.from_dict({"caches": [{"name": "local", "adapter": "memory"}]})

        supervisor = container.supervisor()
        assert [cache.name for cache in supervisor.caches] == ["local"]
        assert isinstance(supervisor.get("local").adapter, MemoryCache)
