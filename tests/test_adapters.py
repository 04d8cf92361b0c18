"""
tests/test_adapters.py
Memory and disk adapters.

Covers:
  - memory entries, TTL expiry and stats
  - disk table records, raw inserts and table queries over diskcache
  - the table extension behaving the same in memory and on disk
"""

import pytest
import pytest_asyncio
from unittest.mock import patch

from sandbox_cache.core.config import DiskOptions, MemoryOptions
from sandbox_cache.core.exceptions import BadRequestError, ServiceError
from sandbox_cache.infrastructure.cache import DiskCache, MemoryCache


# ══════════════════════════════════════════════════════════════════════════════
#  MEMORY
# ══════════════════════════════════════════════════════════════════════════════

class TestMemoryCache:

    @pytest.mark.asyncio
    async def test_put_get_delete(self):
        cache = MemoryCache("m")
        await cache.initialize()

        await cache.put("k", [1, 2])
        assert await cache.get("k") == [1, 2]

        await cache.delete("k")
        await cache.delete("k")
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_put_none_deletes(self):
        cache = MemoryCache("m")
        await cache.put("k", 1)
        await cache.put("k", None)
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_ttl_in_milliseconds(self):
        cache = MemoryCache("m")

        with patch("sandbox_cache.infrastructure.cache.memory_cache.time.monotonic", return_value=100.0):
            await cache.put("k", "v", ttl=1500)

        with patch("sandbox_cache.infrastructure.cache.memory_cache.time.monotonic", return_value=101.0):
            assert await cache.get("k") == "v"

        with patch("sandbox_cache.infrastructure.cache.memory_cache.time.monotonic", return_value=102.0):
            assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_default_ttl_option(self):
        cache = MemoryCache("m", MemoryOptions(default_ttl=1000))

        with patch("sandbox_cache.infrastructure.cache.memory_cache.time.monotonic", return_value=0.0):
            await cache.put("k", "v")

        with patch("sandbox_cache.infrastructure.cache.memory_cache.time.monotonic", return_value=2.0):
            assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_stats(self):
        cache = MemoryCache("m")
        await cache.initialize()
        await cache.put("k", 1)
        await cache.get("k")
        await cache.get("missing")

        stats = await cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 50.0
        assert stats["status"] == "active"


# ══════════════════════════════════════════════════════════════════════════════
#  DISK
# ══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def disk_options(tmp_path):
    return DiskOptions(file_path=str(tmp_path))


class TestDiskCache:

    @pytest.mark.asyncio
    async def test_not_open(self, disk_options):
        cache = DiskCache("d", disk_options)

        with pytest.raises(ServiceError):
            await cache.get("k")

    @pytest.mark.asyncio
    async def test_put_get_delete(self, disk_options):
        cache = DiskCache("d", disk_options)
        await cache.initialize()
        try:
            await cache.put("user:1", {"name": "a"})
            assert await cache.get("user:1") == {"name": "a"}
            assert await cache.member("user:1")

            await cache.delete("user:1")
            assert await cache.get("user:1") is None
            assert await cache.health_check()
        finally:
            await cache.shutdown()

        assert not await cache.health_check()

    @pytest.mark.asyncio
    async def test_survives_reopen(self, disk_options):
        cache = DiskCache("d", disk_options)
        await cache.initialize()
        await cache.put("k", "v")
        await cache.shutdown()

        reopened = DiskCache("d", disk_options)
        await reopened.initialize()
        try:
            assert await reopened.get("k") == "v"
        finally:
            await reopened.shutdown()

    @pytest.mark.asyncio
    async def test_table_queries(self, disk_options):
        cache = DiskCache("d", disk_options)
        await cache.initialize()
        try:
            await cache.insert_raw([("k1", "v"), ("k2", "v"), ("k3", "w")])

            assert sorted(await cache.match_object(("_", "v"))) == [("k1", "v"), ("k2", "v")]
            assert await cache.select([(("$1", "w"), [], ["$$"])]) == [["k3"]]
            assert await cache.select_replace([(("k3", "_"), [], [("k3", "x")])]) == 1
            assert await cache.get("k3") == "x"
            assert await cache.select_delete([(("_", "v"), [], [True])]) == 2
            assert await cache.match_delete("_") == 1
            assert await cache.info("size") == 0
        finally:
            await cache.shutdown()

    @pytest.mark.asyncio
    async def test_update_counter(self, disk_options):
        cache = DiskCache("d", disk_options)
        await cache.initialize()
        try:
            assert await cache.update_counter("c", 2) == 2
            assert await cache.update_counter("c", (2, 3)) == 5

            with pytest.raises(BadRequestError):
                await cache.update_counter("c", (1, 1))

            await cache.put("name", "x")
            with pytest.raises(BadRequestError):
                await cache.update_counter("name", 1)
        finally:
            await cache.shutdown()

    @pytest.mark.asyncio
    async def test_rejects_non_tuple_records(self, disk_options):
        cache = DiskCache("d", disk_options)
        await cache.initialize()
        try:
            with pytest.raises(BadRequestError):
                await cache.insert_raw({"not": "a tuple"})
        finally:
            await cache.shutdown()

    @pytest.mark.asyncio
    async def test_info(self, disk_options):
        cache = DiskCache("d", disk_options)
        await cache.initialize()
        try:
            await cache.put("k", 1)
            info = await cache.info()

            assert info["name"] == "d"
            assert info["type"] == "set"
            assert info["size"] == 1
            assert info["directory"].endswith("d")

            with pytest.raises(BadRequestError):
                await cache.info("protection_level")
        finally:
            await cache.shutdown()


# ══════════════════════════════════════════════════════════════════════════════
#  TABLE EXTENSION (memory and disk)
# ══════════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture(params=["memory", "disk"])
async def table(request, tmp_path):
    if request.param == "memory":
        adapter = MemoryCache("test_table")
    else:
        adapter = DiskCache("test_table", DiskOptions(file_path=str(tmp_path)))

    await adapter.initialize()
    yield adapter
    await adapter.shutdown()


class TestTableExtension:

    @pytest.mark.asyncio
    async def test_match_object(self, table):
        await table.insert_raw(("key1", "SomeValue"))
        await table.insert_raw(("key2", "SomeValue"))

        result = await table.match_object(("_", "SomeValue"))
        assert sorted(result) == [("key1", "SomeValue"), ("key2", "SomeValue")]
        assert await table.match_object(("key1", "_")) == [("key1", "SomeValue")]

    @pytest.mark.asyncio
    async def test_member(self, table):
        await table.insert_raw(("test_key", "test_value"))

        assert await table.member("test_key")
        assert not await table.member("nonexistent_key")

    @pytest.mark.asyncio
    async def test_select(self, table):
        await table.insert_raw([("key1", "value1"), ("key2", "value2")])

        assert await table.select([(("key1", "_"), [], ["$_"])]) == [("key1", "value1")]

    @pytest.mark.asyncio
    async def test_info(self, table):
        info = await table.info()

        assert info["name"] == "test_table"
        assert info["type"] == "set"
        assert await table.info("type") == "set"

    @pytest.mark.asyncio
    async def test_select_delete(self, table):
        await table.insert_raw([("key1", "value1"), ("key2", "value2")])

        assert await table.select_delete([(("key1", "_"), [], [True])]) == 1
        assert not await table.member("key1")
        assert await table.member("key2")

    @pytest.mark.asyncio
    async def test_match_delete(self, table):
        await table.insert_raw([("key1", "value1"), ("key2", "value2")])

        await table.match_delete(("key1", "_"))

        assert not await table.member("key1")
        assert await table.member("key2")

    @pytest.mark.asyncio
    async def test_update_counter(self, table):
        await table.insert_raw(("counter", 0))

        assert await table.update_counter("counter", 1) == 1
        assert await table.match_object(("counter", "_")) == [("counter", 1)]
        assert await table.update_counter("counter", (2, 5)) == 6

    @pytest.mark.asyncio
    async def test_update_counter_rejects_non_numbers(self, table):
        await table.put("name", "x")

        with pytest.raises(BadRequestError):
            await table.update_counter("name", 1)
        with pytest.raises(BadRequestError):
            await table.update_counter("name", (1, 1))

    @pytest.mark.asyncio
    async def test_insert_raw(self, table):
        await table.insert_raw(("raw_key", "raw_value"))
        assert await table.match_object(("raw_key", "_")) == [("raw_key", "raw_value")]

        await table.insert_raw([("raw_key2", "value2"), ("raw_key3", "value3")])
        assert await table.member("raw_key2")
        assert await table.member("raw_key3")

    @pytest.mark.asyncio
    async def test_puts_are_records(self, table):
        await table.put("k", {"a": 1})

        assert await table.match_object(("k", "_")) == [("k", {"a": 1})]
        assert await table.get("k") == {"a": 1}


class TestMemoryTableExpiry:

    @pytest.mark.asyncio
    async def test_expired_records_leave_queries(self):
        cache = MemoryCache("m")

        with patch("sandbox_cache.infrastructure.cache.memory_cache.time.monotonic", return_value=0.0):
            await cache.put("short", 1, ttl=500)
            await cache.insert_raw(("raw", 2))

        with patch("sandbox_cache.infrastructure.cache.memory_cache.time.monotonic", return_value=1.0):
            assert await cache.match_object(("_", "_")) == [("raw", 2)]
            assert not await cache.member("short")
            assert await cache.info("size") == 1
