"""
Cache Service

The object application code holds. A ``Cache`` picks its adapter once,
at construction, and forwards every call to it. When sandboxing is on,
the sandbox adapter replaces the configured one and every key is
prefixed with the isolation id the current context registered, so
concurrent tests sharing one sandbox never see each other's records.
"""

import logging
from numbers import Number
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ...core.config import Settings, ConfigLoader
from ...core.exceptions import ConfigurationError, UnsupportedError
from ...core.protocols import (
    CacheProtocol,
    CommandCacheProtocol,
    HashCacheProtocol,
    JSONCacheProtocol,
    TableCacheProtocol,
)
from ...infrastructure.cache import ADAPTERS, SandboxCache, create_adapter
from ...infrastructure.sandbox import SandboxRegistry, namespace, registry as default_registry

logger = logging.getLogger(__name__)

_UNSET = object()


class Cache:
    """Cache bound to one adapter."""

    def __init__(
        self,
        name: str,
        adapter: str,
        options: Optional[Any] = None,
        sandbox: bool = False,
        registry: Optional[SandboxRegistry] = None,
        default_ttl: Optional[int] = None
    ):
        """
        Define a cache.

        Args:
            name: Unique cache name
            adapter: Adapter kind (memory, disk, redis or sandbox)
            options: Adapter options, validated here
            sandbox: Replace the adapter with the isolated sandbox
            registry: Registry of isolation ids, defaults to the global one
            default_ttl: TTL in milliseconds for puts that give none

        Raises:
            ConfigurationError: If the name, adapter or options are invalid
        """
        if not isinstance(name, str) or not name:
            raise ConfigurationError(
                "A cache needs a non-empty name",
                config_key="name"
            )

        if adapter not in ADAPTERS:
            raise ConfigurationError(
                f"Unknown cache adapter: {adapter!r}. Must be one of {sorted(ADAPTERS)}",
                config_key="adapter"
            )

        self.name = name
        self.adapter_kind = adapter
        self.sandbox = sandbox
        self.registry = registry or default_registry
        self.default_ttl = default_ttl

        if sandbox:
            logger.debug(f"Cache {name}: sandbox replaces the {adapter} adapter")
            self.adapter: CacheProtocol = SandboxCache(name)
        else:
            self.adapter = create_adapter(name, adapter, options)

    @classmethod
    def from_settings(
        cls,
        name: str,
        adapter: str,
        options: Optional[Dict[str, Any]] = None,
        settings: Optional[Settings] = None,
        registry: Optional[SandboxRegistry] = None
    ) -> "Cache":
        """
        Define a cache using loaded settings for defaults.

        ``CACHE_SANDBOX`` switches every cache to the sandbox, and the
        disk path and redis url fill in options left unset.
        """
        settings = settings or ConfigLoader.load_config()
        options = dict(options or {})

        if adapter == "disk":
            options.setdefault("file_path", settings.cache.disk_path)
        elif adapter == "redis":
            options.setdefault("uri", settings.get_redis_url())

        return cls(
            name,
            adapter,
            options,
            sandbox=settings.cache.sandbox,
            registry=registry,
            default_ttl=settings.cache.default_ttl_ms
        )

    # Lifecycle

    async def start(self) -> None:
        await self.adapter.initialize()
        logger.info(f"Cache {self.name} started with the {self.adapter.kind} adapter")

    async def close(self) -> None:
        await self.adapter.shutdown()
        logger.info(f"Cache {self.name} closed")

    async def health_check(self) -> bool:
        return await self.adapter.health_check()

    async def __aenter__(self) -> "Cache":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def supports(self, protocol: type) -> bool:
        """Check whether the active adapter implements an extension protocol."""
        return isinstance(self.adapter, protocol)

    # Uniform contract

    async def get(self, key: Any) -> Optional[Any]:
        return await self.adapter.get(self._key(key))

    async def put(self, key: Any, value: Any, ttl: Optional[int] = None) -> None:
        await self.adapter.put(self._key(key), value, ttl or self.default_ttl)

    async def delete(self, key: Any) -> None:
        await self.adapter.delete(self._key(key))

    # Hash extension

    async def hash_get(self, key: Any, field: Any) -> Optional[Any]:
        adapter = self._extension(HashCacheProtocol, "hash_get")
        return await adapter.hash_get(self._key(key), field)

    async def hash_get_all(self, key: Any) -> Dict[Any, Any]:
        adapter = self._extension(HashCacheProtocol, "hash_get_all")
        return await adapter.hash_get_all(self._key(key))

    async def hash_get_many(
        self,
        keys_fields: Sequence[Tuple[Any, Sequence[Any]]]
    ) -> List[List[Any]]:
        adapter = self._extension(HashCacheProtocol, "hash_get_many")
        return await adapter.hash_get_many(
            [(self._key(key), fields) for key, fields in keys_fields]
        )

    async def hash_set(
        self,
        key: Any,
        field: Any,
        value: Any,
        ttl: Optional[int] = None
    ) -> Any:
        adapter = self._extension(HashCacheProtocol, "hash_set")
        return await adapter.hash_set(self._key(key), field, value, ttl)

    async def hash_set_many(
        self,
        keys_fields_values: Sequence[Tuple[Any, Any]],
        ttl: Optional[int] = None
    ) -> List[int]:
        adapter = self._extension(HashCacheProtocol, "hash_set_many")
        return await adapter.hash_set_many(
            [(self._key(key), fields_values) for key, fields_values in keys_fields_values],
            ttl
        )

    async def hash_delete(self, key: Any, field: Any) -> int:
        adapter = self._extension(HashCacheProtocol, "hash_delete")
        return await adapter.hash_delete(self._key(key), field)

    async def hash_values(self, key: Any) -> List[Any]:
        adapter = self._extension(HashCacheProtocol, "hash_values")
        return await adapter.hash_values(self._key(key))

    # JSON extension

    async def json_get(self, key: Any, path: Any = None) -> Any:
        adapter = self._extension(JSONCacheProtocol, "json_get")
        return await adapter.json_get(self._key(key), path)

    async def json_set(self, key: Any, path_or_value: Any, value: Any = _UNSET) -> Optional[bool]:
        """
        Write a whole document, or a value at a path.

        ``json_set(key, doc)`` writes the root; ``json_set(key, path, value)``
        writes below it.
        """
        adapter = self._extension(JSONCacheProtocol, "json_set")
        if value is _UNSET:
            path, value = None, path_or_value
        else:
            path = path_or_value
        return await adapter.json_set(self._key(key), path, value)

    async def json_delete(self, key: Any, path: Any) -> int:
        adapter = self._extension(JSONCacheProtocol, "json_delete")
        return await adapter.json_delete(self._key(key), path)

    async def json_incr(self, key: Any, path: Any, delta: Number = 1) -> Number:
        adapter = self._extension(JSONCacheProtocol, "json_incr")
        return await adapter.json_incr(self._key(key), path, delta)

    async def json_clear(self, key: Any, path: Any) -> int:
        adapter = self._extension(JSONCacheProtocol, "json_clear")
        return await adapter.json_clear(self._key(key), path)

    async def json_array_append(self, key: Any, path: Any, value_or_values: Any) -> int:
        adapter = self._extension(JSONCacheProtocol, "json_array_append")
        return await adapter.json_array_append(self._key(key), path, value_or_values)

    # Table extension

    async def insert_raw(self, data: Any) -> None:
        adapter = self._extension(TableCacheProtocol, "insert_raw")
        await adapter.insert_raw(data, namespace=self._namespace())

    async def match_object(self, pattern: Any, limit: Optional[int] = None) -> List[tuple]:
        adapter = self._extension(TableCacheProtocol, "match_object")
        return await adapter.match_object(pattern, limit, namespace=self._namespace())

    async def select(self, match_spec: Sequence[Any], limit: Optional[int] = None) -> List[Any]:
        adapter = self._extension(TableCacheProtocol, "select")
        return await adapter.select(match_spec, limit, namespace=self._namespace())

    async def select_delete(self, match_spec: Sequence[Any]) -> int:
        adapter = self._extension(TableCacheProtocol, "select_delete")
        return await adapter.select_delete(match_spec, namespace=self._namespace())

    async def select_replace(self, match_spec: Sequence[Any]) -> int:
        adapter = self._extension(TableCacheProtocol, "select_replace")
        return await adapter.select_replace(match_spec, namespace=self._namespace())

    async def match_delete(self, pattern: Any) -> int:
        adapter = self._extension(TableCacheProtocol, "match_delete")
        return await adapter.match_delete(pattern, namespace=self._namespace())

    async def member(self, key: Any) -> bool:
        adapter = self._extension(TableCacheProtocol, "member")
        return await adapter.member(self._key(key))

    async def update_counter(self, key: Any, increment: Any) -> Number:
        adapter = self._extension(TableCacheProtocol, "update_counter")
        return await adapter.update_counter(self._key(key), increment)

    async def info(self, item: Optional[str] = None) -> Any:
        adapter = self._extension(TableCacheProtocol, "info")
        return await adapter.info(item, namespace=self._namespace())

    # Raw command extension

    async def command(self, command: Sequence[Any]) -> Any:
        adapter = self._extension(CommandCacheProtocol, "command")
        return await adapter.command(command)

    async def pipeline(self, commands: Sequence[Sequence[Any]]) -> List[Any]:
        adapter = self._extension(CommandCacheProtocol, "pipeline")
        return await adapter.pipeline(commands)

    async def scan(self, match: Optional[str] = None, count: Optional[int] = None) -> List[Any]:
        adapter = self._extension(CommandCacheProtocol, "scan")
        return await adapter.scan(match, count)

    async def hash_scan(
        self,
        key: Any,
        match: Optional[str] = None,
        count: Optional[int] = None
    ) -> List[Tuple[Any, Any]]:
        adapter = self._extension(CommandCacheProtocol, "hash_scan")
        return await adapter.hash_scan(self._key(key), match, count)

    # Internal helpers

    def _namespace(self) -> Optional[str]:
        if not self.sandbox:
            return None
        return self.registry.find(self.name)

    def _key(self, key: Any) -> Any:
        return namespace.key_for(self._namespace(), key)

    def _extension(self, protocol: type, operation: str):
        if not isinstance(self.adapter, protocol):
            raise UnsupportedError(operation, adapter=self.adapter.kind)
        return self.adapter

    def __repr__(self) -> str:
        return f"Cache(name={self.name!r}, adapter={self.adapter.kind!r})"
