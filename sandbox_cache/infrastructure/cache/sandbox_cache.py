"""
Sandbox Cache Implementation

In-memory stand-in for every other adapter, used in tests. It answers
the uniform contract plus the hash, JSON and table extensions in the
same shapes the real backends return, backed by a ``RecordStore``.
"""

import logging
from numbers import Number
from typing import Optional, Any, Dict, List, Sequence, Tuple

from ...core.config import SandboxOptions
from ...core.exceptions import UnsupportedError
from ..store import RecordStore

logger = logging.getLogger(__name__)


class SandboxCache:
    """Sandbox adapter."""

    kind = "sandbox"

    def __init__(self, name: str, options: Optional[SandboxOptions] = None):
        self.name = name
        self.options = options or SandboxOptions()
        self.store = RecordStore(name)
        self._initialized = False

    async def initialize(self) -> None:
        self._initialized = True
        logger.info(f"Sandbox cache {self.name} started")

    async def shutdown(self) -> None:
        removed = await self.store.clear()
        self._initialized = False
        logger.info(f"Sandbox cache {self.name} stopped, dropped {removed} records")

    async def health_check(self) -> bool:
        return self._initialized

    async def get(self, key: Any) -> Optional[Any]:
        return await self.store.get(key)

    async def put(self, key: Any, value: Any, ttl: Optional[int] = None) -> None:
        # Entries never expire in the sandbox
        await self.store.put(key, value)

    async def delete(self, key: Any) -> None:
        await self.store.delete(key)

    # Hash operations

    async def hash_get(self, key: Any, field: Any) -> Optional[Any]:
        return await self.store.hash_get(key, field)

    async def hash_get_all(self, key: Any) -> Dict[Any, Any]:
        return await self.store.hash_get_all(key)

    async def hash_get_many(
        self,
        keys_fields: Sequence[Tuple[Any, Sequence[Any]]]
    ) -> List[List[Any]]:
        return await self.store.hash_get_many(keys_fields)

    async def hash_set(
        self,
        key: Any,
        field: Any,
        value: Any,
        ttl: Optional[int] = None
    ) -> Any:
        return await self.store.hash_set(key, field, value, ttl)

    async def hash_set_many(
        self,
        keys_fields_values: Sequence[Tuple[Any, Any]],
        ttl: Optional[int] = None
    ) -> List[int]:
        return await self.store.hash_set_many(keys_fields_values, ttl)

    async def hash_delete(self, key: Any, field: Any) -> int:
        return await self.store.hash_delete(key, field)

    async def hash_values(self, key: Any) -> List[Any]:
        return await self.store.hash_values(key)

    # JSON operations

    async def json_get(self, key: Any, path: Any = None) -> Any:
        return await self.store.json_get(key, path)

    async def json_set(self, key: Any, path: Any, value: Any) -> Optional[bool]:
        return await self.store.json_set(key, path, value)

    async def json_delete(self, key: Any, path: Any) -> int:
        return await self.store.json_delete(key, path)

    async def json_incr(self, key: Any, path: Any, delta: Number = 1) -> Number:
        return await self.store.json_incr(key, path, delta)

    async def json_clear(self, key: Any, path: Any) -> int:
        return await self.store.json_clear(key, path)

    async def json_array_append(self, key: Any, path: Any, value_or_values: Any) -> int:
        return await self.store.json_array_append(key, path, value_or_values)

    # Table operations

    async def insert_raw(self, data: Any, namespace: Optional[str] = None) -> None:
        await self.store.insert_raw(data, namespace)

    async def match_object(
        self,
        pattern: Any,
        limit: Optional[int] = None,
        namespace: Optional[str] = None
    ) -> List[tuple]:
        return await self.store.match_object(pattern, limit, namespace)

    async def select(
        self,
        match_spec: Sequence[Any],
        limit: Optional[int] = None,
        namespace: Optional[str] = None
    ) -> List[Any]:
        return await self.store.select(match_spec, limit, namespace)

    async def select_delete(
        self,
        match_spec: Sequence[Any],
        namespace: Optional[str] = None
    ) -> int:
        return await self.store.select_delete(match_spec, namespace)

    async def select_replace(
        self,
        match_spec: Sequence[Any],
        namespace: Optional[str] = None
    ) -> int:
        return await self.store.select_replace(match_spec, namespace)

    async def match_delete(self, pattern: Any, namespace: Optional[str] = None) -> int:
        return await self.store.match_delete(pattern, namespace)

    async def member(self, key: Any) -> bool:
        return await self.store.member(key)

    async def update_counter(self, key: Any, increment: Any) -> Number:
        return await self.store.update_counter(key, increment)

    async def info(self, item: Optional[str] = None, namespace: Optional[str] = None) -> Any:
        return await self.store.info(item, namespace)

    # Raw commands are not emulated

    async def command(self, command: Sequence[Any]) -> Any:
        raise UnsupportedError("command", adapter=self.kind)

    async def pipeline(self, commands: Sequence[Sequence[Any]]) -> List[Any]:
        raise UnsupportedError("pipeline", adapter=self.kind)

    async def scan(self, match: Optional[str] = None, count: Optional[int] = None) -> List[Any]:
        raise UnsupportedError("scan", adapter=self.kind)

    async def hash_scan(
        self,
        key: Any,
        match: Optional[str] = None,
        count: Optional[int] = None
    ) -> List[Tuple[Any, Any]]:
        raise UnsupportedError("hash_scan", adapter=self.kind)
