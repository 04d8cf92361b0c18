"""
Cache Protocol Definition

Defines the interface for all cache adapters.

Every adapter implements ``CacheProtocol``. Adapters backed by a store
with richer semantics additionally implement one or more extension
protocols; the ``Cache`` service checks for them with ``isinstance``.
TTLs are in milliseconds throughout.
"""

from numbers import Number
from typing import Protocol, Optional, Any, Dict, List, Sequence, Tuple, Union, runtime_checkable


@runtime_checkable
class CacheProtocol(Protocol):
    """Protocol for cache adapters."""

    async def initialize(self) -> None:
        """Open connections or create the backing store."""
        ...

    async def shutdown(self) -> None:
        """Release resources held by the adapter."""
        ...

    async def health_check(self) -> bool:
        """Check if the backing store is reachable."""
        ...

    async def get(self, key: Any) -> Optional[Any]:
        """
        Retrieve a value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found
        """
        ...

    async def put(self, key: Any, value: Any, ttl: Optional[int] = None) -> None:
        """
        Store a value in cache.

        Args:
            key: Cache key
            value: Value to cache, None deletes the key
            ttl: Time to live in milliseconds
        """
        ...

    async def delete(self, key: Any) -> None:
        """
        Delete a value from cache.

        Args:
            key: Cache key
        """
        ...


@runtime_checkable
class HashCacheProtocol(Protocol):
    """Field-map operations of the remote key-value backend."""

    async def hash_get(self, key: Any, field: Any) -> Optional[Any]:
        ...

    async def hash_get_all(self, key: Any) -> Dict[Any, Any]:
        ...

    async def hash_get_many(
        self,
        keys_fields: Sequence[Tuple[Any, Sequence[Any]]]
    ) -> List[List[Any]]:
        ...

    async def hash_set(
        self,
        key: Any,
        field: Any,
        value: Any,
        ttl: Optional[int] = None
    ) -> Union[int, List[int]]:
        ...

    async def hash_set_many(
        self,
        keys_fields_values: Sequence[Tuple[Any, Any]],
        ttl: Optional[int] = None
    ) -> List[int]:
        ...

    async def hash_delete(self, key: Any, field: Any) -> int:
        ...

    async def hash_values(self, key: Any) -> List[Any]:
        ...


@runtime_checkable
class JSONCacheProtocol(Protocol):
    """Sub-document operations of the remote JSON backend."""

    async def json_get(self, key: Any, path: Any = None) -> Any:
        ...

    async def json_set(self, key: Any, path: Any, value: Any) -> Optional[bool]:
        ...

    async def json_delete(self, key: Any, path: Any) -> int:
        ...

    async def json_incr(self, key: Any, path: Any, delta: Number = 1) -> Number:
        ...

    async def json_clear(self, key: Any, path: Any) -> int:
        ...

    async def json_array_append(self, key: Any, path: Any, value_or_values: Any) -> int:
        ...


@runtime_checkable
class TableCacheProtocol(Protocol):
    """
    Associative-table operations.

    Bulk operations take an optional ``namespace``: only records stored
    under that namespace are visible, and they are presented with the keys
    the caller wrote.
    """

    async def insert_raw(self, data: Any, namespace: Optional[str] = None) -> None:
        ...

    async def match_object(
        self,
        pattern: Any,
        limit: Optional[int] = None,
        namespace: Optional[str] = None
    ) -> List[tuple]:
        ...

    async def select(
        self,
        match_spec: Sequence[Any],
        limit: Optional[int] = None,
        namespace: Optional[str] = None
    ) -> List[Any]:
        ...

    async def select_delete(
        self,
        match_spec: Sequence[Any],
        namespace: Optional[str] = None
    ) -> int:
        ...

    async def select_replace(
        self,
        match_spec: Sequence[Any],
        namespace: Optional[str] = None
    ) -> int:
        ...

    async def match_delete(self, pattern: Any, namespace: Optional[str] = None) -> int:
        ...

    async def member(self, key: Any) -> bool:
        ...

    async def update_counter(self, key: Any, increment: Any) -> Number:
        ...

    async def info(self, item: Optional[str] = None, namespace: Optional[str] = None) -> Any:
        ...


@runtime_checkable
class CommandCacheProtocol(Protocol):
    """Raw wire-protocol pass-through."""

    async def command(self, command: Sequence[Any]) -> Any:
        ...

    async def pipeline(self, commands: Sequence[Sequence[Any]]) -> List[Any]:
        ...

    async def scan(self, match: Optional[str] = None, count: Optional[int] = None) -> List[Any]:
        ...

    async def hash_scan(
        self,
        key: Any,
        match: Optional[str] = None,
        count: Optional[int] = None
    ) -> List[Tuple[Any, Any]]:
        ...
