"""
Memory Cache Implementation

Lightweight in-process table. Records are tuples whose first element is
the key, with an optional expiry per key, and the table extension runs
the match engine over the live records.
"""

import logging
import time
from numbers import Number
from typing import Optional, Any, Dict, List, Sequence

from ...core.config import MemoryOptions
from ...core.exceptions import BadRequestError
from ...domain.matching import engine as match_engine
from ..sandbox import namespace as ns

logger = logging.getLogger(__name__)


class MemoryCache:
    """In-memory cache adapter."""

    kind = "memory"

    def __init__(self, name: str, options: Optional[MemoryOptions] = None):
        """
        Initialize memory cache.

        Args:
            name: Cache name
            options: Adapter options
        """
        self.name = name
        self.options = options or MemoryOptions()
        self._table: Dict[Any, tuple] = {}
        self._expires_at: Dict[Any, float] = {}
        self._initialized = False
        self._stats = {
            "hits": 0,
            "misses": 0,
            "puts": 0,
            "deletes": 0
        }

    async def initialize(self) -> None:
        """Initialize the cache."""
        self._initialized = True
        logger.info(f"Memory cache {self.name} initialized")

    async def shutdown(self) -> None:
        """Shutdown the cache."""
        self._table.clear()
        self._expires_at.clear()
        self._initialized = False
        logger.info(f"Memory cache {self.name} shutdown")

    async def health_check(self) -> bool:
        """Check if cache is healthy."""
        return self._initialized

    async def get(self, key: Any) -> Optional[Any]:
        """Retrieve a value from cache."""
        record = self._live(key)

        if record is None:
            self._stats["misses"] += 1
            return None

        self._stats["hits"] += 1
        # Raw inserts may hold records of any arity
        return record[1] if len(record) == 2 else record

    async def put(self, key: Any, value: Any, ttl: Optional[int] = None) -> None:
        """Store a value in cache."""
        if value is None:
            await self.delete(key)
            return

        self._set(key, (value,), ttl or self.options.default_ttl)
        self._stats["puts"] += 1

    async def delete(self, key: Any) -> None:
        """Delete a value from cache."""
        self._expires_at.pop(key, None)
        if self._table.pop(key, None) is not None:
            self._stats["deletes"] += 1

    # Table operations

    async def insert_raw(self, data: Any, namespace: Optional[str] = None) -> None:
        """Insert one raw record or a list of them, without expiry."""
        records = data if isinstance(data, list) else [data]
        for record in records:
            if not isinstance(record, tuple) or not record:
                raise BadRequestError(
                    f"Records must be non-empty tuples, got {record!r}",
                    details={"record": repr(record)}
                )

        for record in records:
            self._set(ns.key_for(namespace, record[0]), record[1:])

    async def member(self, key: Any) -> bool:
        return self._live(key) is not None

    async def match_object(
        self,
        pattern: Any,
        limit: Optional[int] = None,
        namespace: Optional[str] = None
    ) -> List[tuple]:
        return match_engine.match_object(self._records(namespace), pattern, limit)

    async def select(
        self,
        match_spec: Sequence[Any],
        limit: Optional[int] = None,
        namespace: Optional[str] = None
    ) -> List[Any]:
        return match_engine.select(self._records(namespace), match_spec, limit)

    async def select_delete(
        self,
        match_spec: Sequence[Any],
        namespace: Optional[str] = None
    ) -> int:
        keys = match_engine.select_delete_keys(self._records(namespace), match_spec)
        for key in keys:
            await self.delete(ns.key_for(namespace, key))
        return len(keys)

    async def select_replace(
        self,
        match_spec: Sequence[Any],
        namespace: Optional[str] = None
    ) -> int:
        replacements = match_engine.select_replacements(self._records(namespace), match_spec)
        for record in replacements:
            self._table[ns.key_for(namespace, record[0])] = record
        return len(replacements)

    async def match_delete(self, pattern: Any, namespace: Optional[str] = None) -> int:
        keys = match_engine.match_delete_keys(self._records(namespace), pattern)
        for key in keys:
            await self.delete(ns.key_for(namespace, key))
        return len(keys)

    async def update_counter(self, key: Any, increment: Any) -> Number:
        """
        Add to the number at a record position.

        ``increment`` is a delta for position 2 or a ``(position, delta)``
        pair. An absent key counts from 0.
        """
        if isinstance(increment, tuple):
            position, delta = increment
        else:
            position, delta = 2, increment

        if not isinstance(position, int) or position < 2:
            raise BadRequestError(
                f"Counter position must be an integer of at least 2, got {position!r}",
                details={"position": repr(position)}
            )

        record = self._live(key)
        if record is None:
            record = (ns.raw_key(key),) + (0,) * (position - 1)

        if len(record) < position:
            raise BadRequestError(
                f"Record for {key!r} has no position {position}",
                details={"key": str(key), "position": position}
            )

        current = record[position - 1]
        if not isinstance(current, Number) or isinstance(current, bool):
            raise BadRequestError(
                f"Counter at position {position} of {key!r} is not a number",
                details={"key": str(key), "position": position}
            )

        value = current + delta
        # Keeps any expiry already set on the key
        self._table[key] = record[:position - 1] + (value,) + record[position:]
        return value

    async def info(self, item: Optional[str] = None, namespace: Optional[str] = None) -> Any:
        """Table metadata, or a single metadata item."""
        metadata = {
            "name": self.name,
            "type": "set",
            "keypos": 1,
            "protection": "public",
            "size": len(self._records(namespace)),
        }

        if item is None:
            return metadata

        if item not in metadata:
            raise BadRequestError(
                f"Unknown info item: {item!r}",
                details={"item": item}
            )
        return metadata[item]

    async def get_stats(self) -> dict:
        """Get cache statistics."""
        total = self._stats["hits"] + self._stats["misses"]
        hit_rate = (
            (self._stats["hits"] / total * 100) if total > 0 else 0.0
        )

        return {
            "status": "active" if self._initialized else "inactive",
            "type": self.kind,
            "size": len(self._table),
            "hits": self._stats["hits"],
            "misses": self._stats["misses"],
            "puts": self._stats["puts"],
            "deletes": self._stats["deletes"],
            "hit_rate": hit_rate,
        }

    def _set(self, key: Any, fields: tuple, ttl: Optional[int] = None) -> None:
        self._table[key] = (ns.raw_key(key),) + fields
        if ttl:
            self._expires_at[key] = time.monotonic() + ttl / 1000
        else:
            self._expires_at.pop(key, None)

    def _live(self, key: Any) -> Optional[tuple]:
        expires_at = self._expires_at.get(key)
        if expires_at is not None and time.monotonic() > expires_at:
            self._table.pop(key, None)
            del self._expires_at[key]
            return None
        return self._table.get(key)

    def _records(self, namespace: Optional[str]) -> List[tuple]:
        now = time.monotonic()
        for key in [k for k, at in self._expires_at.items() if now > at]:
            self._table.pop(key, None)
            del self._expires_at[key]

        return [
            record
            for key, record in self._table.items()
            if ns.owns(namespace, key)
        ]
