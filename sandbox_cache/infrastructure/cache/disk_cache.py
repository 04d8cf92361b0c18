"""
Disk Cache Implementation

Disk-backed table adapter built on diskcache.

Records are stored as tuples whose first element is the key, so the
table extension sees the same shape as the sandbox. diskcache is
synchronous; every call is pushed to a worker thread, and multi-step
updates run inside a diskcache transaction.
"""

import asyncio
import logging
import os
from numbers import Number
from typing import Optional, Any, Dict, List, Sequence

from diskcache import Cache as DiskTable
from diskcache.core import ENOVAL

from ...core.config import DiskOptions
from ...core.exceptions import BadRequestError, ServiceError
from ...domain.matching import engine as match_engine
from ..sandbox import namespace as ns

logger = logging.getLogger(__name__)


class DiskCache:
    """Disk-backed table adapter."""

    kind = "disk"

    def __init__(self, name: str, options: Optional[DiskOptions] = None):
        """
        Initialize disk cache.

        Args:
            name: Cache name, also the table's directory name
            options: Adapter options
        """
        self.name = name
        self.options = options or DiskOptions()
        self.directory = os.path.join(self.options.file_path, name)
        self._table: Optional[DiskTable] = None

    async def initialize(self) -> None:
        """Open the disk table."""
        try:
            self._table = await asyncio.to_thread(
                DiskTable,
                self.directory,
                size_limit=self.options.size_limit,
                eviction_policy="none",
            )
            logger.info(f"Disk cache {self.name} opened at {self.directory}")

        except OSError as e:
            logger.error(f"Failed to open disk cache {self.name}: {e}")
            raise ServiceError(
                f"Disk table initialization failed: {str(e)}",
                service_name="DiskCache",
                operation="initialize",
                original_exception=e
            ) from e

    async def shutdown(self) -> None:
        """Close the disk table."""
        if self._table is not None:
            await asyncio.to_thread(self._table.close)
            self._table = None
            logger.info(f"Disk cache {self.name} closed")

    async def health_check(self) -> bool:
        return self._table is not None

    async def get(self, key: Any) -> Optional[Any]:
        record = await self._run(self._open().get, key, ENOVAL)
        if record is ENOVAL:
            return None
        # Raw inserts may hold records of any arity
        return record[1] if len(record) == 2 else record

    async def put(self, key: Any, value: Any, ttl: Optional[int] = None) -> None:
        if value is None:
            await self.delete(key)
            return

        expire = ttl / 1000 if ttl else None
        await self._run(self._open().set, key, (ns.raw_key(key), value), expire)

    async def delete(self, key: Any) -> None:
        await self._run(self._open().delete, key)

    async def insert_raw(self, data: Any, namespace: Optional[str] = None) -> None:
        """Insert one raw record or a list of them."""
        records = data if isinstance(data, list) else [data]
        for record in records:
            if not isinstance(record, tuple) or not record:
                raise BadRequestError(
                    f"Records must be non-empty tuples, got {record!r}",
                    details={"record": repr(record)}
                )

        def insert():
            with self._table.transact():
                for record in records:
                    self._set(ns.key_for(namespace, record[0]), record[1:])

        await self._run(insert)

    async def member(self, key: Any) -> bool:
        return await self._run(self._open().__contains__, key)

    async def match_object(
        self,
        pattern: Any,
        limit: Optional[int] = None,
        namespace: Optional[str] = None
    ) -> List[tuple]:
        records = await self._run(self._records, namespace)
        return match_engine.match_object(records, pattern, limit)

    async def select(
        self,
        match_spec: Sequence[Any],
        limit: Optional[int] = None,
        namespace: Optional[str] = None
    ) -> List[Any]:
        records = await self._run(self._records, namespace)
        return match_engine.select(records, match_spec, limit)

    async def select_delete(
        self,
        match_spec: Sequence[Any],
        namespace: Optional[str] = None
    ) -> int:
        def select_delete():
            with self._table.transact():
                keys = match_engine.select_delete_keys(self._records(namespace), match_spec)
                for key in keys:
                    self._table.delete(ns.key_for(namespace, key))
                return len(keys)

        return await self._run(select_delete)

    async def select_replace(
        self,
        match_spec: Sequence[Any],
        namespace: Optional[str] = None
    ) -> int:
        def select_replace():
            with self._table.transact():
                replacements = match_engine.select_replacements(
                    self._records(namespace), match_spec
                )
                for record in replacements:
                    self._set(ns.key_for(namespace, record[0]), record[1:])
                return len(replacements)

        return await self._run(select_replace)

    async def match_delete(self, pattern: Any, namespace: Optional[str] = None) -> int:
        def match_delete():
            with self._table.transact():
                keys = match_engine.match_delete_keys(self._records(namespace), pattern)
                for key in keys:
                    self._table.delete(ns.key_for(namespace, key))
                return len(keys)

        return await self._run(match_delete)

    async def update_counter(self, key: Any, increment: Any) -> Number:
        if isinstance(increment, tuple):
            position, delta = increment
        else:
            position, delta = 2, increment

        if not isinstance(position, int) or position < 2:
            raise BadRequestError(
                f"Counter position must be an integer of at least 2, got {position!r}",
                details={"position": repr(position)}
            )

        def update_counter():
            with self._table.transact():
                record = self._table.get(key, ENOVAL)
                if record is ENOVAL:
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
                self._table.set(key, record[:position - 1] + (value,) + record[position:])
                return value

        return await self._run(update_counter)

    async def info(self, item: Optional[str] = None, namespace: Optional[str] = None) -> Any:
        def size():
            if namespace is None:
                return len(self._table)
            return sum(1 for k in self._table.iterkeys() if ns.owns(namespace, k))

        metadata: Dict[str, Any] = {
            "name": self.name,
            "type": self.options.type,
            "keypos": 1,
            "size": await self._run(size),
            "file_size": await self._run(self._open().volume),
            "directory": self.directory,
        }

        if item is None:
            return metadata

        if item not in metadata:
            raise BadRequestError(
                f"Unknown info item: {item!r}",
                details={"item": item}
            )
        return metadata[item]

    def _records(self, namespace: Optional[str]) -> List[tuple]:
        records = []
        for key in self._table.iterkeys():
            if not ns.owns(namespace, key):
                continue

            record = self._table.get(key, ENOVAL)
            if record is ENOVAL:
                # Expired between listing and reading
                continue

            records.append(record)
        return records

    def _set(self, key: Any, fields: tuple) -> None:
        # Records carry the caller's key; the table index carries the namespace
        self._table.set(key, (ns.raw_key(key),) + fields)

    def _open(self) -> DiskTable:
        if self._table is None:
            raise ServiceError(
                f"Disk cache {self.name} is not open",
                service_name="DiskCache"
            )
        return self._table

    async def _run(self, func, *args):
        self._open()
        return await asyncio.to_thread(func, *args)
