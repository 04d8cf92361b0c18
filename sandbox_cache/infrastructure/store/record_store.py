"""
Record Store

Single-owner state for one sandbox cache.

Records are kept ETS-style as tuples whose first element is the key, so
table queries see exactly what was stored. ``put(k, v)`` stores
``(k, v)``; hash operations keep a dict of fields at position 2 and JSON
operations keep a document there. Namespaced keys index the table, but
the record itself holds the key as the caller wrote it.

Every public coroutine holds the store's lock for its whole body, so the
read-modify-write sequences of the match and path engines never observe
a half-written table.
"""

import asyncio
import logging
from numbers import Number
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ...core.exceptions import BadRequestError, InternalError
from ...domain.documents import MISSING, engine as path_engine
from ...domain.matching import engine as match_engine
from ..sandbox import namespace as ns

logger = logging.getLogger(__name__)

WRONG_TYPE = "WRONGTYPE Operation against a key holding the wrong kind of value"

Record = Tuple[Any, ...]
FieldValues = Union[Dict[Any, Any], Sequence[Tuple[Any, Any]]]


class RecordStore:
    """Lock-guarded table of records."""

    def __init__(self, name: str):
        """
        Initialize record store.

        Args:
            name: Name of the owning cache
        """
        self.name = name
        self._table: Dict[Any, Record] = {}
        self._lock = asyncio.Lock()

    # Scalar operations

    async def get(self, key: Any) -> Any:
        """Retrieve the value stored under a key."""
        async with self._lock:
            record = self._table.get(key)
            if record is None:
                return None
            return record[1] if len(record) == 2 else record

    async def put(self, key: Any, value: Any) -> None:
        """Store a value. A ``None`` value deletes the key."""
        async with self._lock:
            if value is None:
                self._table.pop(key, None)
            else:
                self._write(key, value)

    async def delete(self, key: Any) -> None:
        """Delete a key."""
        async with self._lock:
            self._table.pop(key, None)

    async def clear(self, namespace: Optional[str] = None) -> int:
        """Remove every record, or every record of a namespace."""
        async with self._lock:
            keys = [k for k in self._table if ns.owns(namespace, k)]
            for key in keys:
                del self._table[key]
            return len(keys)

    # Hash operations

    async def hash_get(self, key: Any, field: Any) -> Any:
        async with self._lock:
            return self._fields(key).get(field)

    async def hash_get_all(self, key: Any) -> Dict[Any, Any]:
        async with self._lock:
            return dict(self._fields(key))

    async def hash_get_many(
        self,
        keys_fields: Iterable[Tuple[Any, Sequence[Any]]]
    ) -> List[List[Any]]:
        """Read several fields of several keys, one list per key."""
        async with self._lock:
            return [
                [self._fields(key).get(field) for field in fields]
                for key, fields in keys_fields
            ]

    async def hash_values(self, key: Any) -> List[Any]:
        async with self._lock:
            return list(self._fields(key).values())

    async def hash_set(
        self,
        key: Any,
        field: Any,
        value: Any,
        ttl: Optional[int] = None
    ) -> Union[int, List[int]]:
        """
        Set one field.

        Returns:
            Number of new fields, or ``[new, 1]`` when a TTL is given
        """
        async with self._lock:
            added = self._put_fields(key, [(field, value)])

        if ttl:
            return [added, 1]
        return added

    async def hash_set_many(
        self,
        keys_fields_values: Iterable[Tuple[Any, FieldValues]],
        ttl: Optional[int] = None
    ) -> List[int]:
        """
        Set fields on several keys.

        The reply mirrors the remote backend's pipeline: one count of new
        fields per key, followed by one expiry acknowledgement per key
        when a TTL is given. Field maps are never expired here.
        """
        groups = list(keys_fields_values)

        async with self._lock:
            for key, _ in groups:
                self._fields(key)

            counts = [
                self._put_fields(key, fields_values)
                for key, fields_values in groups
            ]

        if ttl:
            logger.debug(f"Acknowledging TTL {ttl} for {len(groups)} hashes without expiry")
            return counts + [1] * len(groups)
        return counts

    async def hash_delete(self, key: Any, field: Any) -> int:
        """Delete a field. Removing the last field removes the key."""
        async with self._lock:
            fields = self._fields(key)
            if field not in fields:
                return 0

            fields = dict(fields)
            del fields[field]
            if fields:
                self._write(key, fields)
            else:
                del self._table[key]
            return 1

    # JSON document operations

    async def json_get(self, key: Any, path: Any = None) -> Any:
        async with self._lock:
            return path_engine.get(self._document(key), path)

    async def json_set(self, key: Any, path: Any, value: Any) -> Optional[bool]:
        """
        Write a document or a path inside one.

        Returns:
            True when written under an existing parent, None when the
            parent had to be created
        """
        async with self._lock:
            document, status = path_engine.set(self._document(key), path, value)
            self._write(key, document)
            return status

    async def json_incr(self, key: Any, path: Any, delta: Number = 1) -> Number:
        async with self._lock:
            document, value = path_engine.increment(self._document(key), path, delta)
            self._write(key, document)
            return value

    async def json_clear(self, key: Any, path: Any) -> int:
        async with self._lock:
            document, cleared = path_engine.clear(self._document(key), path)
            if cleared:
                self._write(key, document)
            return cleared

    async def json_delete(self, key: Any, path: Any) -> int:
        async with self._lock:
            document, removed = path_engine.delete(self._document(key), path)
            if document is MISSING:
                self._table.pop(key, None)
            elif removed:
                self._write(key, document)
            return removed

    async def json_array_append(self, key: Any, path: Any, value_or_values: Any) -> int:
        """Append one value, or each value of a list, to an array."""
        values = value_or_values if isinstance(value_or_values, list) else [value_or_values]

        async with self._lock:
            document, length = path_engine.append(self._document(key), path, values)
            self._write(key, document)
            return length

    # Table operations

    async def insert_raw(
        self,
        data: Union[Record, List[Record]],
        namespace: Optional[str] = None
    ) -> None:
        """Insert one raw record or a list of them."""
        records = data if isinstance(data, list) else [data]
        for record in records:
            if not isinstance(record, tuple) or not record:
                raise BadRequestError(
                    f"Records must be non-empty tuples, got {record!r}",
                    details={"record": repr(record)}
                )

        async with self._lock:
            for record in records:
                self._write(ns.key_for(namespace, record[0]), *record[1:])

    async def member(self, key: Any) -> bool:
        async with self._lock:
            return key in self._table

    async def match_object(
        self,
        pattern: Any,
        limit: Optional[int] = None,
        namespace: Optional[str] = None
    ) -> List[Record]:
        async with self._lock:
            return match_engine.match_object(self._records(namespace), pattern, limit)

    async def select(
        self,
        match_spec: Sequence[Any],
        limit: Optional[int] = None,
        namespace: Optional[str] = None
    ) -> List[Any]:
        async with self._lock:
            return match_engine.select(self._records(namespace), match_spec, limit)

    async def select_delete(
        self,
        match_spec: Sequence[Any],
        namespace: Optional[str] = None
    ) -> int:
        """Delete records whose projection is truthy and count them."""
        async with self._lock:
            keys = match_engine.select_delete_keys(self._records(namespace), match_spec)
            for key in keys:
                del self._table[ns.key_for(namespace, key)]
            return len(keys)

    async def select_replace(
        self,
        match_spec: Sequence[Any],
        namespace: Optional[str] = None
    ) -> int:
        """Replace matched records with their projections and count them."""
        async with self._lock:
            replacements = match_engine.select_replacements(
                self._records(namespace), match_spec
            )
            for record in replacements:
                self._write(ns.key_for(namespace, record[0]), *record[1:])
            return len(replacements)

    async def match_delete(self, pattern: Any, namespace: Optional[str] = None) -> int:
        """Delete records matching a pattern and count them."""
        async with self._lock:
            keys = match_engine.match_delete_keys(self._records(namespace), pattern)
            for key in keys:
                del self._table[ns.key_for(namespace, key)]
            return len(keys)

    async def update_counter(self, key: Any, increment: Union[int, Tuple[int, int]]) -> Number:
        """
        Add to the number at a record position.

        Args:
            key: Record key
            increment: Delta for position 2, or ``(position, delta)``

        Returns:
            The new value
        """
        position, delta = self._counter_op(increment)

        async with self._lock:
            record = self._table.get(key)
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
                    f"Position {position} of {key!r} is not a number",
                    details={"key": str(key), "position": position}
                )

            value = current + delta
            self._table[key] = record[:position - 1] + (value,) + record[position:]
            return value

    async def info(self, item: Optional[str] = None, namespace: Optional[str] = None) -> Any:
        """Table metadata, or a single metadata item."""
        async with self._lock:
            size = sum(1 for k in self._table if ns.owns(namespace, k))

        metadata = {
            "name": self.name,
            "type": "set",
            "keypos": 1,
            "protection": "public",
            "size": size,
        }

        if item is None:
            return metadata

        if item not in metadata:
            raise BadRequestError(
                f"Unknown info item: {item!r}",
                details={"item": item}
            )
        return metadata[item]

    # Internal helpers (lock must be held)

    def _records(self, namespace: Optional[str]) -> List[Record]:
        if namespace is None:
            return list(self._table.values())

        return [
            record
            for key, record in self._table.items()
            if ns.owns(namespace, key)
        ]

    def _write(self, key: Any, *fields: Any) -> None:
        # Records carry the caller's key; the table index carries the namespace
        self._table[key] = (ns.raw_key(key),) + fields

    def _fields(self, key: Any) -> Dict[Any, Any]:
        record = self._table.get(key)
        if record is None:
            return {}

        if len(record) != 2 or not isinstance(record[1], dict):
            raise InternalError(WRONG_TYPE, key=key)
        return record[1]

    def _put_fields(self, key: Any, fields_values: FieldValues) -> int:
        if isinstance(fields_values, dict):
            fields_values = list(fields_values.items())

        fields = dict(self._fields(key))
        added = 0
        for field, value in fields_values:
            if field not in fields:
                added += 1
            fields[field] = value

        self._write(key, fields)
        return added

    def _document(self, key: Any) -> Any:
        record = self._table.get(key)
        if record is None:
            return MISSING
        return record[1] if len(record) == 2 else record

    @staticmethod
    def _counter_op(increment: Union[int, Tuple[int, int]]) -> Tuple[int, Number]:
        if isinstance(increment, tuple):
            if len(increment) != 2:
                raise BadRequestError(
                    f"Counter update must be (position, delta), got {increment!r}",
                    details={"increment": repr(increment)}
                )
            position, delta = increment
        else:
            position, delta = 2, increment

        if not isinstance(position, int) or position < 2:
            raise BadRequestError(
                f"Counter position must be an integer of at least 2, got {position!r}",
                details={"position": repr(position)}
            )
        return position, delta
