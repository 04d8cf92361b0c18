"""
Redis Cache Implementation

Remote key-value adapter using Redis, including the hash and RedisJSON
command families.
"""

import logging
import re
from numbers import Number
from typing import Optional, Any, Dict, List, Sequence, Tuple

import redis.asyncio as aioredis
from redis.asyncio import Redis
from redis.exceptions import (
    ConnectionError as RedisConnectionError,
    ResponseError,
    TimeoutError as RedisTimeoutError,
)
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ...core.config import RedisOptions
from ...core.exceptions import BadRequestError, NotFoundError, PathNotFoundError, ServiceError
from ...domain.documents import encoding
from ...domain.documents.path import is_root, serialize as serialize_path

logger = logging.getLogger(__name__)

_MISSING_PATH = re.compile(r"Path '\$(?:\.(?P<path>[^']*))?' does not exist")


class RedisCache:
    """Redis-based cache adapter."""

    kind = "redis"

    def __init__(self, name: str, options: RedisOptions):
        """
        Initialize Redis cache.

        Args:
            name: Cache name, used as the key prefix
            options: Adapter options
        """
        self.name = name
        self.options = options
        self.redis: Optional[Redis] = None
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize the Redis connection."""
        try:
            self.redis = aioredis.from_url(
                self.options.uri,
                decode_responses=True,
                max_connections=self.options.size + self.options.max_overflow,
                health_check_interval=30
            )

            # Test connection
            await self.redis.ping()
            self._initialized = True
            logger.info(f"Redis cache {self.name} initialized successfully")

        except (RedisConnectionError, RedisTimeoutError, OSError) as e:
            logger.error(f"Failed to initialize Redis cache {self.name}: {e}")
            raise ServiceError(
                f"Redis initialization failed: {str(e)}",
                service_name="RedisCache",
                operation="initialize",
                original_exception=e
            ) from e

    async def shutdown(self) -> None:
        """Shutdown the Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self._initialized = False
            logger.info(f"Redis cache {self.name} shutdown")

    async def health_check(self) -> bool:
        """Check if Redis is healthy."""
        if not self._initialized or not self.redis:
            return False

        try:
            await self.redis.ping()
            return True
        except (RedisConnectionError, RedisTimeoutError):
            return False

    async def get(self, key: Any) -> Optional[Any]:
        """Retrieve a value from cache."""
        value = await self.command(["GET", self._make_key(key)])
        return encoding.decode(value)

    async def put(self, key: Any, value: Any, ttl: Optional[int] = None) -> None:
        """Store a value in cache. ``None`` deletes the key."""
        full_key = self._make_key(key)

        if value is None:
            await self.command(["DEL", full_key])
        elif ttl:
            await self.command(["SET", full_key, encoding.encode(value), "PX", ttl])
        else:
            await self.command(["SET", full_key, encoding.encode(value)])

    async def delete(self, key: Any) -> None:
        """Delete a value from cache."""
        await self.command(["DEL", self._make_key(key)])

    # Hash operations

    async def hash_get(self, key: Any, field: Any) -> Optional[Any]:
        value = await self.command(["HGET", self._make_key(key), self._field(field)])
        return encoding.decode(value)

    async def hash_get_all(self, key: Any) -> Dict[Any, Any]:
        data = await self.command(["HGETALL", self._make_key(key)])
        return {field: encoding.decode(value) for field, value in data.items()}

    async def hash_get_many(
        self,
        keys_fields: Sequence[Tuple[Any, Sequence[Any]]]
    ) -> List[List[Any]]:
        keys_fields = list(keys_fields)
        replies = await self.pipeline([
            ["HMGET", self._make_key(key)] + [self._field(f) for f in fields]
            for key, fields in keys_fields
        ])
        return [[encoding.decode(v) for v in reply] for reply in replies]

    async def hash_set(
        self,
        key: Any,
        field: Any,
        value: Any,
        ttl: Optional[int] = None
    ) -> Any:
        full_key = self._make_key(key)
        command = ["HSET", full_key, self._field(field), encoding.encode(value)]

        if not ttl:
            return await self.command(command)
        return await self.pipeline([command, ["PEXPIRE", full_key, ttl]])

    async def hash_set_many(
        self,
        keys_fields_values: Sequence[Tuple[Any, Any]],
        ttl: Optional[int] = None
    ) -> List[int]:
        """Set fields on several hashes in one pipeline."""
        commands = []
        expiries = []

        for key, fields_values in keys_fields_values:
            if isinstance(fields_values, dict):
                fields_values = fields_values.items()

            command = ["HSET", self._make_key(key)]
            for field, value in fields_values:
                command.extend([self._field(field), encoding.encode(value)])
            commands.append(command)

            if ttl:
                expiries.append(["PEXPIRE", self._make_key(key), ttl])

        return await self.pipeline(commands + expiries)

    async def hash_delete(self, key: Any, field: Any) -> int:
        return await self.command(["HDEL", self._make_key(key), self._field(field)])

    async def hash_values(self, key: Any) -> List[Any]:
        values = await self.command(["HVALS", self._make_key(key)])
        return [encoding.decode(v) for v in values]

    # JSON operations

    async def json_get(self, key: Any, path: Any = None) -> Any:
        args = [] if is_root(path) else [serialize_path(path)]
        data = await self._json_command("GET", key, args)
        return encoding.decode(data)

    async def json_set(self, key: Any, path: Any, value: Any) -> Optional[bool]:
        reply = await self._json_command("SET", key, [serialize_path(path), encoding.encode(value)])
        return True if reply else None

    async def json_delete(self, key: Any, path: Any) -> int:
        return await self._json_command("DEL", key, [serialize_path(path)])

    async def json_incr(self, key: Any, path: Any, delta: Number = 1) -> Number:
        reply = await self._json_command("NUMINCRBY", key, [serialize_path(path), str(delta)])
        return encoding.decode(reply)

    async def json_clear(self, key: Any, path: Any) -> int:
        return await self._json_command("CLEAR", key, [serialize_path(path)])

    async def json_array_append(self, key: Any, path: Any, value_or_values: Any) -> int:
        values = value_or_values if isinstance(value_or_values, list) else [value_or_values]
        return await self._json_command(
            "ARRAPPEND",
            key,
            [serialize_path(path)] + [encoding.encode(v) for v in values]
        )

    # Raw commands

    async def command(self, command: Sequence[Any]) -> Any:
        """Run a single command, retrying on connection failures."""
        client = self._client("command")
        return await self._with_retries(lambda: client.execute_command(*command), command)

    async def pipeline(self, commands: Sequence[Sequence[Any]]) -> List[Any]:
        """Run commands in one round trip."""
        client = self._client("pipeline")

        async def execute():
            async with client.pipeline(transaction=False) as pipe:
                for command in commands:
                    pipe.execute_command(*command)
                return await pipe.execute()

        replies = await self._with_retries(execute, ["PIPELINE"])
        return [int(r) if isinstance(r, bool) else r for r in replies]

    async def scan(self, match: Optional[str] = None, count: Optional[int] = None) -> List[str]:
        """List keys of this cache, with the cache prefix removed."""
        client = self._client("scan")
        prefix = self._make_key("")

        async def collect():
            return [
                key[len(prefix):]
                async for key in client.scan_iter(match=self._make_key(match or "*"), count=count)
            ]

        return await self._with_retries(collect, ["SCAN"])

    async def hash_scan(
        self,
        key: Any,
        match: Optional[str] = None,
        count: Optional[int] = None
    ) -> List[Tuple[str, Any]]:
        """List the fields of a hash as ``(field, value)`` pairs."""
        client = self._client("hash_scan")

        async def collect():
            return [
                (field, encoding.decode(value))
                async for field, value in client.hscan_iter(
                    self._make_key(key), match=match, count=count
                )
            ]

        return await self._with_retries(collect, ["HSCAN"])

    async def _json_command(self, command: str, key: Any, args: List[Any]) -> Any:
        return await self.command([f"JSON.{command}", self._make_key(key)] + args)

    async def _with_retries(self, call, command) -> Any:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.options.retry_attempts),
                wait=wait_exponential(multiplier=0.1, max=2),
                retry=retry_if_exception_type((RedisConnectionError, RedisTimeoutError)),
                reraise=True
            ):
                with attempt:
                    return await call()

        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.error(f"Redis command failed after retries: {e}")
            raise ServiceError(
                f"redis connection errored because: {e}",
                service_name="RedisCache",
                operation=str(command[0]) if command else None,
                original_exception=e
            ) from e

        except ResponseError as e:
            raise self._response_error(e) from e

    def _client(self, operation: str) -> Redis:
        if not self._initialized or not self.redis:
            raise ServiceError(
                f"Redis cache {self.name} is not initialized",
                service_name="RedisCache",
                operation=operation
            )
        return self.redis

    def _make_key(self, key: Any) -> str:
        """Create full key with the cache name."""
        return f"{self.name}:{key}"

    @staticmethod
    def _field(field: Any) -> str:
        if isinstance(field, str):
            return field
        return encoding.encode(field)

    @staticmethod
    def _response_error(error: ResponseError):
        message = str(error)
        # The client strips the generic "ERR" code from replies
        if not message.split(" ", 1)[0].isupper():
            message = f"ERR {message}"

        match = _MISSING_PATH.search(message)
        if match:
            return PathNotFoundError(match.group("path") or "$")
        if "does not exist" in message:
            return NotFoundError(message)
        return BadRequestError(message)
