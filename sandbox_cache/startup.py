"""
Cache Supervisor

Starts and stops a group of caches together.
"""

import asyncio
import logging
from typing import Dict, Iterable, List

from .application.services import Cache
from .core.exceptions import CacheError, ConfigurationError

logger = logging.getLogger(__name__)


class CacheSupervisor:
    """Owns the lifecycle of a set of caches."""

    def __init__(self, caches: Iterable[Cache] = ()):
        self._caches: Dict[str, Cache] = {}
        self._started = False
        for cache in caches:
            self.add(cache)

    @property
    def caches(self) -> List[Cache]:
        return list(self._caches.values())

    @property
    def started(self) -> bool:
        return self._started

    def add(self, cache: Cache) -> None:
        """
        Add a cache before startup.

        Raises:
            ConfigurationError: If a cache with the same name was added
        """
        if cache.name in self._caches:
            raise ConfigurationError(
                f"Duplicate cache name: {cache.name!r}",
                config_key="name"
            )
        self._caches[cache.name] = cache

    def get(self, name: str) -> Cache:
        try:
            return self._caches[name]
        except KeyError:
            raise ConfigurationError(
                f"No cache named {name!r}",
                config_key="name"
            ) from None

    async def startup(self) -> None:
        """
        Start every cache.

        Caches that started are closed again when one fails, and the
        failure is re-raised.
        """
        logger.info(f"Starting {len(self._caches)} caches...")
        started = []

        try:
            for cache in self._caches.values():
                await cache.start()
                started.append(cache)

        except CacheError as e:
            logger.error(f"Startup failed: {e}", exc_info=True)
            for cache in reversed(started):
                await cache.close()
            raise

        self._started = True
        logger.info("Cache startup complete")

    async def shutdown(self) -> None:
        """Close every cache, in reverse start order."""
        logger.info("Shutting down caches...")

        for cache in reversed(self.caches):
            try:
                await cache.close()
            except CacheError as e:
                logger.error(f"Shutdown error for cache {cache.name}: {e}", exc_info=True)

        self._started = False
        logger.info("Cache shutdown complete")

    async def health_check(self) -> Dict[str, object]:
        """Check health of all caches."""
        names = list(self._caches)
        results = await asyncio.gather(
            *(self._caches[name].health_check() for name in names)
        )
        caches = dict(zip(names, results))

        return {
            "status": "healthy" if all(results) else "unhealthy",
            "caches": caches,
        }

    async def __aenter__(self) -> "CacheSupervisor":
        await self.startup()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()
