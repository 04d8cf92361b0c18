"""
Sandbox Registry

Maps a cache name and the calling execution context to an isolation id.

Each asyncio task (and each thread) runs in its own ``contextvars``
context, so ids registered by one test are invisible to another test
running concurrently. Registration replaces the mapping instead of
mutating it, which keeps copies held by child contexts stable.
"""

import logging
import uuid
from contextvars import ContextVar
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Union

from ...core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CacheRef = Union[str, Any]


class SandboxRegistry:
    """Registry of isolation ids for sandboxed caches."""

    def __init__(self, name: str = "sandbox_cache"):
        self.name = name
        self._ids: ContextVar[Mapping[str, str]] = ContextVar(
            f"{name}_registry_{uuid.uuid4().hex}",
            default=MappingProxyType({})
        )

    def register_caches(
        self,
        cache_or_caches: Union[CacheRef, Iterable[CacheRef]]
    ) -> List[str]:
        """
        Register caches for the current context.

        Args:
            cache_or_caches: Cache, cache name, or a list of either

        Returns:
            Isolation ids, one per cache
        """
        ids = dict(self._ids.get())
        created = []

        for cache_name in self._names(cache_or_caches):
            unique_id = f"{cache_name}_{uuid.uuid4().hex}"
            ids[cache_name] = unique_id
            created.append(unique_id)
            logger.debug(f"Registered sandbox {unique_id}")

        self._ids.set(MappingProxyType(ids))
        return created

    def unregister_caches(
        self,
        cache_or_caches: Union[CacheRef, Iterable[CacheRef]]
    ) -> None:
        """Drop registrations for the current context."""
        ids = dict(self._ids.get())
        for cache_name in self._names(cache_or_caches):
            ids.pop(cache_name, None)
        self._ids.set(MappingProxyType(ids))

    def find(self, cache: CacheRef) -> str:
        """
        Look up the isolation id of a cache for the current context.

        Raises:
            ConfigurationError: If the current context never registered it
        """
        cache_name = self._name(cache)
        unique_id = self._ids.get().get(cache_name)

        if unique_id is None:
            raise ConfigurationError(
                f"No sandbox registered for cache {cache_name!r} in the current context\n\n"
                f"======= Use: =======\n"
                f"registry.register_caches({cache_name!r})\n"
                f"=== in your test ===",
                config_key=cache_name
            )

        return unique_id

    def is_registered(self, cache: CacheRef) -> bool:
        """Check whether the current context registered a cache."""
        return self._name(cache) in self._ids.get()

    def _names(self, cache_or_caches) -> List[str]:
        if isinstance(cache_or_caches, (list, tuple, set)):
            return [self._name(c) for c in cache_or_caches]
        return [self._name(cache_or_caches)]

    @staticmethod
    def _name(cache: CacheRef) -> str:
        name = cache if isinstance(cache, str) else getattr(cache, "name", None)
        if not name:
            raise ConfigurationError(
                f"Cannot register {cache!r}: caches are registered by name",
                config_key="name"
            )
        return name


# Process-wide default registry
registry = SandboxRegistry()
