"""
Cache Infrastructure

Concrete cache adapters and the factory that builds them by kind.
"""

from typing import Any, Dict, Optional, Type

from ...core.config import AdapterOptions, validate_options
from .disk_cache import DiskCache
from .memory_cache import MemoryCache
from .redis_cache import RedisCache
from .sandbox_cache import SandboxCache

ADAPTERS: Dict[str, Type] = {
    MemoryCache.kind: MemoryCache,
    DiskCache.kind: DiskCache,
    RedisCache.kind: RedisCache,
    SandboxCache.kind: SandboxCache,
}


def create_adapter(
    name: str,
    kind: str,
    options: Optional[Any] = None
):
    """
    Build an adapter after validating its options.

    Args:
        name: Cache name
        kind: Adapter kind, one of ``ADAPTERS``
        options: Raw options dict or an options model

    Returns:
        Unstarted adapter instance

    Raises:
        ConfigurationError: If the kind is unknown or options are invalid
    """
    validated: AdapterOptions = validate_options(kind, options)
    return ADAPTERS[kind](name, validated)


__all__ = [
    "ADAPTERS",
    "DiskCache",
    "MemoryCache",
    "RedisCache",
    "SandboxCache",
    "create_adapter",
]
