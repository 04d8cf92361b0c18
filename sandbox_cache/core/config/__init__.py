"""
Configuration Management

Centralized configuration for the cache package.
"""

from .settings import (
    Settings,
    CacheSettings,
)
from .options import (
    AdapterOptions,
    MemoryOptions,
    DiskOptions,
    RedisOptions,
    SandboxOptions,
    validate_options,
)
from .loader import ConfigLoader

__all__ = [
    "Settings",
    "CacheSettings",
    "AdapterOptions",
    "MemoryOptions",
    "DiskOptions",
    "RedisOptions",
    "SandboxOptions",
    "validate_options",
    "ConfigLoader",
]
