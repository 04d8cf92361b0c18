"""
Core Protocol Definitions

This module defines the interfaces that all adapters must follow.
"""

from .cache_protocol import (
    CacheProtocol,
    HashCacheProtocol,
    JSONCacheProtocol,
    TableCacheProtocol,
    CommandCacheProtocol,
)

__all__ = [
    "CacheProtocol",
    "HashCacheProtocol",
    "JSONCacheProtocol",
    "TableCacheProtocol",
    "CommandCacheProtocol",
]
