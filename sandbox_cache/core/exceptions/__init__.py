"""
Core Exceptions

Base exception classes for the cache package.
"""

from .base import (
    CacheError,
    NotFoundError,
    PathNotFoundError,
    BadRequestError,
    UnsupportedError,
    InternalError,
    ConfigurationError,
    ServiceError,
)

__all__ = [
    "CacheError",
    "NotFoundError",
    "PathNotFoundError",
    "BadRequestError",
    "UnsupportedError",
    "InternalError",
    "ConfigurationError",
    "ServiceError",
]
