"""
Application Services

The cache facade application code talks to.
"""

from .cache_service import Cache

__all__ = [
    "Cache",
]
