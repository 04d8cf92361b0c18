"""
Record Storage

Single-owner in-memory table backing the sandbox adapter.
"""

from .record_store import RecordStore

__all__ = [
    "RecordStore",
]
