"""
Namespace Keys

Key prefixing that isolates test cases sharing one sandbox store.

A namespaced key renders as ``"<namespace_id>:<raw_key>"`` but keeps the
raw key, so bulk queries hand back keys of the type the caller wrote.
"""

from dataclasses import dataclass
from typing import Any, Optional

SEPARATOR = ":"


@dataclass(frozen=True)
class ScopedKey:
    """A raw key inside one isolation namespace."""

    namespace: str
    key: Any

    def __str__(self) -> str:
        return f"{prefix(self.namespace)}{self.key}"


def key_for(namespace_id: Optional[str], raw_key: Any) -> Any:
    """
    Prefix a key with an isolation id.

    Args:
        namespace_id: Isolation id, or None when isolation is off
        raw_key: Key as the caller wrote it

    Returns:
        A ``ScopedKey``, or ``raw_key`` unchanged
    """
    if namespace_id is None:
        return raw_key
    return ScopedKey(namespace_id, raw_key)


def prefix(namespace_id: str) -> str:
    """Prefix shared by every key in a namespace."""
    return f"{namespace_id}{SEPARATOR}"


def owns(namespace_id: Optional[str], full_key: Any) -> bool:
    """Check whether a stored key belongs to a namespace."""
    if namespace_id is None:
        return True
    return isinstance(full_key, ScopedKey) and full_key.namespace == namespace_id


def strip(namespace_id: Optional[str], full_key: Any) -> Any:
    """Remove the namespace from a stored key."""
    if namespace_id is None:
        return full_key
    return raw_key(full_key)


def raw_key(full_key: Any) -> Any:
    """The key as the caller wrote it, namespaced or not."""
    if isinstance(full_key, ScopedKey):
        return full_key.key
    return full_key
