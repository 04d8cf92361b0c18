"""
Sandbox Isolation

Namespace keys and the registry that hands out isolation ids.
"""

from . import namespace
from .registry import SandboxRegistry, registry

__all__ = [
    "namespace",
    "SandboxRegistry",
    "registry",
]
