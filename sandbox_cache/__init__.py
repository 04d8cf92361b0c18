"""
Sandbox Cache

Cache-backend abstraction with memory, disk and redis adapters, and a
sandbox adapter that isolates tests from each other.
"""

__version__ = "0.3.3"

# Public API exports
from .application.services import Cache
from .core.config import Settings
from .core.exceptions import CacheError
from .infrastructure.sandbox import SandboxRegistry, registry
from .startup import CacheSupervisor

__all__ = [
    "Cache",
    "CacheError",
    "CacheSupervisor",
    "SandboxRegistry",
    "Settings",
    "registry",
]
