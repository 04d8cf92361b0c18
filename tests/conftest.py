"""
tests/conftest.py
Shared fixtures for sandbox_cache tests.
Provides fresh registries, sandboxed caches and record stores.
"""

import os

import pytest

from sandbox_cache.application.services import Cache
from sandbox_cache.core.config import ConfigLoader
from sandbox_cache.infrastructure.sandbox import SandboxRegistry
from sandbox_cache.infrastructure.store import RecordStore


@pytest.fixture
def registry():
    """A registry private to one test."""
    return SandboxRegistry("test")


@pytest.fixture
def store():
    return RecordStore("store")


@pytest.fixture
def sandbox(registry):
    """
    A sandboxed cache.

    Registration is context-local, so tests register it themselves with
    ``sandbox.registry.register_caches(sandbox)`` inside the test body.
    """
    return Cache("sandbox", "redis", {"uri": "redis://localhost:6379"}, sandbox=True, registry=registry)


@pytest.fixture
def plain_sandbox():
    """The sandbox adapter used directly, without key isolation."""
    return Cache("plain", "sandbox")


@pytest.fixture
def clean_config():
    """Reset the config singleton and environment around a test."""
    saved = dict(os.environ)
    for var in ("ENV", "DEBUG", "CACHE_SANDBOX", "CACHE_REDIS_URL", "CACHE_DISK_PATH", "CACHE_DEFAULT_TTL_MS"):
        os.environ.pop(var, None)
    ConfigLoader._settings = None
    yield
    os.environ.clear()
    os.environ.update(saved)
    ConfigLoader._settings = None
