"""
Dependency Injection Container

Central container for settings, the sandbox registry and the cache
supervisor.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from dependency_injector import containers, providers

from .config import ConfigLoader

logger = logging.getLogger(__name__)


def _create_supervisor(settings, registry, definitions: Iterable[Dict[str, Any]]):
    """Build caches from definitions and put them under one supervisor."""
    from ..application.services import Cache
    from ..startup import CacheSupervisor

    caches = [
        Cache.from_settings(
            definition["name"],
            definition["adapter"],
            definition.get("options"),
            settings=settings,
            registry=registry
        )
        for definition in definitions
    ]
    return CacheSupervisor(caches)


def _create_registry():
    from ..infrastructure.sandbox import registry
    return registry


class Container(containers.DeclarativeContainer):
    """Main DI container for the application."""

    # Configuration
    config = providers.Configuration()

    # Load settings
    settings = providers.Singleton(
        ConfigLoader.load_config
    )

    # Isolation ids for sandboxed caches
    registry = providers.Singleton(
        _create_registry
    )

    # Caches, from a list of {name, adapter, options} definitions
    supervisor = providers.Singleton(
        _create_supervisor,
        settings=settings,
        registry=registry,
        definitions=config.caches
    )


class SandboxContainer(Container):
    """Container that forces every cache into the sandbox."""

    settings = providers.Singleton(
        ConfigLoader.reload_config,
        overrides={
            "ENV": "test",
            "CACHE_SANDBOX": "true",
        }
    )

    supervisor = providers.Singleton(
        _create_supervisor,
        settings=settings,
        registry=Container.registry,
        definitions=Container.config.caches
    )


# Global container instance
_container: Optional[Container] = None


def get_container() -> Container:
    """Get the global container instance."""
    global _container
    if _container is None:
        _container = Container()
        _container.config.from_dict({"caches": []})
    return _container


def set_container(container: Optional[Container]) -> None:
    """Set the global container instance."""
    global _container
    _container = container


async def initialize_container(
    caches: Iterable[Dict[str, Any]],
    test_mode: bool = False
) -> Container:
    """
    Initialize the container and start its caches.

    Args:
        caches: Cache definitions with ``name``, ``adapter`` and ``options``
        test_mode: Whether to sandbox every cache

    Returns:
        Initialized container
    """
    container = SandboxContainer() if test_mode else Container()
    container.config.from_dict({"caches": list(caches)})

    await container.supervisor().startup()

    set_container(container)

    logger.info(
        f"Container initialized in {'test' if test_mode else 'production'} mode"
    )

    return container


async def shutdown_container() -> None:
    """Shutdown the container and close its caches."""
    if _container is None:
        return

    await _container.supervisor().shutdown()
    set_container(None)

    logger.info("Container shutdown complete")
