"""
Configuration Loader

Loads the process-wide settings once and hands the same instance to
every cache defined from them.
"""

import logging
from typing import Optional, Dict, Any

from pydantic import ValidationError

from ..exceptions import ConfigurationError
from .settings import CacheSettings, Settings

logger = logging.getLogger(__name__)

CACHE_PREFIX = "cache_"


class ConfigLoader:
    """Holds the loaded settings."""

    _settings: Optional[Settings] = None

    @classmethod
    def load_config(
        cls,
        overrides: Optional[Dict[str, Any]] = None
    ) -> Settings:
        """
        Load settings from the environment and ``.env``.

        Overrides take precedence over the environment without being
        written to it. Keys are case-insensitive; ``CACHE_``-prefixed
        keys set fields of the nested cache settings.

        Args:
            overrides: Setting values by environment variable name

        Returns:
            Loaded settings

        Raises:
            ConfigurationError: If an override is unknown or a value is invalid
        """
        if cls._settings is not None:
            return cls._settings

        try:
            cls._settings = Settings(**cls._settings_kwargs(overrides or {}))
        except ValidationError as e:
            logger.error(f"Failed to load configuration: {e}")
            raise ConfigurationError(
                f"Invalid configuration: {e}",
                details={"errors": e.errors(include_url=False)}
            ) from e

        logger.info(
            f"Configuration loaded "
            f"(env={cls._settings.env}, sandbox={cls._settings.cache.sandbox})"
        )
        cls._log_config_info()

        return cls._settings

    @classmethod
    def get_settings(cls) -> Settings:
        """
        Get the loaded settings.

        Raises:
            ConfigurationError: If nothing has been loaded yet
        """
        if cls._settings is None:
            raise ConfigurationError(
                "Configuration not loaded. Call ConfigLoader.load_config() first."
            )
        return cls._settings

    @classmethod
    def reload_config(
        cls,
        overrides: Optional[Dict[str, Any]] = None
    ) -> Settings:
        """Drop the loaded settings and load them again."""
        cls._settings = None
        return cls.load_config(overrides)

    @staticmethod
    def _settings_kwargs(overrides: Dict[str, Any]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {}
        cache_kwargs: Dict[str, Any] = {}

        for key, value in overrides.items():
            name = key.lower()
            if name.startswith(CACHE_PREFIX) and name[len(CACHE_PREFIX):] in CacheSettings.model_fields:
                cache_kwargs[name[len(CACHE_PREFIX):]] = value
            elif name in Settings.model_fields and name != "cache":
                kwargs[name] = value
            else:
                raise ConfigurationError(
                    f"Unknown configuration override: {key}",
                    config_key=key
                )

        if cache_kwargs:
            # Remaining cache fields still come from the environment
            kwargs["cache"] = CacheSettings(**cache_kwargs)
        return kwargs

    @classmethod
    def _log_config_info(cls) -> None:
        if not cls._settings:
            return

        logger.info(f"App: {cls._settings.app_name} v{cls._settings.app_version}")
        logger.info(f"Disk tables: {cls._settings.cache.disk_path}")
