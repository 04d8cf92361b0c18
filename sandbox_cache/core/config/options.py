"""
Adapter Options

Per-adapter option models, validated once when a cache is defined.
"""

from typing import Any, Dict, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, ValidationError

from ..exceptions import ConfigurationError


class AdapterOptions(BaseModel):
    """Base class for adapter options."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class MemoryOptions(AdapterOptions):
    """In-process dict adapter options."""

    default_ttl: Optional[PositiveInt] = Field(
        default=None,
        description="TTL in milliseconds applied when a put gives none"
    )


class DiskOptions(AdapterOptions):
    """Disk-backed table adapter options."""

    file_path: str = Field(
        default="./",
        description="Directory the table is stored under"
    )
    type: Literal["set"] = Field(
        default="set",
        description="Table type"
    )
    size_limit: PositiveInt = Field(
        default=2 ** 30,
        description="Maximum size of the table on disk in bytes"
    )


class RedisOptions(AdapterOptions):
    """Remote key-value adapter options."""

    uri: str = Field(
        ...,
        description="The connection uri to redis"
    )
    size: PositiveInt = Field(
        default=50,
        description="The amount of connections in the pool"
    )
    max_overflow: PositiveInt = Field(
        default=20,
        description="Connections allowed above the pool size"
    )
    retry_attempts: PositiveInt = Field(
        default=3,
        description="Attempts for commands failing on connection errors"
    )


class SandboxOptions(AdapterOptions):
    """The sandbox takes no options."""


ADAPTER_OPTIONS: Dict[str, Type[AdapterOptions]] = {
    "memory": MemoryOptions,
    "disk": DiskOptions,
    "redis": RedisOptions,
    "sandbox": SandboxOptions,
}


def validate_options(adapter: str, options: Optional[Dict[str, Any]] = None) -> AdapterOptions:
    """
    Validate options for an adapter kind.

    Args:
        adapter: Adapter kind
        options: Raw options

    Returns:
        Validated options model

    Raises:
        ConfigurationError: If the adapter is unknown or options are invalid
    """
    model = ADAPTER_OPTIONS.get(adapter)
    if model is None:
        raise ConfigurationError(
            f"Unknown cache adapter: {adapter!r}. Must be one of {sorted(ADAPTER_OPTIONS)}",
            config_key="adapter"
        )

    if isinstance(options, model):
        return options

    try:
        return model(**(options or {}))
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid options for {adapter} adapter: {e}",
            config_key="options",
            details={"errors": e.errors(include_url=False)}
        ) from e
