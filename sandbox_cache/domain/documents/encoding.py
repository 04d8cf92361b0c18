"""
Document Value Encoding

Canonical JSON round trip for values stored as documents.

The remote JSON backend loses language-specific typing on write: tuples
come back as lists, enum members as their values, non-string keys as
strings. Running every written value through the same encode/decode
cycle makes the in-memory simulator read back exactly what the remote
backend would.
"""

import dataclasses
import json
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


def encode(value: Any) -> str:
    """Encode a value as a JSON document string."""
    return json.dumps(_stringify_keys(value), default=_default)


def decode(data: Any) -> Any:
    """
    Decode a JSON document string.

    Non-JSON input is returned unchanged, the way the remote adapter
    treats replies it cannot parse.
    """
    if data is None:
        return None

    if isinstance(data, bytes):
        data = data.decode("utf-8")

    if not isinstance(data, str):
        return data

    try:
        return json.loads(data)
    except json.JSONDecodeError:
        return data


def normalize(value: Any) -> Any:
    """Return the structural JSON equivalent of a value."""
    return json.loads(encode(value))


def _stringify_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            _key(k): _stringify_keys(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_stringify_keys(v) for v in value]
    return value


def _key(key: Any) -> Any:
    if isinstance(key, Enum):
        key = key.value
    if isinstance(key, (str, int, float, bool)) or key is None:
        return key
    return str(key)


def _default(value: Any) -> Any:
    """Fallback encoder for types json does not know."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _stringify_keys(dataclasses.asdict(value))
    return str(value)
