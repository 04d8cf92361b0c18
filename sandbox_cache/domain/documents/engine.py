"""
Document Path Engine

Pure functions that apply the remote JSON backend's partial-update
semantics to plain nested dicts and lists.

None of these functions mutate their input. Each one works on a deep
copy and returns the new document alongside the operation's reply.
``MISSING`` stands for a key that holds no document at all.
"""

import copy
import logging
from numbers import Number
from typing import Any, List, Optional, Tuple

from ...core.exceptions import BadRequestError, PathNotFoundError
from . import encoding
from .path import PathLike, Segment, is_index, normalize, serialize

logger = logging.getLogger(__name__)


class _Missing:
    """Marker for an absent document."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

ROOT_REQUIRED = "ERR new objects must be created at the root"


def get(doc: Any, path: PathLike) -> Any:
    """
    Read the value at a path.

    Raises:
        PathNotFoundError: If any segment does not resolve
    """
    segments = normalize(path)
    if segments is None:
        return None if doc is MISSING else doc

    found, value = _resolve(doc, segments)
    if not found:
        raise PathNotFoundError(serialize(segments))
    return value


def set(doc: Any, path: PathLike, value: Any) -> Tuple[Any, Optional[bool]]:
    """
    Write a value at a path.

    The root path always replaces the whole document, creating it if
    needed. A nested path requires the document to exist; missing
    containers along the way are created, lists for index-like segments
    and dicts otherwise.

    Returns:
        (new document, True) when the target's parent already existed,
        (new document, None) when the parent had to be created

    Raises:
        BadRequestError: If the document is missing and the path is not
            the root, or a segment runs into a scalar
    """
    value = encoding.normalize(value)
    segments = normalize(path)
    if segments is None:
        return value, True

    if doc is MISSING:
        raise BadRequestError(ROOT_REQUIRED)

    new_doc = copy.deepcopy(doc)
    node = new_doc
    parent_existed = True

    for position, segment in enumerate(segments[:-1]):
        _require_container(node, segments[:position])
        found, child = _step(node, segment)

        if not found or child is None:
            child = [] if is_index(segments[position + 1]) else {}
            _assign(node, segment, child, segments[:position + 1])
            parent_existed = False
            logger.debug(
                f"Created {type(child).__name__} at $.{serialize(segments[:position + 1])}"
            )

        node = child

    _require_container(node, segments[:-1])
    _assign(node, segments[-1], value, segments)

    return new_doc, (True if parent_existed else None)


def increment(doc: Any, path: PathLike, delta: Number = 1) -> Tuple[Any, Number]:
    """
    Add ``delta`` to the number at a path.

    Returns:
        (new document, new value)

    Raises:
        PathNotFoundError: If the path does not resolve
        BadRequestError: If the target is not a number
    """
    segments = normalize(path) or []
    found, current = _resolve(doc, segments)
    if not found:
        raise PathNotFoundError(serialize(segments))

    if not _is_number(current):
        raise BadRequestError(
            f"ERR wrong type of path value - expected a number but found {_json_type(current)}",
            details={"path": serialize(segments)}
        )

    new_value = current + delta
    return _replace(doc, segments, new_value), new_value


def clear(doc: Any, path: PathLike) -> Tuple[Any, int]:
    """
    Reset the value at a path to the empty value of its shape.

    Numbers become 0, lists ``[]``, dicts ``{}`` and anything else
    ``None``. A missing path is left alone.

    Returns:
        (new document, 1 if a value was cleared else 0)
    """
    segments = normalize(path) or []
    found, current = _resolve(doc, segments)
    if not found:
        return doc, 0

    return _replace(doc, segments, _empty_like(current)), 1


def delete(doc: Any, path: PathLike) -> Tuple[Any, int]:
    """
    Remove the node at a path.

    Deleting the root returns ``MISSING`` as the new document.

    Returns:
        (new document, 1 if a node was removed else 0)
    """
    segments = normalize(path)
    if segments is None:
        if doc is MISSING:
            return MISSING, 0
        return MISSING, 1

    found, _ = _resolve(doc, segments)
    if not found:
        return doc, 0

    new_doc = copy.deepcopy(doc)
    _, parent = _resolve(new_doc, segments[:-1])
    last = segments[-1]

    if isinstance(parent, dict):
        del parent[_dict_key(last)]
    else:
        del parent[int(last)]

    return new_doc, 1


def append(doc: Any, path: PathLike, values: List[Any]) -> Tuple[Any, int]:
    """
    Append values to the list at a path.

    Returns:
        (new document, new list length)

    Raises:
        PathNotFoundError: If the path does not resolve
        BadRequestError: If the target is not a list
    """
    segments = normalize(path) or []
    found, current = _resolve(doc, segments)
    if not found:
        raise PathNotFoundError(serialize(segments))

    if not isinstance(current, list):
        raise BadRequestError(
            f"ERR wrong type of path value - expected array but found {_json_type(current)}",
            details={"path": serialize(segments)}
        )

    updated = current + [encoding.normalize(v) for v in values]
    return _replace(doc, segments, updated), len(updated)


def _resolve(doc: Any, segments: List[Segment]) -> Tuple[bool, Any]:
    """Walk segments from the document root."""
    if doc is MISSING:
        return False, None

    node = doc
    for segment in segments:
        found, node = _step(node, segment)
        if not found:
            return False, None
    return True, node


def _step(node: Any, segment: Segment) -> Tuple[bool, Any]:
    """Resolve a single segment below a node."""
    if isinstance(node, dict):
        key = _dict_key(segment)
        if key in node:
            return True, node[key]
        return False, None

    if isinstance(node, list) and is_index(segment):
        index = int(segment)
        if index < len(node):
            return True, node[index]

    return False, None


def _assign(node: Any, segment: Segment, value: Any, at: List[Segment]) -> None:
    if isinstance(node, dict):
        node[_dict_key(segment)] = value
        return

    if not is_index(segment):
        raise BadRequestError(
            f"ERR Path '$.{serialize(at)}' does not exist",
            details={"path": serialize(at), "reason": "field name used on an array"}
        )

    index = int(segment)
    if index < len(node):
        node[index] = value
    else:
        node.extend([None] * (index - len(node)))
        node.append(value)


def _replace(doc: Any, segments: List[Segment], value: Any) -> Any:
    """Copy the document with the node at ``segments`` replaced."""
    if not segments:
        return value

    new_doc = copy.deepcopy(doc)
    _, parent = _resolve(new_doc, segments[:-1])
    _assign(parent, segments[-1], value, segments)
    return new_doc


def _require_container(node: Any, at: List[Segment]) -> None:
    if not isinstance(node, (dict, list)):
        raise BadRequestError(
            f"ERR wrong type of path value - expected a container but found {_json_type(node)}",
            details={"path": serialize(at) if at else "$"}
        )


def _dict_key(segment: Segment) -> str:
    return str(segment)


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def _empty_like(value: Any) -> Any:
    if _is_number(value):
        return 0
    if isinstance(value, list):
        return []
    if isinstance(value, dict):
        return {}
    return None


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__
