"""
Document Path Addressing

Normalizes JSON document paths and serializes them to the dotted form
the remote JSON backend understands (``user.address[0].city``).
"""

import re
from enum import Enum
from typing import Any, List, Optional, Sequence, Union

from ...core.exceptions import BadRequestError

Segment = Union[str, int]
PathLike = Union[None, str, Sequence[Any]]

ROOT = "."
JSONPATH_ROOT = "$"

_INDEXED_SEGMENT = re.compile(r"^(?P<name>[^\[\]]*)(?P<indexes>(\[\d+\])+)$")
_INDEX = re.compile(r"\[(\d+)\]")


def is_root(path: PathLike) -> bool:
    """Check whether a path addresses the whole document."""
    return normalize(path) is None


def normalize(path: PathLike) -> Optional[List[Segment]]:
    """
    Normalize a path into a list of segments.

    ``None``, ``"."``, ``"$"``, ``["."]`` and the empty list all denote
    the root and normalize to ``None``. String segments containing dots
    are split, a leading ``$.`` is dropped, and ``name[3]`` style segments
    are split into a field and an index.

    Args:
        path: Path in any accepted form

    Returns:
        List of str/int segments, or None for the root
    """
    if path is None:
        return None

    if isinstance(path, str):
        path = [path]

    segments: List[Segment] = []
    for segment in path:
        segments.extend(_split_segment(segment))

    return segments or None


def serialize(path: PathLike) -> str:
    """
    Serialize a path into the remote backend's string form.

    Args:
        path: Path in any accepted form

    Returns:
        ``"$"`` for the root, otherwise ``seg1.seg2[idx]``
    """
    segments = normalize(path)
    if segments is None:
        return "$"

    serialized = ""
    for segment in segments:
        if isinstance(segment, int):
            serialized = f"{serialized}[{segment}]"
        elif serialized:
            serialized = f"{serialized}.{segment}"
        else:
            serialized = segment
    return serialized


def is_index(segment: Segment) -> bool:
    """Check whether a segment addresses a list position."""
    if isinstance(segment, int):
        return True
    return segment.isdigit()


def _split_segment(segment: Any) -> List[Segment]:
    if isinstance(segment, bool):
        raise BadRequestError(
            f"Invalid path segment: {segment!r}",
            details={"segment": repr(segment)}
        )

    if isinstance(segment, int):
        if segment < 0:
            raise BadRequestError(
                f"Array index must be non-negative: {segment}",
                details={"segment": segment}
            )
        return [segment]

    if isinstance(segment, Enum):
        segment = segment.value
        if isinstance(segment, int):
            return _split_segment(segment)

    segment = str(segment)
    if segment in (ROOT, JSONPATH_ROOT):
        return []

    # "$.a.b" and "$[0]" are JSONPath spellings of "a.b" and "[0]"
    if segment.startswith((JSONPATH_ROOT + ".", JSONPATH_ROOT + "[")):
        segment = segment[len(JSONPATH_ROOT):]

    segments: List[Segment] = []
    for part in segment.split("."):
        if not part:
            continue

        match = _INDEXED_SEGMENT.match(part)
        if match:
            if match.group("name"):
                segments.append(match.group("name"))
            segments.extend(int(i) for i in _INDEX.findall(match.group("indexes")))
        else:
            segments.append(part)

    return segments
