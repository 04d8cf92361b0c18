"""
Match Engine

Stateless interpreter for table-style pattern queries.

Records are tuples whose first element is the key. The engine never
touches storage: it is handed an iterable of records and returns
results, or the keys/records the caller should mutate.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence

from ...core.exceptions import BadRequestError
from .pattern import (
    ALL_BINDINGS,
    WHOLE_OBJECT,
    Binding,
    Literal,
    Pattern,
    TuplePattern,
    Wildcard,
    compile_pattern,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchClause:
    """One compiled ``(pattern, guards, body)`` entry of a match spec."""

    pattern: Pattern
    result: Any


def bind(record: Any, pattern: Any) -> Optional[List[Any]]:
    """
    Match a record and capture bound variables.

    Returns:
        Captured values in left-to-right order, or None on a non-match
    """
    bindings: List[Any] = []
    if _match(record, compile_pattern(pattern), bindings):
        return bindings
    return None


def matches(record: Any, pattern: Any) -> bool:
    """Check whether a record structurally matches a pattern."""
    return bind(record, pattern) is not None


def project(record: Any, bindings: List[Any], result_spec: Any) -> Any:
    """
    Shape a matched record according to a result spec.

    ``"$_"`` returns the record, ``"$$"`` the captured values. Anything
    else is returned verbatim.
    """
    if isinstance(result_spec, str):
        if result_spec == WHOLE_OBJECT:
            return record
        if result_spec == ALL_BINDINGS:
            return list(bindings)
    return result_spec


def compile_match_spec(match_spec: Sequence[Any]) -> List[MatchClause]:
    """
    Compile a list of ``(pattern, guards, body)`` entries.

    Guards are accepted and ignored. The result is the last expression of
    the body.

    Raises:
        BadRequestError: If an entry is malformed
    """
    if isinstance(match_spec, tuple):
        match_spec = [match_spec]

    clauses = []
    for entry in match_spec:
        if not isinstance(entry, (tuple, list)) or len(entry) != 3:
            raise BadRequestError(
                f"Invalid match spec entry: {entry!r}",
                details={"entry": repr(entry)}
            )

        pattern, guards, body = entry
        if guards:
            logger.debug(f"Ignoring match spec guards: {guards!r}")

        if isinstance(body, list):
            if not body:
                raise BadRequestError(
                    "Match spec body must not be empty",
                    details={"entry": repr(entry)}
                )
            body = body[-1]

        clauses.append(MatchClause(compile_pattern(pattern), body))
    return clauses


def select(
    records: Iterable[Any],
    match_spec: Sequence[Any],
    limit: Optional[int] = None
) -> List[Any]:
    """
    Project every record through the first clause it matches.

    Args:
        records: Records to evaluate
        match_spec: Match spec entries
        limit: Maximum number of results

    Returns:
        Projected results in record order
    """
    clauses = compile_match_spec(match_spec)
    results = []

    for record, clause, bindings in _first_matches(records, clauses):
        if limit is not None and len(results) >= limit:
            break
        results.append(project(record, bindings, clause.result))

    return results


def match_object(
    records: Iterable[Any],
    pattern: Any,
    limit: Optional[int] = None
) -> List[Any]:
    """Return whole records matching a pattern."""
    compiled = compile_pattern(pattern)
    results = []

    for record in records:
        if limit is not None and len(results) >= limit:
            break
        if _match(record, compiled, []):
            results.append(record)

    return results


def select_delete_keys(records: Iterable[Any], match_spec: Sequence[Any]) -> List[Any]:
    """Keys of records whose projection is truthy."""
    clauses = compile_match_spec(match_spec)
    return [
        record[0]
        for record, clause, bindings in _first_matches(records, clauses)
        if project(record, bindings, clause.result)
    ]


def select_replacements(records: Iterable[Any], match_spec: Sequence[Any]) -> List[tuple]:
    """
    Replacement records produced by a match spec.

    A projection only replaces its record when it is a tuple carrying the
    same key. Other projections are skipped.
    """
    clauses = compile_match_spec(match_spec)
    replacements = []

    for record, clause, bindings in _first_matches(records, clauses):
        replacement = project(record, bindings, clause.result)

        if not isinstance(replacement, tuple) or not replacement:
            logger.debug(f"Skipping non-record replacement for key {record[0]!r}")
            continue

        if replacement[0] != record[0]:
            logger.debug(f"Skipping replacement that changes key {record[0]!r}")
            continue

        replacements.append(replacement)

    return replacements


def match_delete_keys(records: Iterable[Any], pattern: Any) -> List[Any]:
    """Keys of records structurally matching a pattern."""
    return [record[0] for record in match_object(records, pattern)]


def _first_matches(records: Iterable[Any], clauses: List[MatchClause]):
    for record in records:
        for clause in clauses:
            bindings: List[Any] = []
            if _match(record, clause.pattern, bindings):
                yield record, clause, bindings
                break


def _match(value: Any, pattern: Pattern, bindings: List[Any]) -> bool:
    if isinstance(pattern, Wildcard):
        return True

    if isinstance(pattern, Binding):
        bindings.append(value)
        return True

    if isinstance(pattern, TuplePattern):
        if not isinstance(value, tuple) or len(value) != pattern.arity:
            return False
        return all(
            _match(element, sub_pattern, bindings)
            for element, sub_pattern in zip(value, pattern.elements)
        )

    if isinstance(pattern, Literal):
        return value == pattern.value

    return False
