"""
Match Patterns

Tagged pattern elements for structural queries against table records.

A raw pattern is written as a plain tuple. Inside it ``"_"`` is a
wildcard, ``"$1"``, ``"$2"``... are bound variables, nested tuples are
sub-patterns and every other value is a literal that must compare equal.
The explicit classes can be used instead of the string shorthands when a
literal ``"_"`` has to be matched.
"""

import re
from dataclasses import dataclass
from typing import Any, Tuple, Union

WILDCARD_TOKEN = "_"
WHOLE_OBJECT = "$_"
ALL_BINDINGS = "$$"

_VARIABLE = re.compile(r"^\$\d+$")


@dataclass(frozen=True)
class Literal:
    """Matches a value equal to ``value``."""

    value: Any


@dataclass(frozen=True)
class Wildcard:
    """Matches any single element."""

    def __repr__(self) -> str:
        return "WILDCARD"


@dataclass(frozen=True)
class Binding:
    """Matches any single element and captures it."""

    name: str


@dataclass(frozen=True)
class TuplePattern:
    """Matches a tuple element by element."""

    elements: Tuple["Pattern", ...]

    @property
    def arity(self) -> int:
        return len(self.elements)


Pattern = Union[Literal, Wildcard, Binding, TuplePattern]

WILDCARD = Wildcard()


def var(number: int) -> Binding:
    """Build the binding ``$<number>``."""
    return Binding(f"${number}")


def compile_pattern(raw: Any) -> Pattern:
    """
    Compile a raw pattern into tagged elements.

    Args:
        raw: Tuple template, shorthand string or pattern object

    Returns:
        Compiled pattern
    """
    if isinstance(raw, (Literal, Wildcard, Binding, TuplePattern)):
        return raw

    if isinstance(raw, str):
        if raw == WILDCARD_TOKEN:
            return WILDCARD
        if _VARIABLE.match(raw):
            return Binding(raw)
        return Literal(raw)

    if isinstance(raw, tuple):
        return TuplePattern(tuple(compile_pattern(e) for e in raw))

    return Literal(raw)
