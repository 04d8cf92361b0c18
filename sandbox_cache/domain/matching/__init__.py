"""
Matching Domain

Pattern types and the match engine used for table-style queries.
"""

from . import engine
from .pattern import (
    ALL_BINDINGS,
    WHOLE_OBJECT,
    WILDCARD,
    Binding,
    Literal,
    TuplePattern,
    Wildcard,
    compile_pattern,
    var,
)

__all__ = [
    "engine",
    "ALL_BINDINGS",
    "WHOLE_OBJECT",
    "WILDCARD",
    "Binding",
    "Literal",
    "TuplePattern",
    "Wildcard",
    "compile_pattern",
    "var",
]
