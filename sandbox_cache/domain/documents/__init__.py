"""
Document Domain

Path addressing and partial-update semantics for JSON documents.
"""

from . import encoding, engine, path
from .engine import MISSING, ROOT_REQUIRED
from .path import ROOT, normalize as normalize_path, serialize as serialize_path

__all__ = [
    "encoding",
    "engine",
    "path",
    "MISSING",
    "ROOT",
    "ROOT_REQUIRED",
    "normalize_path",
    "serialize_path",
]
