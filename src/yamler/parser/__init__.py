"""YAML parsing and flattening with line fidelity for Yamler."""

from yamler.parser.flattener import Flattener, LineLocator, SourcePositionLocator, flatten
from yamler.parser.loader import TrackedLoader
from yamler.parser.urls import normalize_url, validate_url

__all__ = [
    "Flattener",
    "LineLocator",
    "SourcePositionLocator",
    "TrackedLoader",
    "flatten",
    "normalize_url",
    "validate_url",
]
