"""Pydantic domain models for Yamler."""

from yamler.models.document import ContextLine, Entry, SearchResult, YamlDocument
from yamler.models.errors import (
    ErrorDetail,
    FetchError,
    InputError,
    ParseError,
    YamlerError,
    YAMLSafetyError,
)

__all__ = [
    "ContextLine",
    "Entry",
    "ErrorDetail",
    "FetchError",
    "InputError",
    "ParseError",
    "SearchResult",
    "YAMLSafetyError",
    "YamlDocument",
    "YamlerError",
]
