"""Pydantic domain models: the fetched document, its entries, and display lines."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class YamlDocument(BaseModel):
    """Raw text of a fetched YAML file plus its parsed (plain Python) tree."""

    model_config = ConfigDict(frozen=True)

    text: str
    data: Any = None
    source_url: str = ""
    raw_url: str = ""


class Entry(BaseModel):
    """One leaf value (or sequence element) addressed by its dotted path."""

    model_config = ConfigDict(frozen=True)

    path: str
    value: Any = None
    line_number: int = Field(ge=0, description="0-based source line")
    key: str


class SearchResult(BaseModel):
    """An entry matched by a query, with its distance (lower is better)."""

    model_config = ConfigDict(frozen=True)

    entry: Entry
    score: float


class ContextLine(BaseModel):
    """A single source line shown around a match."""

    model_config = ConfigDict(frozen=True)

    line_number: int = Field(description="1-based display line")
    content: str
    is_target: bool = False


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` the way line numbers are counted; drops a trailing ``\\r``."""
    return [line.removesuffix("\r") for line in text.split("\n")]
