"""API request/response Pydantic schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from yamler.models.document import ContextLine


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = ""


# ---------------------------------------------------------------------------
# Session schemas
# ---------------------------------------------------------------------------


class SessionCreateRequest(BaseModel):
    """Request body for POST /sessions."""

    metadata: dict[str, str] = Field(default_factory=dict)


class SessionResponse(BaseModel):
    """Single session info."""

    session_id: str
    created_at: datetime
    last_accessed_at: datetime
    entry_count: int
    source_url: str = ""
    metadata: dict[str, str] = Field(default_factory=dict)


class SessionListResponse(BaseModel):
    """Response for GET /sessions."""

    sessions: list[SessionResponse]


# ---------------------------------------------------------------------------
# Document, entries, search
# ---------------------------------------------------------------------------


class DocumentLoadRequest(BaseModel):
    """Request body for POST /sessions/{session_id}/document."""

    url: str = Field(description="GitHub blob URL or raw URL of a YAML file")


class DocumentLoadResponse(BaseModel):
    """Response for a successful load."""

    source_url: str
    raw_url: str
    entry_count: int
    message: str


class DocumentStatusResponse(BaseModel):
    """Response for GET /sessions/{session_id}/document."""

    source_url: str = ""
    raw_url: str = ""
    entry_count: int = 0
    loading: bool = False
    error: str = ""
    message: str = ""


class EntryResponse(BaseModel):
    """One flattened entry."""

    path: str
    key: str
    value: Any = None
    line_number: int


class EntryListResponse(BaseModel):
    """Response for GET /sessions/{session_id}/entries."""

    total: int
    entries: list[EntryResponse] = []


class SearchResultResponse(EntryResponse):
    """A ranked match with the source lines around it."""

    score: float
    context: list[ContextLine] = []


class SearchResponse(BaseModel):
    """Response for GET /sessions/{session_id}/search."""

    query: str
    count: int
    results: list[SearchResultResponse] = []
    no_results: bool = False
    message: str = ""


class ContextResponse(BaseModel):
    """Response for GET /sessions/{session_id}/context."""

    line_number: int
    lines: list[ContextLine] = []


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------


class UrlNormalizeRequest(BaseModel):
    """Request body for POST /urls/normalize."""

    url: str


class UrlNormalizeResponse(BaseModel):
    """The fetchable form of a URL."""

    url: str
    raw_url: str
    changed: bool
