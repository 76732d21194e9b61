"""Session-scoped endpoints for loading, browsing, and searching a document."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query

from yamler.api.deps import get_fetcher, get_session_manager, is_session_list_disabled
from yamler.api.schemas import (
    ContextResponse,
    DocumentLoadRequest,
    DocumentLoadResponse,
    DocumentStatusResponse,
    EntryListResponse,
    EntryResponse,
    SearchResponse,
    SearchResultResponse,
    SessionCreateRequest,
    SessionListResponse,
    SessionResponse,
)
from yamler.models.errors import ErrorDetail, FetchError, InputError, ParseError, YamlerError
from yamler.service.explorer import ExplorerSession
from yamler.service.fetcher import DocumentFetcher
from yamler.service.session_manager import SessionInfo, SessionManager, SessionNotFoundError

router = APIRouter()

_ERROR_STATUS: dict[type[YamlerError], int] = {
    InputError: 400,
    ParseError: 422,
    FetchError: 502,
}


# -- helpers -----------------------------------------------------------------


def _get_explorer(session_id: str, mgr: SessionManager) -> ExplorerSession:
    """Resolve session_id to ExplorerSession, raise 404 if missing/expired."""
    try:
        return mgr.get_explorer(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found") from None


def _session_response(info: SessionInfo) -> SessionResponse:
    """Convert a SessionInfo dataclass to a Pydantic response."""
    return SessionResponse(**asdict(info))


def _error_status(exc: YamlerError) -> int:
    for exc_type, status in _ERROR_STATUS.items():
        if isinstance(exc, exc_type):
            return status
    return 500


# -- session CRUD ------------------------------------------------------------


@router.post("", response_model=SessionResponse, status_code=201)
async def create_session(
    body: SessionCreateRequest | None = None,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> SessionResponse:
    """Create a new session."""
    metadata = body.metadata if body else {}
    info = mgr.create_session(metadata=metadata)
    return _session_response(info)


@router.get("", response_model=SessionListResponse)
async def list_sessions(
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> SessionListResponse:
    """List all active sessions."""
    if is_session_list_disabled():
        raise HTTPException(status_code=403, detail="Session listing is disabled")
    sessions = mgr.list_sessions()
    return SessionListResponse(sessions=[_session_response(s) for s in sessions])


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> SessionResponse:
    """Get info for a specific session."""
    try:
        info = mgr.get_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found") from None
    return _session_response(info)


@router.delete("/{session_id}", status_code=204)
async def close_session(
    session_id: str,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> None:
    """Close a session and release its document."""
    try:
        mgr.close_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found") from None


# -- document ----------------------------------------------------------------


@router.post(
    "/{session_id}/document",
    response_model=DocumentLoadResponse,
    responses={
        400: {"model": ErrorDetail},
        409: {"description": "Superseded by a newer load"},
        422: {"model": ErrorDetail},
        502: {"model": ErrorDetail},
    },
)
async def load_document(
    session_id: str,
    body: DocumentLoadRequest,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
    fetcher: DocumentFetcher = Depends(get_fetcher),  # noqa: B008
) -> DocumentLoadResponse:
    """Fetch a YAML file by URL and flatten it into the session."""
    explorer = _get_explorer(session_id, mgr)
    try:
        result = await explorer.load(body.url, fetcher.fetch)
    except YamlerError as exc:
        raise HTTPException(
            status_code=_error_status(exc),
            detail=ErrorDetail.from_exception(exc).model_dump(),
        ) from None
    if result.superseded:
        raise HTTPException(status_code=409, detail="Load superseded by a newer request")
    return DocumentLoadResponse(
        source_url=result.source_url,
        raw_url=result.raw_url,
        entry_count=result.entry_count,
        message=result.message,
    )


@router.get("/{session_id}/document", response_model=DocumentStatusResponse)
async def document_status(
    session_id: str,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> DocumentStatusResponse:
    """Report what is loaded in the session (or the last load error)."""
    explorer = _get_explorer(session_id, mgr)
    return DocumentStatusResponse(**asdict(explorer.status()))


@router.get("/{session_id}/entries", response_model=EntryListResponse)
async def list_entries(
    session_id: str,
    offset: int = Query(default=0, ge=0),
    limit: int | None = Query(default=None, ge=1),
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> EntryListResponse:
    """List flattened entries in document order."""
    explorer = _get_explorer(session_id, mgr)
    entries = explorer.entries
    page = entries[offset:] if limit is None else entries[offset : offset + limit]
    return EntryListResponse(
        total=len(entries),
        entries=[EntryResponse(**e.model_dump()) for e in page],
    )


# -- search & context --------------------------------------------------------


@router.get("/{session_id}/search", response_model=SearchResponse)
async def search(
    session_id: str,
    q: str = "",
    context: bool = True,
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> SearchResponse:
    """Fuzzy-search entry paths and keys; results carry their context windows."""
    explorer = _get_explorer(session_id, mgr)
    view = explorer.search(q, with_context=context)
    return SearchResponse(
        query=view.term,
        count=len(view.matches),
        results=[
            SearchResultResponse(
                **m.entry.model_dump(),
                score=m.score,
                context=m.context,
            )
            for m in view.matches
        ],
        no_results=view.no_results,
        message=view.message,
    )


@router.get("/{session_id}/context", response_model=ContextResponse)
async def context_window(
    session_id: str,
    line: int = Query(ge=0, description="0-based target line"),
    window: int | None = Query(default=None, ge=0),
    mgr: SessionManager = Depends(get_session_manager),  # noqa: B008
) -> ContextResponse:
    """Return the source lines around a line of the loaded document."""
    explorer = _get_explorer(session_id, mgr)
    if explorer.document is None:
        raise HTTPException(status_code=404, detail="No document loaded in this session")
    return ContextResponse(line_number=line, lines=explorer.context(line, window))
