"""Explorer session: the per-client document, entries, and search state."""

from __future__ import annotations

import logging
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from yamler.models.document import ContextLine, Entry, YamlDocument
from yamler.models.errors import YamlerError
from yamler.parser.flattener import Flattener, LocatorName
from yamler.parser.loader import TrackedLoader, to_plain
from yamler.parser.urls import normalize_url, validate_url
from yamler.service.context import DEFAULT_WINDOW, context_lines
from yamler.service.search import DEFAULT_DISTANCE, DEFAULT_THRESHOLD, SearchIndex

logger = logging.getLogger("yamler.service")

FetchFn = Callable[[str], Awaitable[str]]

_UNEXPECTED_LOAD_ERROR = "Failed to load the file"

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _DocumentState:
    """Everything produced by one load; replaced as a whole, never edited."""

    document: YamlDocument | None = None
    entries: tuple[Entry, ...] = ()
    index: SearchIndex | None = None
    error: str = ""
    loading: bool = False


@dataclass(frozen=True)
class SearchMatch:
    """One ranked result with its rendered context window."""

    entry: Entry
    score: float
    context: list[ContextLine] = field(default_factory=list)


@dataclass(frozen=True)
class SearchView:
    """The current query and its results."""

    term: str = ""
    matches: tuple[SearchMatch, ...] = ()
    no_results: bool = False

    @property
    def message(self) -> str:
        if self.no_results:
            return f'No results found for "{self.term}"'
        if self.matches:
            return f"Found {len(self.matches)} result(s)"
        return ""


@dataclass
class LoadResult:
    """Outcome of :meth:`ExplorerSession.load`."""

    source_url: str
    raw_url: str
    entry_count: int
    message: str
    superseded: bool = False


@dataclass
class SessionStatus:
    """Snapshot of a session for display."""

    source_url: str
    raw_url: str
    entry_count: int
    loading: bool
    error: str
    message: str


def success_message(entry_count: int) -> str:
    return f"YAML loaded successfully ({entry_count} entries found)"


# ---------------------------------------------------------------------------
# ExplorerSession
# ---------------------------------------------------------------------------


class ExplorerSession:
    """Holds one loaded document and the search state over it.

    State is kept in immutable snapshots swapped under a lock, so readers see
    either the previous document or the next one, never a partial list.
    Every load takes a ticket; only the newest ticket may install its result,
    so a slow fetch that finishes after a newer load started is discarded.
    """

    def __init__(
        self,
        *,
        locator: LocatorName = "scan",
        threshold: float = DEFAULT_THRESHOLD,
        distance: int = DEFAULT_DISTANCE,
        context_window: int = DEFAULT_WINDOW,
        loader: TrackedLoader | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._loader = loader or TrackedLoader()
        self._flattener = Flattener(self._loader, locator=locator)
        self._threshold = threshold
        self._distance = distance
        self._context_window = context_window
        self._ticket = 0
        self._state = _DocumentState()
        self._search = SearchView()

    # -- read-only views -----------------------------------------------------

    @property
    def document(self) -> YamlDocument | None:
        return self._state.document

    @property
    def entries(self) -> tuple[Entry, ...]:
        return self._state.entries

    @property
    def entry_count(self) -> int:
        return len(self._state.entries)

    @property
    def error(self) -> str:
        return self._state.error

    @property
    def last_search(self) -> SearchView:
        return self._search

    def status(self) -> SessionStatus:
        state = self._state
        doc = state.document
        loaded = doc is not None and not state.error
        return SessionStatus(
            source_url=doc.source_url if doc else "",
            raw_url=doc.raw_url if doc else "",
            entry_count=len(state.entries),
            loading=state.loading,
            error=state.error,
            message=success_message(len(state.entries)) if loaded else "",
        )

    # -- loading -------------------------------------------------------------

    def _begin_load(self) -> int:
        with self._lock:
            self._ticket += 1
            self._state = _DocumentState(loading=True)
            self._search = SearchView()
            return self._ticket

    def _install(self, ticket: int, state: _DocumentState) -> bool:
        """Swap in *state* if *ticket* is still the newest load."""
        with self._lock:
            if ticket != self._ticket:
                return False
            self._state = state
            self._search = SearchView()
            return True

    def _build(self, text: str, source_url: str, raw_url: str) -> _DocumentState:
        tree = self._loader.parse(text)
        entries = tuple(self._flattener.flatten_tree(tree, text))
        document = YamlDocument(
            text=text, data=to_plain(tree), source_url=source_url, raw_url=raw_url
        )
        index = SearchIndex(entries, threshold=self._threshold, distance=self._distance)
        return _DocumentState(document=document, entries=entries, index=index)

    async def load(self, url: str, fetch: FetchFn) -> LoadResult:
        """Validate, normalize, fetch, and flatten *url* into this session.

        Previous state is cleared as soon as the load starts.  Raises
        ``InputError``, ``FetchError`` or ``ParseError``; on those and on any
        other exception the session is left empty, not loading, with an error
        message recorded.
        """
        ticket = self._begin_load()
        source_url = url.strip()
        raw_url = ""
        try:
            source_url = validate_url(url)
            raw_url = normalize_url(source_url)
            text = await fetch(raw_url)
            logger.debug("Fetched %s (%d chars)", raw_url, len(text))
            state = self._build(text, source_url, raw_url)
        except YamlerError as exc:
            if not self._install(ticket, _DocumentState(error=str(exc))):
                logger.info("Discarding failed load of %s: superseded", source_url)
                return LoadResult(source_url, raw_url, 0, "", superseded=True)
            logger.warning("Load of %r failed: %s", source_url, exc)
            raise
        except Exception:
            self._install(ticket, _DocumentState(error=_UNEXPECTED_LOAD_ERROR))
            logger.exception("Load of %r failed unexpectedly", source_url)
            raise

        if not self._install(ticket, state):
            logger.info("Discarding load of %s: superseded by a newer request", source_url)
            return LoadResult(source_url, raw_url, 0, "", superseded=True)

        count = len(state.entries)
        logger.info("Loaded %s (%d entries)", raw_url, count)
        return LoadResult(source_url, raw_url, count, success_message(count))

    def clear(self) -> None:
        """Drop the document and cancel interest in any in-flight load."""
        with self._lock:
            self._ticket += 1
            self._state = _DocumentState()
            self._search = SearchView()

    # -- search & display ----------------------------------------------------

    def context(self, line_number: int, window_size: int | None = None) -> list[ContextLine]:
        """Source lines around *line_number* (0-based) of the loaded document."""
        document = self._state.document
        if document is None:
            return []
        window = self._context_window if window_size is None else window_size
        return context_lines(document.text, line_number, window)

    def search(self, term: str, *, with_context: bool = True) -> SearchView:
        """Run *term* against the loaded entries and remember it as the current search."""
        state = self._state
        results = state.index.search(term) if state.index is not None else []
        text = state.document.text if with_context and state.document is not None else None
        matches = tuple(
            SearchMatch(
                entry=result.entry,
                score=result.score,
                context=(
                    context_lines(text, result.entry.line_number, self._context_window)
                    if text is not None
                    else []
                ),
            )
            for result in results
        )
        view = SearchView(
            term=term,
            matches=matches,
            no_results=bool(term.strip()) and not matches and bool(state.entries),
        )
        with self._lock:
            if self._state is state:
                self._search = view
        return view
