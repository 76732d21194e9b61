"""Session management for TTL-scoped ExplorerSession instances."""

from __future__ import annotations

import secrets
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from yamler.service.explorer import ExplorerSession


class SessionNotFoundError(KeyError):
    """Raised when a session ID is not found or has expired."""


@dataclass
class SessionInfo:
    """Public session metadata (returned by list/get)."""

    session_id: str
    created_at: datetime
    last_accessed_at: datetime
    entry_count: int
    source_url: str
    metadata: dict[str, str]


@dataclass
class _Session:
    explorer: ExplorerSession
    metadata: dict[str, str]
    session_id: str = field(default_factory=lambda: secrets.token_hex(16))
    touched: float = field(default_factory=time.monotonic)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_accessed_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def info(self) -> SessionInfo:
        status = self.explorer.status()
        return SessionInfo(
            session_id=self.session_id,
            created_at=self.created_at,
            last_accessed_at=self.last_accessed_at,
            entry_count=status.entry_count,
            source_url=status.source_url,
            metadata=self.metadata,
        )


class SessionManager:
    """Per-client explorer sessions that expire after *ttl_seconds* idle.

    Expired sessions are dropped lazily on access and periodically by a
    daemon thread started with :meth:`start`.  Each session gets a fresh
    explorer from *session_factory*.
    """

    def __init__(
        self,
        ttl_seconds: float = 1800,
        cleanup_interval: float = 60,
        session_factory: Callable[[], ExplorerSession] = ExplorerSession,
    ) -> None:
        self._ttl = ttl_seconds
        self._cleanup_interval = cleanup_interval
        self._session_factory = session_factory
        self._lock = threading.Lock()
        self._sessions: dict[str, _Session] = {}
        self._stop_event = threading.Event()
        self._cleanup_thread: threading.Thread | None = None

    def _expired(self, session: _Session, now: float) -> bool:
        return now - session.touched > self._ttl

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> None:
        if self._cleanup_thread is not None:
            return
        self._stop_event.clear()
        self._cleanup_thread = threading.Thread(
            target=self._cleanup_loop, daemon=True, name="session-cleanup"
        )
        self._cleanup_thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._cleanup_thread is not None:
            self._cleanup_thread.join(timeout=5)
            self._cleanup_thread = None

    # -- public API ----------------------------------------------------------

    def create_session(self, metadata: dict[str, str] | None = None) -> SessionInfo:
        session = _Session(explorer=self._session_factory(), metadata=metadata or {})
        with self._lock:
            self._sessions[session.session_id] = session
        return session.info()

    def _touch(self, session_id: str) -> _Session:
        """Return the live session for *session_id*.  Caller holds the lock."""
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session '{session_id}' not found")
        now = time.monotonic()
        if self._expired(session, now):
            del self._sessions[session_id]
            raise SessionNotFoundError(f"Session '{session_id}' has expired")
        session.touched = now
        session.last_accessed_at = datetime.now(UTC)
        return session

    def get_explorer(self, session_id: str) -> ExplorerSession:
        """The explorer behind *session_id*; raises :class:`SessionNotFoundError`."""
        with self._lock:
            return self._touch(session_id).explorer

    def get_session(self, session_id: str) -> SessionInfo:
        with self._lock:
            session = self._touch(session_id)
        return session.info()

    def close_session(self, session_id: str) -> None:
        """Close a session; any in-flight load is discarded."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(f"Session '{session_id}' not found")
        session.explorer.clear()

    def _live(self) -> list[_Session]:
        now = time.monotonic()
        with self._lock:
            return [s for s in self._sessions.values() if not self._expired(s, now)]

    def list_sessions(self) -> list[SessionInfo]:
        return [session.info() for session in self._live()]

    @property
    def active_count(self) -> int:
        return len(self._live())

    # -- cleanup -------------------------------------------------------------

    def _purge_expired(self) -> None:
        now = time.monotonic()
        with self._lock:
            for sid in [sid for sid, s in self._sessions.items() if self._expired(s, now)]:
                del self._sessions[sid]

    def _cleanup_loop(self) -> None:
        while not self._stop_event.wait(timeout=self._cleanup_interval):
            self._purge_expired()
