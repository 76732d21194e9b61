"""Dependency injection for FastAPI: SessionManager and DocumentFetcher singletons."""

from __future__ import annotations

from yamler.service.fetcher import DocumentFetcher
from yamler.service.session_manager import SessionManager

_session_manager: SessionManager | None = None
_fetcher: DocumentFetcher | None = None
_disable_session_list: bool = False


def init_session_manager(
    manager: SessionManager, *, disable_session_list: bool = False
) -> None:
    """Set the global SessionManager (called at app startup)."""
    global _session_manager, _disable_session_list  # noqa: PLW0603
    _session_manager = manager
    _disable_session_list = disable_session_list


def init_fetcher(fetcher: DocumentFetcher) -> None:
    """Set the global DocumentFetcher (called at app startup, or by tests)."""
    global _fetcher  # noqa: PLW0603
    _fetcher = fetcher


def get_session_manager() -> SessionManager:
    """FastAPI ``Depends`` provider for SessionManager."""
    if _session_manager is None:
        raise RuntimeError("SessionManager not initialised; call init_session_manager() first")
    return _session_manager


def get_fetcher() -> DocumentFetcher:
    """FastAPI ``Depends`` provider for DocumentFetcher."""
    if _fetcher is None:
        raise RuntimeError("DocumentFetcher not initialised; call init_fetcher() first")
    return _fetcher


def is_session_list_disabled() -> bool:
    """Return True when the GET /sessions endpoint is suppressed."""
    return _disable_session_list


def reset_dependencies() -> None:
    """Clear the global singletons (for tests)."""
    global _session_manager, _fetcher, _disable_session_list  # noqa: PLW0603
    _session_manager = None
    _fetcher = None
    _disable_session_list = False
