"""FastAPI application factory for Yamler."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from functools import partial

import uvicorn
from fastapi import FastAPI

from yamler import __version__
from yamler.api.deps import init_fetcher, init_session_manager, reset_dependencies
from yamler.api.middleware import RequestBodyLimitMiddleware, RequestTimingMiddleware
from yamler.api.routers import sessions, urls
from yamler.api.schemas import HealthResponse
from yamler.service.explorer import ExplorerSession
from yamler.service.fetcher import DocumentFetcher
from yamler.service.session_manager import SessionManager
from yamler.settings import Settings


def explorer_factory(settings: Settings) -> Callable[[], ExplorerSession]:
    """Build ExplorerSession instances configured from *settings*."""
    return partial(
        ExplorerSession,
        locator=settings.line_locator,
        threshold=settings.search_threshold,
        distance=settings.search_distance,
        context_window=settings.context_window,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Start/stop the SessionManager and HTTP client alongside the application."""
    settings: Settings = app.state.settings
    mgr = SessionManager(
        ttl_seconds=settings.session_ttl_seconds,
        cleanup_interval=settings.session_cleanup_interval,
        session_factory=explorer_factory(settings),
    )
    fetcher = DocumentFetcher(
        timeout=settings.fetch_timeout_seconds,
        max_document_size=settings.max_document_size,
    )
    mgr.start()
    init_session_manager(mgr, disable_session_list=settings.disable_session_list)
    init_fetcher(fetcher)
    try:
        yield
    finally:
        mgr.stop()
        await fetcher.aclose()
        reset_dependencies()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="Yamler",
        description="Fetch Helm values files and fuzzy-search their dotted key paths.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Middleware
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(RequestBodyLimitMiddleware)

    app.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
    app.include_router(urls.router, prefix="/urls", tags=["urls"])

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    return app


def main() -> None:
    """Run the REST API server using settings from environment / .env file."""
    settings = Settings()

    logging.basicConfig(level=settings.log_level.upper())
    logger = logging.getLogger("yamler.api")
    logger.info(
        "Yamler API Server v%s starting (host=%s, port=%d)",
        __version__, settings.api_server_host, settings.effective_port,
    )

    uvicorn.run(
        "yamler.api.app:create_app",
        factory=True,
        host=settings.api_server_host,
        port=settings.effective_port,
        log_level=settings.log_level.lower(),
    )
