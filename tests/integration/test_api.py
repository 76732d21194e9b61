"""Integration tests for the FastAPI REST API."""

from __future__ import annotations

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from yamler.api.app import create_app, explorer_factory
from yamler.api.deps import init_fetcher, init_session_manager, reset_dependencies
from yamler.service.fetcher import DocumentFetcher
from yamler.service.session_manager import SessionManager
from yamler.settings import Settings
from tests.conftest import (
    BLOB_VALUES_URL,
    BROKEN_VALUES_URL,
    MISSING_VALUES_URL,
    RAW_VALUES_URL,
    SAMPLE_VALUES_PATHS,
)


@pytest.fixture
async def app(mock_transport: httpx.MockTransport):
    settings = Settings(session_ttl_seconds=3600, session_cleanup_interval=9999)
    app = create_app(settings=settings)
    # Manually init dependencies (ASGITransport doesn't trigger lifespan)
    mgr = SessionManager(
        ttl_seconds=settings.session_ttl_seconds,
        cleanup_interval=settings.session_cleanup_interval,
        session_factory=explorer_factory(settings),
    )
    init_session_manager(mgr)
    async with httpx.AsyncClient(transport=mock_transport) as upstream:
        init_fetcher(DocumentFetcher(upstream))
        yield app
    reset_dependencies()


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def _session_with_document(client: AsyncClient, url: str = RAW_VALUES_URL) -> str:
    sid = (await client.post("/sessions")).json()["session_id"]
    response = await client.post(f"/sessions/{sid}/document", json={"url": url})
    assert response.status_code == 200, response.text
    return sid


# ---------------------------------------------------------------------------
# Health & URLs
# ---------------------------------------------------------------------------


class TestHealthEndpoint:
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "version" in data

    async def test_timing_header(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert "x-request-duration-ms" in response.headers


class TestNormalizeEndpoint:
    async def test_blob_url(self, client: AsyncClient) -> None:
        response = await client.post("/urls/normalize", json={"url": BLOB_VALUES_URL})
        assert response.status_code == 200
        assert response.json() == {
            "url": BLOB_VALUES_URL,
            "raw_url": RAW_VALUES_URL,
            "changed": True,
        }

    async def test_raw_url(self, client: AsyncClient) -> None:
        response = await client.post("/urls/normalize", json={"url": RAW_VALUES_URL})
        assert response.json()["changed"] is False


# ---------------------------------------------------------------------------
# Session endpoints
# ---------------------------------------------------------------------------


class TestSessionEndpoints:
    async def test_create_session(self, client: AsyncClient) -> None:
        response = await client.post("/sessions")
        assert response.status_code == 201
        data = response.json()
        assert "session_id" in data
        assert data["entry_count"] == 0

    async def test_create_session_with_metadata(self, client: AsyncClient) -> None:
        response = await client.post("/sessions", json={"metadata": {"env": "test"}})
        assert response.status_code == 201
        assert response.json()["metadata"] == {"env": "test"}

    async def test_list_sessions(self, client: AsyncClient) -> None:
        await client.post("/sessions")
        await client.post("/sessions")
        response = await client.get("/sessions")
        assert response.status_code == 200
        assert len(response.json()["sessions"]) == 2

    async def test_list_sessions_disabled(self, client: AsyncClient) -> None:
        from yamler.api.deps import get_session_manager

        init_session_manager(get_session_manager(), disable_session_list=True)
        response = await client.get("/sessions")
        assert response.status_code == 403

    async def test_get_session(self, client: AsyncClient) -> None:
        sid = await _session_with_document(client)
        response = await client.get(f"/sessions/{sid}")
        assert response.status_code == 200
        data = response.json()
        assert data["session_id"] == sid
        assert data["entry_count"] == len(SAMPLE_VALUES_PATHS)
        assert data["source_url"] == RAW_VALUES_URL

    async def test_get_missing_session(self, client: AsyncClient) -> None:
        response = await client.get("/sessions/nonexist123")
        assert response.status_code == 404

    async def test_delete_session(self, client: AsyncClient) -> None:
        sid = (await client.post("/sessions")).json()["session_id"]
        response = await client.delete(f"/sessions/{sid}")
        assert response.status_code == 204
        response = await client.get(f"/sessions/{sid}")
        assert response.status_code == 404

    async def test_delete_missing_session(self, client: AsyncClient) -> None:
        response = await client.delete("/sessions/nonexist123")
        assert response.status_code == 404


# ---------------------------------------------------------------------------
# Document loading
# ---------------------------------------------------------------------------


class TestDocumentLoad:
    async def test_load_blob_url(self, client: AsyncClient) -> None:
        sid = (await client.post("/sessions")).json()["session_id"]
        response = await client.post(f"/sessions/{sid}/document", json={"url": BLOB_VALUES_URL})
        assert response.status_code == 200
        data = response.json()
        assert data["raw_url"] == RAW_VALUES_URL
        count = len(SAMPLE_VALUES_PATHS)
        assert data["entry_count"] == count
        assert data["message"] == f"YAML loaded successfully ({count} entries found)"

    async def test_load_missing_session(self, client: AsyncClient) -> None:
        response = await client.post("/sessions/nonexist123/document", json={"url": RAW_VALUES_URL})
        assert response.status_code == 404

    @pytest.mark.parametrize(
        ("url", "status", "error", "message"),
        [
            ("", 400, "INPUT_ERROR", "Please enter a URL"),
            ("ftp://example.com/values.yaml", 400, "INPUT_ERROR", "Please enter a valid URL"),
            (MISSING_VALUES_URL, 502, "FETCH_ERROR", "Failed to fetch the file"),
            ("http://", 502, "FETCH_ERROR", "Failed to fetch the file"),
            ("https://[::1/x.yaml", 502, "FETCH_ERROR", "Failed to fetch the file"),
            (BROKEN_VALUES_URL, 422, "PARSE_ERROR", "Invalid YAML format"),
        ],
    )
    async def test_load_errors(
        self, client: AsyncClient, url: str, status: int, error: str, message: str
    ) -> None:
        sid = await _session_with_document(client)
        response = await client.post(f"/sessions/{sid}/document", json={"url": url})
        assert response.status_code == status
        detail = response.json()["detail"]
        assert detail["error"] == error
        assert detail["message"].startswith(message)

        # The failed load leaves nothing behind from the previous document.
        status_body = (await client.get(f"/sessions/{sid}/document")).json()
        assert status_body["entry_count"] == 0
        assert status_body["error"].startswith(message)
        assert status_body["message"] == ""
        entries = (await client.get(f"/sessions/{sid}/entries")).json()
        assert entries["total"] == 0

    async def test_document_status(self, client: AsyncClient) -> None:
        sid = await _session_with_document(client, BLOB_VALUES_URL)
        data = (await client.get(f"/sessions/{sid}/document")).json()
        assert data["source_url"] == BLOB_VALUES_URL
        assert data["raw_url"] == RAW_VALUES_URL
        assert data["loading"] is False
        assert data["error"] == ""


# ---------------------------------------------------------------------------
# Entries, search, context
# ---------------------------------------------------------------------------


class TestEntries:
    async def test_list_entries(self, client: AsyncClient) -> None:
        sid = await _session_with_document(client)
        data = (await client.get(f"/sessions/{sid}/entries")).json()
        assert data["total"] == len(SAMPLE_VALUES_PATHS)
        assert [e["path"] for e in data["entries"]] == SAMPLE_VALUES_PATHS
        first = data["entries"][0]
        assert first == {
            "path": "replicaCount", "key": "replicaCount", "value": 1, "line_number": 1
        }

    async def test_paging(self, client: AsyncClient) -> None:
        sid = await _session_with_document(client)
        params = {"offset": 4, "limit": 3}
        data = (await client.get(f"/sessions/{sid}/entries", params=params)).json()
        assert [e["path"] for e in data["entries"]] == SAMPLE_VALUES_PATHS[4:7]
        assert data["total"] == len(SAMPLE_VALUES_PATHS)


class TestSearchEndpoint:
    async def test_search(self, client: AsyncClient) -> None:
        sid = await _session_with_document(client)
        response = await client.get(f"/sessions/{sid}/search", params={"q": "webhook port"})
        assert response.status_code == 200
        data = response.json()
        assert data["count"] >= 1
        top = data["results"][0]
        assert top["path"] == "webhook.port"
        assert top["line_number"] == 11
        target = [line for line in top["context"] if line["is_target"]]
        assert target == [{"line_number": 12, "content": "  port: 9443", "is_target": True}]

    async def test_search_without_context(self, client: AsyncClient) -> None:
        sid = await _session_with_document(client)
        data = (
            await client.get(f"/sessions/{sid}/search", params={"q": "tag", "context": "false"})
        ).json()
        assert data["results"][0]["context"] == []

    async def test_empty_query(self, client: AsyncClient) -> None:
        sid = await _session_with_document(client)
        data = (await client.get(f"/sessions/{sid}/search", params={"q": ""})).json()
        assert data["count"] == 0
        assert data["no_results"] is False

    async def test_no_results(self, client: AsyncClient) -> None:
        sid = await _session_with_document(client)
        data = (await client.get(f"/sessions/{sid}/search", params={"q": "zzzzz"})).json()
        assert data["count"] == 0
        assert data["no_results"] is True
        assert data["message"] == 'No results found for "zzzzz"'


class TestContextEndpoint:
    async def test_context(self, client: AsyncClient) -> None:
        sid = await _session_with_document(client)
        data = (
            await client.get(f"/sessions/{sid}/context", params={"line": 10, "window": 1})
        ).json()
        assert [line["line_number"] for line in data["lines"]] == [10, 11, 12]
        assert [line["is_target"] for line in data["lines"]] == [False, True, False]

    async def test_context_clamps(self, client: AsyncClient) -> None:
        sid = await _session_with_document(client)
        data = (await client.get(f"/sessions/{sid}/context", params={"line": 500})).json()
        assert data["lines"][-1]["is_target"] is True

    async def test_context_without_document(self, client: AsyncClient) -> None:
        sid = (await client.post("/sessions")).json()["session_id"]
        response = await client.get(f"/sessions/{sid}/context", params={"line": 0})
        assert response.status_code == 404


# ---------------------------------------------------------------------------
# Session isolation
# ---------------------------------------------------------------------------


class TestSessionIsolation:
    async def test_document_in_session_a_not_visible_in_b(self, client: AsyncClient) -> None:
        sid_a = await _session_with_document(client)
        sid_b = (await client.post("/sessions")).json()["session_id"]

        entries_a = (await client.get(f"/sessions/{sid_a}/entries")).json()
        entries_b = (await client.get(f"/sessions/{sid_b}/entries")).json()

        assert entries_a["total"] == len(SAMPLE_VALUES_PATHS)
        assert entries_b["total"] == 0
