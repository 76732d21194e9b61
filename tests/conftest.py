"""Shared test fixtures for Yamler."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import httpx
import pytest

from yamler.models.errors import FetchError
from yamler.parser.flattener import Flattener
from yamler.parser.loader import TrackedLoader
from yamler.service.explorer import ExplorerSession
from yamler.service.fetcher import DocumentFetcher
from yamler.service.session_manager import SessionManager

RAW_VALUES_URL = "https://raw.githubusercontent.com/acme/charts/main/values.yaml"
BLOB_VALUES_URL = "https://github.com/acme/charts/blob/main/values.yaml"
BROKEN_VALUES_URL = "https://raw.githubusercontent.com/acme/charts/main/broken.yaml"
SMALL_VALUES_URL = "https://example.com/small-values.yaml"
MISSING_VALUES_URL = "https://raw.githubusercontent.com/acme/charts/main/missing.yaml"

# 0-based line numbers are noted on the right.
SAMPLE_VALUES_YAML = """\
# Default values for demo-chart.
replicaCount: 1

image:
  repository: nginx
  pullPolicy: IfNotPresent
  tag: ""

webhook:
  enabled: true
  replicas: 2
  port: 9443

service:
  type: ClusterIP
  port: 80

tolerations: []

extraArgs:
  - --verbose
  - --log-level=debug

nodeSelector: {}
"""
#  1 replicaCount           9 webhook.enabled     14 service.type
#  4 image.repository      10 webhook.replicas    15 service.port
#  5 image.pullPolicy      11 webhook.port        19 extraArgs.[0], extraArgs.[1]
#  6 image.tag

SAMPLE_VALUES_PATHS = [
    "replicaCount",
    "image.repository",
    "image.pullPolicy",
    "image.tag",
    "webhook.enabled",
    "webhook.replicas",
    "webhook.port",
    "service.type",
    "service.port",
    "extraArgs.[0]",
    "extraArgs.[1]",
]

# Five leaf keys; "timeoutSeconds" sits on 0-based line 2.
SMALL_VALUES_YAML = """\
webhook:
  replicas: 3
  timeoutSeconds: 10
service:
  type: ClusterIP
  port: 443
logLevel: info
"""

BROKEN_YAML = "image:\n  tag: [unclosed\n"

FetchFn = Callable[[str], Awaitable[str]]


_DOCUMENTS = {
    RAW_VALUES_URL: SAMPLE_VALUES_YAML,
    BROKEN_VALUES_URL: BROKEN_YAML,
    SMALL_VALUES_URL: SMALL_VALUES_YAML,
}


def _serve(request: httpx.Request) -> httpx.Response:
    body = _DOCUMENTS.get(str(request.url))
    if body is None:
        return httpx.Response(404, text="404: Not Found")
    return httpx.Response(200, text=body)


@pytest.fixture
def loader() -> TrackedLoader:
    return TrackedLoader()


@pytest.fixture
def flattener(loader: TrackedLoader) -> Flattener:
    return Flattener(loader)


@pytest.fixture
def explorer() -> ExplorerSession:
    return ExplorerSession()


@pytest.fixture
def mock_transport() -> httpx.MockTransport:
    """Serves the sample documents above; everything else is a 404."""
    return httpx.MockTransport(_serve)


@pytest.fixture
async def fetcher(mock_transport: httpx.MockTransport):
    async with httpx.AsyncClient(transport=mock_transport) as client:
        yield DocumentFetcher(client)


@pytest.fixture
def fake_fetch() -> FetchFn:
    """A fetch function over the sample documents, without httpx."""
    async def fetch(url: str) -> str:
        try:
            return _DOCUMENTS[url]
        except KeyError:
            raise FetchError(url=url, status_code=404) from None

    return fetch


@pytest.fixture
def session_manager() -> SessionManager:
    """SessionManager with long TTL and no cleanup thread (for tests)."""
    return SessionManager(ttl_seconds=3600, cleanup_interval=9999)
