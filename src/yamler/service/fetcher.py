"""Async retrieval of remote YAML documents over HTTP."""

from __future__ import annotations

import logging

import httpx

from yamler import __version__
from yamler.models.errors import FetchError

logger = logging.getLogger("yamler.service")

_HEADERS = {"User-Agent": f"yamler/{__version__}", "Accept": "text/plain, */*"}


class DocumentFetcher:
    """GET a URL and return its body as UTF-8 text.

    A transport failure, a URL httpx cannot parse, or a non-2xx status all
    become :class:`FetchError`; nothing is retried.  Pass an
    ``httpx.AsyncClient`` to control transport (tests use
    ``httpx.MockTransport``); otherwise one is created lazily and closed by
    :meth:`aclose`.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float = 30.0,
        max_document_size: int = 5_000_000,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._max_document_size = max_document_size

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout, follow_redirects=True, headers=_HEADERS
            )
        return self._client

    async def fetch(self, url: str) -> str:
        client = self._get_client()
        try:
            response = await client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            logger.warning("Fetch of %s failed: %s", url, exc)
            raise FetchError(url=url) from exc

        if not response.is_success:
            logger.warning("Fetch of %s returned HTTP %d", url, response.status_code)
            raise FetchError(url=url, status_code=response.status_code)

        text = response.content.decode("utf-8-sig", errors="replace")
        if len(text) > self._max_document_size:
            raise FetchError(
                f"Fetched document exceeds maximum size "
                f"({len(text):,} chars > {self._max_document_size:,} limit)",
                url=url,
            )
        return text

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
