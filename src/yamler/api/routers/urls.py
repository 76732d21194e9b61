"""Stateless URL endpoint: POST /urls/normalize."""

from __future__ import annotations

from fastapi import APIRouter

from yamler.api.schemas import UrlNormalizeRequest, UrlNormalizeResponse
from yamler.parser.urls import normalize_url

router = APIRouter()


@router.post("/normalize", response_model=UrlNormalizeResponse)
async def normalize(body: UrlNormalizeRequest) -> UrlNormalizeResponse:
    """Return the raw-content URL a document would be fetched from."""
    raw_url = normalize_url(body.url)
    return UrlNormalizeResponse(url=body.url, raw_url=raw_url, changed=raw_url != body.url)
