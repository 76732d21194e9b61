"""URL checks and GitHub blob → raw-content rewriting."""

from __future__ import annotations

from yamler.models.errors import InputError

RAW_CONTENT_HOST = "raw.githubusercontent.com"
REPOSITORY_HOST = "github.com"
BLOB_MARKER = "/blob/"

_ALLOWED_SCHEMES = ("http://", "https://")


def normalize_url(url: str) -> str:
    """Turn a GitHub file-view URL into a URL serving the file's raw bytes.

    URLs already on the raw-content host, and URLs that are not GitHub blob
    views, are returned unchanged.
    """
    if RAW_CONTENT_HOST in url:
        return url
    if REPOSITORY_HOST in url and BLOB_MARKER in url:
        return url.replace(REPOSITORY_HOST, RAW_CONTENT_HOST, 1).replace(BLOB_MARKER, "/", 1)
    return url


def validate_url(url: str) -> str:
    """Return the trimmed URL, or raise :class:`InputError` before any network access."""
    url = url.strip()
    if not url:
        raise InputError("Please enter a URL")
    if not url.startswith(_ALLOWED_SCHEMES):
        raise InputError("Please enter a valid URL (must start with http:// or https://)")
    return url
