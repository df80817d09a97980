"""HTTP fetcher: URL normalisation, validation and a hard-timeout GET."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Optional
from urllib.parse import urlsplit

import httpx

from backend.config import settings
from backend.scraper.models import ExtractionError, RawPage

logger = logging.getLogger(__name__)

_SCHEME = re.compile(r"^[a-z][a-z0-9+.\-]*://", re.IGNORECASE)
# A scheme not followed by a port number, e.g. "mailto:" but not "example.com:8080".
_OPAQUE_SCHEME = re.compile(r"^[a-z][a-z0-9+.\-]*:(?!\d+(?:[/?#]|$))", re.IGNORECASE)
_ALLOWED_SCHEMES = ("http", "https")

_DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
}

PASTE_SUGGESTION = "Try copying the article text and using paste mode instead"


def normalize_url(url: str) -> str:
    """Trim *url* and prepend ``https://`` when it carries no scheme.

    Opaque URIs such as ``mailto:x@y.com`` are returned as-is so that
    validation rejects their scheme.
    """
    url = url.strip()
    if not _SCHEME.match(url) and not _OPAQUE_SCHEME.match(url):
        url = "https://" + url
    return url


def validate_url(url: str) -> str:
    """Return *url* unchanged if it is a well-formed http(s) URL.

    Raises:
        ExtractionError: ``INVALID_URL`` for malformed URLs or other schemes.
    """
    try:
        parts = urlsplit(url)
        # Accessing .port validates the netloc's port component.
        parts.port
    except ValueError as exc:
        raise ExtractionError(
            "INVALID_URL",
            "Invalid URL format",
            "Make sure you're pasting a complete URL starting with http:// or https://",
        ) from exc

    if parts.scheme.lower() not in _ALLOWED_SCHEMES:
        raise ExtractionError("INVALID_URL", "Invalid URL protocol. Use http or https.")
    if not parts.hostname or any(ch.isspace() for ch in url):
        raise ExtractionError(
            "INVALID_URL",
            "Invalid URL format",
            "Make sure you're pasting a complete URL starting with http:// or https://",
        )
    return url


async def _get(url: str) -> httpx.Response:
    async with httpx.AsyncClient(
        headers=_DEFAULT_HEADERS,
        timeout=settings.request_timeout,
        follow_redirects=True,
    ) as client:
        return await client.get(url)


async def fetch_url(url: str, timeout: Optional[float] = None) -> RawPage:
    """Fetch *url* and return a :class:`RawPage` for the final (post-redirect) URL.

    The whole request is bounded by *timeout* seconds (``settings.request_timeout``
    by default); on expiry the in-flight request is cancelled.

    Raises:
        ExtractionError: ``TIMEOUT``, ``BLOCKED`` (401/403) or ``FETCH_FAILED``.
    """
    limit = settings.request_timeout if timeout is None else timeout
    try:
        response = await asyncio.wait_for(_get(url), timeout=limit)
    except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
        raise ExtractionError(
            "TIMEOUT",
            "Request timed out",
            "The site is taking too long. Try pasting the content instead.",
        ) from exc
    except httpx.InvalidURL as exc:
        raise ExtractionError(
            "INVALID_URL",
            "Invalid URL format",
            "Make sure you're pasting a complete URL starting with http:// or https://",
        ) from exc
    except httpx.HTTPError as exc:
        logger.warning("[fetch] Transport failure for %s: %s", url, exc)
        raise ExtractionError(
            "FETCH_FAILED",
            "Failed to fetch the URL",
            "Check if the URL is correct and accessible",
        ) from exc

    status = response.status_code
    if status in (401, 403):
        raise ExtractionError("BLOCKED", "This site is blocking access", PASTE_SUGGESTION)
    if status == 404:
        raise ExtractionError("FETCH_FAILED", "Article not found")
    if not response.is_success:
        raise ExtractionError("FETCH_FAILED", f"Failed to fetch: HTTP {status}")

    return RawPage(url=str(response.url), html=response.text, status_code=status)
