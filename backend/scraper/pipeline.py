"""URL → article pipeline.

``fetch_and_extract`` composes the fetcher and the extractor and converts any
:class:`ExtractionError` into a :class:`FetchFailure`, so callers only ever
see a tagged outcome:

    normalise → validate → fetch → extract
"""

from __future__ import annotations

import asyncio
import logging

from backend.scraper.extractor import extract_article
from backend.scraper.fetcher import fetch_url, normalize_url, validate_url
from backend.scraper.models import (
    ExtractionError,
    FetchFailure,
    FetchOutcome,
    FetchSuccess,
)

logger = logging.getLogger(__name__)


async def fetch_and_extract(url: str) -> FetchOutcome:
    """Fetch *url* and extract its article.

    Never raises for network or extraction problems; those come back as a
    :class:`FetchFailure` carrying one of the fetch error codes.
    """
    try:
        target = validate_url(normalize_url(url))
        logger.info("[fetch] Fetching article from: %s", target)
        raw = await fetch_url(target)
        # readability scoring is CPU-bound; keep it off the event loop.
        article, canonical_url = await asyncio.to_thread(extract_article, raw)
    except ExtractionError as exc:
        logger.warning("[fetch] Failed (%s): %s", exc.code, exc.message)
        return FetchFailure(code=exc.code, message=exc.message, suggestion=exc.suggestion)  # type: ignore[arg-type]

    logger.info(
        "[fetch] Success: %r (%d words, %d paragraphs)",
        article.title,
        article.word_count,
        len(article.paragraphs),
    )
    return FetchSuccess(article=article, url=raw.url, canonical_url=canonical_url)
