"""Content extraction: turns a :class:`RawPage` into an :class:`ExtractedArticle`.

readability-lxml does the density/structure scoring that isolates the article
body.  trafilatura mines the byline, site name and title, and BeautifulSoup
handles everything read straight off the DOM (paragraphs, canonical link,
publication date, paywall markers).
"""

from __future__ import annotations

import logging
import re
from datetime import timezone
from typing import List, Optional, Tuple
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup
from dateutil import parser as date_parser
from readability import Document
from readability.readability import Unparseable
from trafilatura.metadata import extract_metadata

from backend.config import settings
from backend.scraper.models import ExtractedArticle, ExtractionError, RawPage
from backend.scraper.segmenter import (
    count_words,
    estimate_read_time,
    split_into_paragraphs,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tunables
# ---------------------------------------------------------------------------
FETCH_CHAR_THRESHOLD = 100
PASTE_CHAR_THRESHOLD = 50
MIN_CONTENT_CHARS = 200
MIN_PARAGRAPH_CHARS = 20
MAX_AUTHOR_CHARS = 100
DEFAULT_TITLE = "Untitled Article"

PAYWALL_INDICATORS = (
    "paywall",
    "subscribe-wall",
    "subscriber-only",
    "premium-content",
    "registration-wall",
)

# Checked in order; the first element carrying a parseable date wins.
_DATE_SELECTORS = (
    'meta[property="article:published_time"]',
    'meta[name="publication_date"]',
    'meta[name="date"]',
    'meta[property="og:published_time"]',
    "time[datetime]",
    "time[pubdate]",
)

_BYLINE_PREFIX = re.compile(r"^(by|written by|author:)\s*", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def readability_extract(
    html: str,
    url: Optional[str] = None,
    char_threshold: int = FETCH_CHAR_THRESHOLD,
) -> Optional[Tuple[str, str]]:
    """Run readability scoring over *html*.

    Returns ``(title, content_html)`` or ``None`` when no article body could
    be isolated.
    """
    if not html.strip():
        return None
    doc = Document(html, url=url, min_text_length=char_threshold)
    try:
        content = doc.summary(html_partial=True)
    except Unparseable as exc:
        logger.info("[extract] readability found no article: %s", exc)
        return None
    title = doc.short_title() or ""
    if title == "[no-title]":
        title = ""
    return title.strip(), content


def collect_paragraphs(content_html: str, min_chars: int = MIN_PARAGRAPH_CHARS) -> List[str]:
    """Return the trimmed text of each ``<p>`` longer than *min_chars*."""
    soup = BeautifulSoup(content_html, "html.parser")
    texts = (p.get_text().strip() for p in soup.find_all("p"))
    return [text for text in texts if len(text) > min_chars]


def _is_paywalled(soup: BeautifulSoup, html: str) -> bool:
    body = soup.body
    body_class = " ".join(body.get("class") or []).lower() if body else ""
    body_id = (body.get("id") or "").lower() if body else ""
    lowered = html.lower()
    return any(
        indicator in body_class
        or indicator in body_id
        or f'class="{indicator}"' in lowered
        for indicator in PAYWALL_INDICATORS
    )


def _canonical_url(soup: BeautifulSoup, base_url: str) -> Optional[str]:
    link = soup.select_one('link[rel="canonical"]')
    href = link.get("href") if link else None
    if not href:
        return None
    return urljoin(base_url, href.strip())


def _parse_date(value: str) -> Optional[str]:
    try:
        parsed = date_parser.parse(value)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        parsed = parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None
    return parsed.isoformat().replace("+00:00", "Z")


def _published_date(soup: BeautifulSoup) -> Optional[str]:
    for selector in _DATE_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        value = element.get("content") or element.get("datetime")
        if value:
            iso = _parse_date(value.strip())
            if iso:
                return iso
    return None


def clean_author(byline: Optional[str]) -> Optional[str]:
    """Strip a leading "by" / "written by" / "author:" and cap the length."""
    if not byline:
        return None
    author = _BYLINE_PREFIX.sub("", byline.strip()).strip()
    return author[:MAX_AUTHOR_CHARS] or None


def _site_name_from_url(url: str) -> Optional[str]:
    hostname = urlsplit(url).hostname or ""
    if hostname.startswith("www."):
        hostname = hostname[len("www."):]
    return hostname or None


def _mine_metadata(html: str, url: str) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """Return ``(title, byline, site_name)`` as found by trafilatura."""
    try:
        meta = extract_metadata(html, default_url=url)
    except Exception as exc:  # noqa: BLE001
        logger.debug("[extract] metadata extraction failed: %s", exc)
        return None, None, None
    if meta is None:
        return None, None, None
    return (
        getattr(meta, "title", None),
        getattr(meta, "author", None),
        getattr(meta, "sitename", None),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_article(raw: RawPage) -> Tuple[ExtractedArticle, Optional[str]]:
    """Extract the article in *raw*.

    Returns the article together with its canonical URL (if the page declares
    one).

    Raises:
        ExtractionError: ``NOT_ARTICLE`` when no article body of at least
            200 characters is found, ``PAYWALL`` when paywall markers are
            present and fewer than ``settings.paywall_min_paragraphs``
            paragraphs survive.
    """
    not_article = ExtractionError(
        "NOT_ARTICLE",
        "Could not extract article content from this page",
        "This might not be an article page. Try pasting the content directly.",
    )

    extracted = readability_extract(raw.html, raw.url, FETCH_CHAR_THRESHOLD)
    if extracted is None:
        raise not_article
    readability_title, content = extracted

    text_content = BeautifulSoup(content, "html.parser").get_text()
    if len(text_content.strip()) < MIN_CONTENT_CHARS:
        raise not_article

    paragraphs = collect_paragraphs(content)
    if not paragraphs:
        paragraphs = split_into_paragraphs(text_content)
    if not paragraphs:
        raise not_article

    soup = BeautifulSoup(raw.html, "html.parser")
    if _is_paywalled(soup, raw.html) and len(paragraphs) < settings.paywall_min_paragraphs:
        raise ExtractionError(
            "PAYWALL",
            "This article appears to be behind a paywall",
            "Only partial content is available. Try pasting the full article text.",
        )

    meta_title, byline, site_name = _mine_metadata(raw.html, raw.url)
    word_count = count_words(text_content)

    article = ExtractedArticle(
        title=readability_title or meta_title or DEFAULT_TITLE,
        author=clean_author(byline),
        site_name=site_name or _site_name_from_url(raw.url),
        published_date=_published_date(soup),
        content=content,
        text_content=text_content,
        paragraphs=paragraphs,
        word_count=word_count,
        estimated_read_time=estimate_read_time(word_count),
    )
    return article, _canonical_url(soup, raw.url)
