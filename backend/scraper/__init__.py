"""Scraper package: URL fetch, article extraction and paste parsing."""

from backend.scraper.extractor import extract_article
from backend.scraper.fetcher import fetch_url, normalize_url, validate_url
from backend.scraper.models import (
    ExtractedArticle,
    ExtractionError,
    FetchFailure,
    FetchSuccess,
    ParseFailure,
    ParseSuccess,
    RawPage,
)
from backend.scraper.paste import classify_paste, parse_pasted_content
from backend.scraper.pipeline import fetch_and_extract

__all__ = [
    "fetch_url",
    "normalize_url",
    "validate_url",
    "extract_article",
    "fetch_and_extract",
    "classify_paste",
    "parse_pasted_content",
    "RawPage",
    "ExtractedArticle",
    "ExtractionError",
    "FetchSuccess",
    "FetchFailure",
    "ParseSuccess",
    "ParseFailure",
]
