"""Data models for the extraction pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Literal, Optional, Union

FetchErrorCode = Literal[
    "INVALID_URL", "FETCH_FAILED", "NOT_ARTICLE", "PAYWALL", "BLOCKED", "TIMEOUT"
]
ParseErrorCode = Literal[
    "MISSING_CONTENT", "TOO_SHORT", "IS_URL", "IS_CODE", "PARSE_FAILED"
]


class ExtractionError(Exception):
    """Raised when a page or pasted input cannot be turned into an article.

    ``code`` is one of the fetch or parse error codes; ``suggestion`` is a
    human-readable hint pointing the user at another input path.
    """

    def __init__(self, code: str, message: str, suggestion: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


@dataclass
class RawPage:
    """The raw HTTP response for a single URL fetch.

    ``url`` is the final URL after redirects.
    """

    url: str
    html: str
    status_code: int


@dataclass
class ExtractedArticle:
    """A clean, paragraph-structured article."""

    title: str
    content: str
    text_content: str
    paragraphs: List[str] = field(default_factory=list)
    author: Optional[str] = None
    site_name: Optional[str] = None
    published_date: Optional[str] = None
    word_count: int = 0
    estimated_read_time: int = 1

    def to_dict(self) -> dict[str, Any]:
        """Wire shape shared by ``/fetch`` and ``/parse``."""
        return {
            "title": self.title,
            "author": self.author,
            "siteName": self.site_name,
            "publishedDate": self.published_date,
            "content": self.content,
            "paragraphs": list(self.paragraphs),
            "wordCount": self.word_count,
            "estimatedReadTime": self.estimated_read_time,
        }


@dataclass
class FetchSuccess:
    article: ExtractedArticle
    url: str
    canonical_url: Optional[str] = None
    success: Literal[True] = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "article": self.article.to_dict(),
            "url": self.url,
            "canonicalUrl": self.canonical_url,
            "inputMethod": "url",
        }


@dataclass
class FetchFailure:
    code: FetchErrorCode
    message: str
    suggestion: Optional[str] = None
    success: Literal[False] = False

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.code,
        }
        if self.suggestion:
            payload["suggestion"] = self.suggestion
        return payload


@dataclass
class ParseSuccess:
    article: ExtractedArticle
    success: Literal[True] = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "article": self.article.to_dict(),
            "inputMethod": "paste",
        }


@dataclass
class ParseFailure:
    code: ParseErrorCode
    message: str
    suggestion: Optional[str] = None
    detected_url: Optional[str] = None
    success: Literal[False] = False

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.code,
        }
        if self.suggestion:
            payload["suggestion"] = self.suggestion
        if self.detected_url:
            payload["detectedUrl"] = self.detected_url
        return payload


FetchOutcome = Union[FetchSuccess, FetchFailure]
ParseOutcome = Union[ParseSuccess, ParseFailure]
