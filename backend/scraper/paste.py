"""Pasted-content classification and parsing.

``classify_paste`` decides what the user pasted (empty, URL, code, too short,
HTML, markdown or plain text); ``parse_pasted_content`` turns the accepted
kinds into an :class:`ExtractedArticle`.  Parsing is deterministic: the same
input always yields the same title and paragraphs.

``refine_with_llm`` is an optional second pass that lets the generation
service re-split long pasted text into logical paragraphs.
"""

from __future__ import annotations

import enum
import logging
import re
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup

from backend.enhance.prompts import PASTE_STRUCTURE_PROMPT
from backend.llm import TextGenerator, parse_json_response
from backend.scraper.extractor import (
    PASTE_CHAR_THRESHOLD,
    clean_author,
    collect_paragraphs,
    readability_extract,
)
from backend.scraper.models import (
    ExtractedArticle,
    ExtractionError,
    ParseFailure,
    ParseOutcome,
    ParseSuccess,
)
from backend.scraper.segmenter import (
    collapse_whitespace,
    count_words,
    estimate_read_time,
    split_into_paragraphs,
    wrap_paragraphs,
)

logger = logging.getLogger(__name__)

MIN_PASTE_CHARS = 50
MAX_URL_CHARS = 500
PASTED_PARAGRAPH_CHARS = 10
MAX_TITLE_CHARS = 150
DEFAULT_TITLE = "Pasted Content"
AI_REFINE_MIN_CHARS = 500
AI_REFINE_MAX_CHARS = 15000

_URL_PATTERN = re.compile(r"^https?://\S+$")
_HTML_PATTERN = re.compile(r"<[a-z][\s\S]*>", re.IGNORECASE)

_CODE_PATTERNS = (
    re.compile(r"^\{[\s\S]*\}$"),                               # JSON object
    re.compile(r"\bfunction\s*\w*\s*\([^)]*\)\s*\{"),             # JS function
    re.compile(r"^\s*import\s+.+\s+from\s+\S", re.MULTILINE),    # ES import
    re.compile(r"^\s*from\s+[\w.]+\s+import\s+\w", re.MULTILINE),  # Python import
    re.compile(r"\bclass\s+\w+[^{\n]*\{"),                       # class body
    re.compile(r"^\s*def\s+\w+\s*\(.*\)\s*(->[^:]+)?:\s*$", re.MULTILINE),
    re.compile(r"^<\?php"),
    re.compile(r"^#!\s*/"),                                      # shebang
)

_MARKDOWN_PATTERNS = (
    re.compile(r"^#{1,6}\s+\S", re.MULTILINE),
    re.compile(r"^\s*(?:[-*+]|\d+\.)\s+\S", re.MULTILINE),
    re.compile(r"^>\s?", re.MULTILINE),
    re.compile(r"\*\*[^*\n]+\*\*|__[^_\n]+__"),
)
_MD_HEADING = re.compile(r"^#{1,6}\s+", re.MULTILINE)
_MD_QUOTE = re.compile(r"^>\s?", re.MULTILINE)
_MD_BULLET = re.compile(r"^(\s*)[-*+]\s+", re.MULTILINE)
_MD_EMPHASIS = re.compile(r"(\*\*|__)(.+?)\1")
_MD_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")


class PasteKind(str, enum.Enum):
    EMPTY = "empty"
    URL = "url"
    CODE = "code"
    TOO_SHORT = "too_short"
    HTML = "html"
    MARKDOWN = "markdown"
    TEXT = "text"


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def looks_like_code(text: str) -> bool:
    return any(pattern.search(text) for pattern in _CODE_PATTERNS)


def classify_paste(content: Optional[str]) -> PasteKind:
    """Classify trimmed *content*.

    Shape checks (URL, code) run before the length check so that a short
    snippet such as ``{"a":1}`` is reported as code rather than as too short.
    """
    if not isinstance(content, str) or not content.strip():
        return PasteKind.EMPTY
    trimmed = content.strip()
    if _URL_PATTERN.match(trimmed) and len(trimmed) < MAX_URL_CHARS:
        return PasteKind.URL
    if looks_like_code(trimmed):
        return PasteKind.CODE
    if len(trimmed) < MIN_PASTE_CHARS:
        return PasteKind.TOO_SHORT
    if _HTML_PATTERN.search(trimmed):
        return PasteKind.HTML
    if any(pattern.search(trimmed) for pattern in _MARKDOWN_PATTERNS):
        return PasteKind.MARKDOWN
    return PasteKind.TEXT


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def strip_markdown(text: str) -> str:
    """Remove block and inline markdown markers, keeping the words."""
    text = _MD_HEADING.sub("", text)
    text = _MD_QUOTE.sub("", text)
    text = _MD_BULLET.sub(r"\1", text)
    text = _MD_LINK.sub(r"\1", text)
    return _MD_EMPHASIS.sub(r"\2", text)


def _parse_html(markup: str) -> Tuple[List[str], str]:
    extracted = readability_extract(markup, char_threshold=PASTE_CHAR_THRESHOLD)
    if extracted is not None:
        _, content = extracted
        paragraphs = collect_paragraphs(content, min_chars=PASTED_PARAGRAPH_CHARS)
        if paragraphs:
            return paragraphs, BeautifulSoup(content, "html.parser").get_text()

    # Fall back to the raw body text, one line per block element.
    soup = BeautifulSoup(markup, "html.parser")
    root = soup.body or soup
    text = root.get_text("\n")
    return split_into_paragraphs(text), text


def _split_title(paragraphs: List[str]) -> Tuple[str, List[str]]:
    first = paragraphs[0]
    if len(paragraphs) > 1 and len(first) < MAX_TITLE_CHARS and "." not in first:
        return first, paragraphs[1:]
    return DEFAULT_TITLE, paragraphs


def _rejection(kind: PasteKind, trimmed: str) -> Optional[ParseFailure]:
    if kind is PasteKind.EMPTY:
        return ParseFailure(code="MISSING_CONTENT", message="Content is required")
    if kind is PasteKind.URL:
        return ParseFailure(
            code="IS_URL",
            message="This looks like a URL",
            suggestion="Use the URL fetch mode instead, or paste the article content.",
            detected_url=trimmed,
        )
    if kind is PasteKind.CODE:
        return ParseFailure(
            code="IS_CODE",
            message="This looks like code, not an article",
            suggestion="Paste article text, not source code.",
        )
    if kind is PasteKind.TOO_SHORT:
        return ParseFailure(
            code="TOO_SHORT",
            message="Content is too short",
            suggestion="Please paste at least a few sentences to analyze.",
        )
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_article(content: str) -> ExtractedArticle:
    """Parse accepted pasted *content* into an article.

    Raises:
        ExtractionError: ``PARSE_FAILED`` when no text survives.
    """
    trimmed = content.strip()
    kind = classify_paste(trimmed)

    if kind is PasteKind.HTML:
        paragraphs, text_content = _parse_html(trimmed)
    else:
        text_content = strip_markdown(trimmed) if kind is PasteKind.MARKDOWN else trimmed
        paragraphs = split_into_paragraphs(text_content)

    if not paragraphs:
        whole = collapse_whitespace(text_content)
        if not whole:
            raise ExtractionError("PARSE_FAILED", "Could not parse the content")
        paragraphs = [whole]

    title, paragraphs = _split_title(paragraphs)
    word_count = count_words(text_content)
    return ExtractedArticle(
        title=title,
        content=wrap_paragraphs(paragraphs),
        text_content=text_content,
        paragraphs=paragraphs,
        word_count=word_count,
        estimated_read_time=estimate_read_time(word_count),
    )


def parse_pasted_content(content: Optional[str]) -> ParseOutcome:
    """Classify and parse pasted *content* into a tagged outcome."""
    trimmed = content.strip() if isinstance(content, str) else ""
    kind = classify_paste(trimmed)
    rejection = _rejection(kind, trimmed)
    if rejection is not None:
        logger.info("[parse] Rejected pasted content: %s", rejection.code)
        return rejection

    logger.info("[parse] Parsing pasted content (%d chars, %s)", len(trimmed), kind.value)
    try:
        article = build_article(trimmed)
    except ExtractionError as exc:
        logger.warning("[parse] Failed: %s", exc.message)
        return ParseFailure(code="PARSE_FAILED", message=exc.message)
    return ParseSuccess(article=article)


async def refine_with_llm(
    article: ExtractedArticle,
    content: str,
    generator: TextGenerator,
) -> ExtractedArticle:
    """Ask the model to re-split *content* into logical paragraphs.

    Returns *article* unchanged when the input is short, the call fails, or
    the response does not carry a usable ``paragraphs`` list.
    """
    trimmed = content.strip()
    if len(trimmed) <= AI_REFINE_MIN_CHARS:
        return article
    if len(trimmed) > AI_REFINE_MAX_CHARS:
        trimmed = trimmed[:AI_REFINE_MAX_CHARS] + "..."

    try:
        response = await generator.generate(PASTE_STRUCTURE_PROMPT.replace("{content}", trimmed))
    except Exception:  # noqa: BLE001
        logger.warning("[parse] AI structure extraction failed, keeping heuristic parse", exc_info=True)
        return article

    parsed = parse_json_response(response)
    if parsed is None or not isinstance(parsed.get("paragraphs"), list):
        logger.warning("[parse] AI structure response unusable, keeping heuristic parse")
        return article

    paragraphs = [collapse_whitespace(p) for p in parsed["paragraphs"] if isinstance(p, str)]
    paragraphs = [p for p in paragraphs if len(p) > PASTED_PARAGRAPH_CHARS]
    if not paragraphs:
        return article

    title = parsed.get("title")
    author = parsed.get("author")
    return ExtractedArticle(
        title=title.strip() if isinstance(title, str) and title.strip() else article.title,
        author=clean_author(author) if isinstance(author, str) else None,
        content=wrap_paragraphs(paragraphs),
        text_content=article.text_content,
        paragraphs=paragraphs,
        word_count=article.word_count,
        estimated_read_time=article.estimated_read_time,
    )
