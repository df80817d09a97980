"""Paragraph segmentation and text metrics shared by the fetch and paste paths."""

from __future__ import annotations

import html
import math
import re
from typing import Iterable, List

# Blank line, or a newline directly followed by an uppercase letter (copy-pasted
# text often loses its blank-line separators).
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n|\n(?=[A-Z])")
_WHITESPACE = re.compile(r"\s+")

MIN_SEGMENT_CHARS = 20
WORDS_PER_MINUTE = 200


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def split_into_paragraphs(text: str, min_chars: int = MIN_SEGMENT_CHARS) -> List[str]:
    """Split *text* into paragraphs, dropping fragments of *min_chars* or less."""
    segments = (collapse_whitespace(part) for part in _PARAGRAPH_BREAK.split(text))
    return [segment for segment in segments if len(segment) > min_chars]


def count_words(text: str) -> int:
    return len(text.split())


def estimate_read_time(word_count: int) -> int:
    """Reading time in minutes at 200 wpm, never less than one."""
    return max(1, math.ceil(word_count / WORDS_PER_MINUTE))


def wrap_paragraphs(paragraphs: Iterable[str]) -> str:
    """Render plain-text paragraphs as escaped ``<p>`` elements."""
    return "\n".join(f"<p>{html.escape(p, quote=True)}</p>" for p in paragraphs)
