"""Navigation-outline generation with index validation and a fallback.

The model is asked for 3-8 sections over the paragraph list.  Whatever comes
back is clamped and defaulted before it is trusted; anything unusable (no
response, no JSON object, no ``sections`` list, nonsense indices) is replaced
by a deterministic three-block outline.
"""

from __future__ import annotations

import logging
import math
from typing import Any, List, Optional, Sequence

from backend.enhance.models import ArticleSection, ArticleStructure
from backend.enhance.prompts import STRUCTURE_PROMPT
from backend.llm import TextGenerator, parse_json_response

logger = logging.getLogger(__name__)

PROMPT_PARAGRAPH_CHARS = 200
DEFAULT_TITLE = "Untitled Article"
FALLBACK_SECTION_TITLES = ("Opening", "Main Points", "Conclusion")


def format_paragraphs(paragraphs: Sequence[str]) -> str:
    """Index-prefixed paragraphs, each cut to 200 characters."""
    lines = []
    for i, text in enumerate(paragraphs):
        snippet = text[:PROMPT_PARAGRAPH_CHARS]
        if len(text) > PROMPT_PARAGRAPH_CHARS:
            snippet += "..."
        lines.append(f"[{i}] {snippet}")
    return "\n\n".join(lines)


def fallback_structure(paragraphs: Sequence[str], title: str) -> ArticleStructure:
    """Split the paragraphs into up to three contiguous, gap-free blocks."""
    total = len(paragraphs)
    sections: List[ArticleSection] = []
    if total:
        size = math.ceil(total / len(FALLBACK_SECTION_TITLES))
        for i, name in enumerate(FALLBACK_SECTION_TITLES):
            start = i * size
            if start >= total:
                break
            end = min(start + size, total) - 1
            count = end - start + 1
            sections.append(
                ArticleSection(
                    id=f"section-{i}",
                    title=name,
                    summary=f"{count} paragraph{'s' if count != 1 else ''} in this section.",
                    start_paragraph_index=start,
                    end_paragraph_index=end,
                    level=1,
                )
            )
    return ArticleStructure(sections=sections, tldr=f"Article: {title}")


def _clamp(value: Any, upper: int) -> int:
    return max(0, min(int(value), upper))


def _optional_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip() and value.strip().lower() != "null":
        return value.strip()
    return None


def validate_structure(parsed: dict[str, Any], paragraph_count: int) -> Optional[ArticleStructure]:
    """Clamp and default a decoded model response.

    Returns ``None`` when the response has no usable sections.
    """
    raw_sections = parsed.get("sections")
    if not isinstance(raw_sections, list):
        return None

    upper = max(paragraph_count - 1, 0)
    sections: List[ArticleSection] = []
    for ordinal, raw in enumerate(raw_sections):
        if not isinstance(raw, dict):
            continue
        try:
            start = _clamp(raw.get("startParagraphIndex", 0), upper)
            end = _clamp(raw.get("endParagraphIndex", start), upper)
        except (TypeError, ValueError, OverflowError):
            logger.warning("[structure] Dropping section %d with bad indices", ordinal)
            continue
        level = raw.get("level")
        sections.append(
            ArticleSection(
                id=_optional_text(raw.get("id")) or f"section-{ordinal}",
                title=_optional_text(raw.get("title")) or f"Section {ordinal + 1}",
                summary=_optional_text(raw.get("summary")) or "",
                start_paragraph_index=start,
                end_paragraph_index=max(start, end),
                level=int(level) if level in (1, 2) else 1,
            )
        )

    if not sections:
        return None
    sections.sort(key=lambda section: section.start_paragraph_index)
    return ArticleStructure(
        sections=sections,
        generated_title=_optional_text(parsed.get("generatedTitle")),
        tldr=_optional_text(parsed.get("tldr")),
    )


async def generate_structure(
    paragraphs: Sequence[str],
    title: Optional[str],
    generator: TextGenerator,
) -> ArticleStructure:
    """Return an outline for *paragraphs*; never raises."""
    title = title or DEFAULT_TITLE
    prompt = (
        STRUCTURE_PROMPT
        .replace("{title}", title)
        .replace("{paragraphs}", format_paragraphs(paragraphs))
    )

    try:
        response = await generator.generate(prompt)
    except Exception:  # noqa: BLE001
        logger.exception("[structure] Model call failed, using fallback")
        return fallback_structure(paragraphs, title)

    parsed = parse_json_response(response)
    structure = validate_structure(parsed, len(paragraphs)) if parsed is not None else None
    if structure is None:
        logger.warning("[structure] Unusable response, using fallback")
        return fallback_structure(paragraphs, title)

    logger.info("[structure] Generated %d sections", len(structure.sections))
    return structure
