"""Plain-text rendering of articles and reading sessions for the CLI."""

from __future__ import annotations

import textwrap
from typing import List, Optional

from backend.reader.session import ParagraphState, ReadingSession
from backend.scraper.models import ExtractedArticle

_WIDTH = 88
_MARK_OPEN = "»"
_MARK_CLOSE = "«"


def render_summary(article: ExtractedArticle, tag: str) -> List[str]:
    """Header lines describing *article*, each prefixed with ``[tag]``."""
    lines = [f"[{tag}] Title  : {article.title}"]
    if article.author:
        lines.append(f"[{tag}] Author : {article.author}")
    if article.site_name:
        lines.append(f"[{tag}] Site   : {article.site_name}")
    if article.published_date:
        lines.append(f"[{tag}] Date   : {article.published_date}")
    lines.append(
        f"[{tag}] Words  : {article.word_count}  (~{article.estimated_read_time} min read)"
    )
    lines.append(f"[{tag}] Paras  : {len(article.paragraphs)}")
    return lines


def mark_insight(text: str, insight: Optional[str]) -> str:
    """Wrap the first occurrence of *insight* in *text* with guillemets."""
    if not insight:
        return text
    start = text.find(insight)
    if start < 0:
        return text
    end = start + len(insight)
    return f"{text[:start]}{_MARK_OPEN}{insight}{_MARK_CLOSE}{text[end:]}"


def _render_paragraph(paragraph: ParagraphState) -> str:
    body = mark_insight(paragraph.html, paragraph.insight_text)
    return textwrap.fill(
        body,
        width=_WIDTH,
        initial_indent=f"  [{paragraph.index}] ",
        subsequent_indent="      ",
    )


def render_session(session: ReadingSession, title: str) -> str:
    """Render *session* as an outline: sections, then their paragraphs."""
    structure = session.structure
    heading = (structure.generated_title if structure else None) or title
    lines = [heading, "=" * min(len(heading), _WIDTH)]
    if structure and structure.tldr:
        lines += ["", f"TL;DR: {structure.tldr}"]

    current = None
    for paragraph in session.paragraphs:
        section = session.section_for(paragraph.index)
        if section is not None and section is not current:
            current = section
            indent = "  " if section.level == 2 else ""
            lines += ["", f"{indent}## {section.title}"]
            if section.summary:
                lines.append(f"{indent}   {section.summary}")
        lines += ["", _render_paragraph(paragraph)]

    return "\n".join(lines)
